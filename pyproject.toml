[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aetherfiles"
version = "0.1.0"
description = "File manager core: directory listing, clipboard, archives, thumbnails, desktop apps and a privileged file-operations helper"
requires-python = ">=3.10"
keywords = [
    "file-manager",
    "desktop",
    "thumbnails",
    "archives",
    "clipboard",
    "privileged",
    "pkexec",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: File Managers",
    "Topic :: System :: Filesystems",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
aetherfiles = "aetherfiles.cli:main"
aetherfiles-helper = "aetherfiles.helper:main"

[tool.hatch.build.targets.wheel]
packages = ["aetherfiles"]

[tool.hatch.build.targets.sdist]
include = [
    "aetherfiles",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
