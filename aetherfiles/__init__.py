"""File manager core: entities, directory listing, desktop apps, clipboard, archives, thumbnails and privileged file operations."""

__version__ = "0.1.0"