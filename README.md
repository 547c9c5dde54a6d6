# aetherfiles

The core of a desktop file manager as a Python package: file and
application models, directory listing, a cut/copy/paste clipboard,
archive extraction and compression, image and video thumbnails, and a
helper that performs file operations with raised privileges.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

Archive work calls the usual command-line tools (`zip`, `unzip`, `tar`,
`7z`); video thumbnails need `ffmpeg`. Privileged operations are
launched through `pkexec`.

## Commands

### `aetherfiles`

Runs the privileged helper modes. Without one of the two options below it
prints a usage message and exits with status 2.

One operation, then exit:

```
aetherfiles --privileged list /root
aetherfiles --privileged copy /etc/hosts /root/hosts.bak
aetherfiles --privileged move /root/a.txt /root/b.txt
aetherfiles --privileged delete /root/old
aetherfiles --privileged mkdir /root/new/nested/dir
aetherfiles --privileged touch /root/empty.txt
aetherfiles --privileged compress zip /root/out.zip /root/a /root/b
aetherfiles --privileged extract /root/out.zip /root/unpacked
```

`list` prints one JSON object per entry
(`{"name":..., "path":..., "is_dir":..., "size":..., "icon":...}`).
Other operations print `OK` on success or `ERR:<message>` on failure.
`copy` and `move` into an existing directory place the source inside it;
`compress` accepts the formats `zip`, `tar.xz` and `7z`.

Long-running daemon mode, reading tab-separated commands from standard
input until end of input or a `quit` line:

```
aetherfiles --privileged-daemon
```

It prints `READY` on start. A `list` reply ends with a `DONE` line; every
other command answers `OK` or `ERR:<message>`, and an unknown command
answers `ERR:Unknown operation`.

### `aetherfiles-helper`

The standalone form of the same operations, one per invocation, with
somewhat more descriptive error messages (for example
`ERR:Copy failed: ...`):

```
aetherfiles-helper list /var/log
aetherfiles-helper copy /src/file /dst/dir
aetherfiles-helper extract archive.tar.xz /tmp/out
```

## Library

- `aetherfiles.entities`: `FileEntity`, `AppEntity`, `DriveEntity` and
  `BluetoothDevice` dataclasses. `FileEntity.connect_thumbnail_updated(callback)`
  registers a listener and returns a function that removes it;
  `set_thumbnail` calls the listeners only when the thumbnail object
  actually changes.
- `aetherfiles.file_repository`: the abstract `FileRepository` and
  `LocalFileRepository().list_directory(path)`, which accepts a path, a
  `~` path or a `file://` URI and returns a `FileEntity` for each entry
  (icon names come from the guessed MIME type). It raises `OSError` if the
  directory cannot be read.
- `aetherfiles.app_repository`: `AppRepository(search_dirs).load_apps()`
  reads `.desktop` files (by default from `/usr/share/applications`,
  `/usr/local/share/applications` and `~/.local/share/applications`),
  skips entries that are not of type `Application` or have `NoDisplay`
  set, uses the localised `Name` when present, and returns the apps sorted
  by name. `parse_desktop_file(path)` reads a single file; `clean_exec`
  strips field codes such as `%u` and `%F` from an `Exec` line.
- `aetherfiles.clipboard`: `Clipboard` with `ClipboardOp` (`NONE`,
  `COPY`, `CUT`). `paste(dest_dir)` copies single files or moves paths into
  the directory, tries every path, raises the first `OSError` if any
  failed, and empties the clipboard after a successful cut. Copying does
  not descend into directories.
- `aetherfiles.archive_manager`: `extract(archive_path, dest_dir)` for
  `.zip`, `.tar`, `.tar.gz`, `.tar.xz` and `.7z` archives, and
  `compress(source_paths, dest_archive_path, fmt)` for `zip`, `tar.xz`
  and `7z`. Compression runs in the first source's parent directory and
  stores base names only. `extract_command` and `compress_command` return
  the tool invocation without running it. Failures and unsupported
  formats raise `ArchiveError`.
- `aetherfiles.thumbnails`: `ThumbnailManager(cache_dir).get_thumbnail(uri, mime_type)`
  returns a Pillow image for `file://` URIs: images are scaled so the
  short side is 256 pixels and cropped to the centre square; videos get a
  frame from `ffmpeg` with a film-strip border (`apply_film_strip`).
  Results are cached as `thumbnails/large/<md5 of uri>.png` under the
  cache directory (default `$XDG_CACHE_HOME` or `~/.cache`), see
  `thumbnail_path`. Failure raises `ThumbnailError`.
- `aetherfiles.privileged_ops`: the operations behind the privileged
  modes (`list_entries`, `copy_path`, `move_path`, `delete_path`,
  `make_dirs`, `touch`, `compress`, `extract`), usable directly;
  failures raise `PrivilegedError`. `run` and `run_daemon` implement the
  one-shot and daemon protocols over given streams.
- `aetherfiles.privileged_client`: `PrivilegedDaemon` starts the daemon
  once (by default `pkexec <python> -m aetherfiles.cli --privileged-daemon`),
  sends it `list`, `copy`, `move`, `delete`, `mkdir`, `touch`, `compress`
  and `extract` commands, raises `PrivilegedError` on an `ERR:` reply, and
  shuts it down with `end()` (also registered at exit, and called when
  used as a context manager). `is_available()` tells whether `pkexec` and
  the interpreter are executable.

## What this package does not do

There is no graphical interface: no windows, tabs, sidebar, context menus
or dialogs. Nothing here watches for drives and mounts or talks to the
Bluetooth stack; `DriveEntity` and `BluetoothDevice` are plain data
holders, and sending files over Bluetooth is not provided. Trash
handling (moving to, restoring from and emptying the trash) is not
included either.