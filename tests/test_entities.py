import dataclasses

import pytest

from aetherfiles.entities import AppEntity, BluetoothDevice, DriveEntity, FileEntity


def make_file():
    return FileEntity("a.txt", "/tmp/a.txt", "file:///tmp/a.txt", 12, False, "text-x-generic")


def test_file_entity_fields():
    entity = make_file()
    assert entity.name == "a.txt"
    assert entity.path == "/tmp/a.txt"
    assert entity.uri == "file:///tmp/a.txt"
    assert entity.size == 12
    assert entity.is_directory is False
    assert entity.thumbnail is None
    assert entity.is_loading_thumbnail is False


def test_set_thumbnail_notifies_listener():
    entity = make_file()
    seen = []
    entity.connect_thumbnail_updated(seen.append)
    thumb = object()
    entity.set_thumbnail(thumb)
    assert entity.thumbnail is thumb
    assert seen == [entity]


def test_set_same_thumbnail_does_not_notify():
    entity = make_file()
    thumb = object()
    entity.set_thumbnail(thumb)
    seen = []
    entity.connect_thumbnail_updated(seen.append)
    entity.set_thumbnail(thumb)
    assert seen == []


def test_clearing_thumbnail_notifies():
    entity = make_file()
    entity.set_thumbnail(object())
    seen = []
    entity.connect_thumbnail_updated(seen.append)
    entity.set_thumbnail(None)
    assert entity.thumbnail is None
    assert len(seen) == 1


def test_disconnect_stops_notifications():
    entity = make_file()
    seen = []
    disconnect = entity.connect_thumbnail_updated(seen.append)
    disconnect()
    entity.set_thumbnail(object())
    assert seen == []


def test_loading_flag_is_settable():
    entity = make_file()
    entity.is_loading_thumbnail = True
    assert entity.is_loading_thumbnail is True


def test_app_entity_is_immutable():
    app = AppEntity("Editor", "editor", "editor-icon", "/x.desktop", "Utility;")
    assert app.categories == "Utility;"
    with pytest.raises(dataclasses.FrozenInstanceError):
        app.name = "Other"


def test_drive_entity_keeps_handles():
    volume, mount = object(), object()
    drive = DriveEntity("Disk", "drive-harddisk-symbolic", True, "/media/disk", volume, mount)
    assert drive.volume is volume
    assert drive.mount is mount
    assert drive.is_mounted is True


def test_bluetooth_device_defaults():
    device = BluetoothDevice("Phone", "00:00:00:00:00:01", "/org/bluez/hci0/dev_x")
    assert device.paired is False
    assert device.trusted is False
    assert device.address == "00:00:00:00:00:01"