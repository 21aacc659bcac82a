from typing import Literal, Self
import errno
import logging
import os
from os import path
from pathlib import Path

from .globals import device_dir
from .errors import DeviceNotFound, DeviceAccessDenied, DeviceIOError, SeekFailed, \
    ImageNotFound, ImageIOError


DeviceMode = Literal['ro', 'rw']


def device_path(name: str | Path) -> str:
    """
    Map a bare device name like `sdb` to `/dev/sdb`; anything with a
    directory component is used as given.
    """
    name = str(name)
    if os.sep in name:
        return name
    return path.join(device_dir, name)


class Device:
    """
    Raw access to the SDcard device (or an image of the whole card).

    The device is opened unbuffered, never truncated, and closed when the
    `with` block exits.
    """

    def __init__(self, fname: str | Path, mode: DeviceMode = 'ro'):
        self.fname = str(fname)
        self.mode = mode
        try:
            # r+b keeps the card contents, a block device must not be truncated
            self.f = open(self.fname, 'r+b' if mode == 'rw' else 'rb', buffering=0)
        except FileNotFoundError:
            raise DeviceNotFound(self.fname)
        except PermissionError:
            raise DeviceAccessDenied(self.fname, mode)
        except OSError as ex:
            raise DeviceIOError(f"Can not open SDcard file \"{self.fname}\": {ex.strerror or ex}")
        logging.debug(f"Device: opened {self.fname} mode {mode}")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc):
        self.close()

    def __repr__(self):
        return f"Device on {self.fname} ({self.mode}) with {self.total_bytes} bytes"

    def close(self):
        if not self.f.closed:
            self.f.close()

    @property
    def total_bytes(self) -> int:
        """device size from the end-of-stream position, 0 if the device can't tell"""
        try:
            pos = self.f.tell()
            end = self.f.seek(0, os.SEEK_END)
            self.f.seek(pos)
        except OSError:
            return 0
        return end

    def seek(self, offset: int) -> int:
        try:
            pos = self.f.seek(offset)
        except (OSError, OverflowError, ValueError) as ex:
            reason = f"with errno = {ex.errno}" if isinstance(ex, OSError) else str(ex)
            raise SeekFailed(self.fname, offset, reason)
        if pos != offset:
            raise SeekFailed(self.fname, offset, f"landed at {pos}")
        return pos

    def tell(self) -> int:
        return self.f.tell()

    def readinto(self, buf) -> int:
        try:
            return self.f.readinto(buf) or 0
        except OSError as ex:
            raise DeviceIOError(f"SDcard read failed on \"{self.fname}\": {errno.errorcode.get(ex.errno or 0, ex)}")

    def write(self, data) -> int:
        try:
            return self.f.write(data) or 0
        except OSError as ex:
            raise DeviceIOError(f"SDcard write failed on \"{self.fname}\": {errno.errorcode.get(ex.errno or 0, ex)}")


class ImageFile:
    """
    The disk image side of a transfer, read ('rb') or created ('wb').

    An image that can't be opened for reading is ImageNotFound, any other
    failure is an ImageIOError naming the file.
    """

    def __init__(self, fname: str | Path, mode: Literal['rb', 'wb'] = 'rb'):
        self.fname = str(fname)
        self.mode = mode
        try:
            self.f = open(self.fname, mode)
        except OSError as ex:
            if mode == 'rb':
                raise ImageNotFound(self.fname)
            raise ImageIOError(self.fname, 'create', f"({ex.strerror or ex})")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        if self.f.closed:
            return
        try:
            self.f.close()
        except OSError as ex:
            # buffered data of a 'wb' image is flushed here
            raise ImageIOError(self.fname, 'write', f"({ex.strerror or ex})")

    def readinto(self, buf) -> int:
        try:
            return self.f.readinto(buf) or 0
        except OSError as ex:
            raise ImageIOError(self.fname, 'read', f"({ex.strerror or ex})")

    def write(self, data) -> int:
        try:
            return self.f.write(data) or 0
        except OSError as ex:
            raise ImageIOError(self.fname, 'write', f"({ex.strerror or ex})")
