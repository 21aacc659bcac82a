"""
Exception hierarchy for img2sd.

Each category carries the exit code the command line reports for it.
"""
from typing import ClassVar


class Img2sdError(Exception):
    """Base class for all img2sd errors."""
    exit_code: ClassVar[int] = 1


class ConfigError(Img2sdError):
    """Partition table missing, malformed, or unusable for the requested target."""
    exit_code: ClassVar[int] = 2


class InvalidTarget(ConfigError):
    def __init__(self, target_id: int):
        self.target_id = target_id
        super().__init__(f"Invalid target id {target_id}")


class TargetDisabled(ConfigError):
    def __init__(self, target_id: int):
        self.target_id = target_id
        super().__init__(f"Target id {target_id} not enabled")


class BadGeometry(ConfigError):
    def __init__(self, target_id: int, what: str, value: int):
        self.target_id = target_id
        self.what = what
        self.value = value
        super().__init__(f"Target id {target_id} has invalid {what} {value}")


class PreconditionError(Img2sdError):
    """Image file or device does not fit the partition, checked before any copy starts."""
    exit_code: ClassVar[int] = 3


class ImageNotFound(PreconditionError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Can not open image file \"{path}\"")


class UnalignedSize(PreconditionError):
    def __init__(self, path: str, file_size: int, bytes_per_sector: int):
        self.path = path
        self.file_size = file_size
        self.bytes_per_sector = bytes_per_sector
        super().__init__(
            f"Size of file \"{path}\" is {file_size}, not a multiple of sector size {bytes_per_sector}")


class ImageTooLarge(PreconditionError):
    def __init__(self, path: str, file_size: int, target_id: int, size: int):
        self.path = path
        self.file_size = file_size
        self.target_id = target_id
        self.size = size
        super().__init__(
            f"Image file too large: Size of file \"{path}\" is {file_size}, size of SCSI ID {target_id} is {size}")


class PartitionBeyondDevice(PreconditionError):
    def __init__(self, path: str, end: int, total_bytes: int):
        self.path = path
        self.end = end
        self.total_bytes = total_bytes
        super().__init__(f"Partition ends at byte {end} but device \"{path}\" has only {total_bytes} bytes")


class TransferIOError(Img2sdError):
    """Open, seek, read or write failure on one of the streams."""
    exit_code: ClassVar[int] = 4


class DeviceNotFound(TransferIOError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"SDcard device \"{path}\" does not exist")


class DeviceAccessDenied(TransferIOError):
    def __init__(self, path: str, mode: str):
        self.path = path
        self.mode = mode
        access = 'write' if mode == 'rw' else 'read'
        super().__init__(f"Can not open SDcard file \"{path}\" for {access} (sudo?)")


class SeekFailed(TransferIOError):
    def __init__(self, path: str, offset: int, reason: str = ''):
        self.path = path
        self.offset = offset
        super().__init__(f"SDcard seek to {offset} on \"{path}\" failed {reason}".rstrip())


class ShortRead(TransferIOError):
    def __init__(self, offset: int, expected: int, got: int):
        self.offset = offset
        self.expected = expected
        self.got = got
        super().__init__(f"Short read at byte {offset}: expected {expected} bytes, got {got}")


class ShortWrite(TransferIOError):
    def __init__(self, offset: int, expected: int, got: int):
        self.offset = offset
        self.expected = expected
        self.got = got
        super().__init__(f"Short write at byte {offset}: expected {expected} bytes, wrote {got}")


class DeviceIOError(TransferIOError):
    pass


class ImageIOError(TransferIOError):
    def __init__(self, path: str, action: str, reason: str = ''):
        self.path = path
        self.action = action
        super().__init__(f"Can not {action} image file \"{path}\" {reason}".rstrip())


class DataMismatch(Img2sdError):
    """Verify found bytes on the device that differ from the image."""
    exit_code: ClassVar[int] = 5

    def __init__(self, first_offset: int, start: int, end: int, mismatched_sectors: int = 1):
        self.first_offset = first_offset
        self.start = start
        self.end = end
        self.mismatched_sectors = mismatched_sectors
        super().__init__(
            f"Data mismatch between bytes {start} and {end} (first at {first_offset}, "
            f"{mismatched_sectors} sector{'s' if mismatched_sectors != 1 else ''} differ)")
