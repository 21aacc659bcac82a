from enum import Enum
from pathlib import Path
import logging
import os
import stat

from .table import PartitionTable
from .device import Device, ImageFile
from .copier import copy_blocks, CopyMode, Progress
from .errors import ImageNotFound, UnalignedSize, ImageTooLarge, PartitionBeyondDevice


class Phase(str, Enum):
    idle = "idle"
    resolving = "resolving"
    validating = "validating"
    transferring = "transferring"
    done = "done"
    failed = "failed"


class PartitionTransfer:
    """
    Moves disk images between files and the SCSI target partitions of one SDcard.

    Only the partition of the card belonging to a target is touched, offset and
    size come from the PartitionTable. Every operation runs
    idle -> resolving -> validating -> transferring -> done (or failed)
    and leaves the final state in `phase`.
    """

    def __init__(self, table: PartitionTable, device_path: str | Path, progress: Progress | None = None):
        self.table = table
        self.device_path = str(device_path)
        self.progress = progress
        self.phase = Phase.idle

    def read(self, target_id: int, image_path: str | Path) -> int:
        """Read the partition of target_id from the card into image_path"""
        return self._run(self._read, target_id, str(image_path))

    def write(self, target_id: int, image_path: str | Path) -> int:
        """Write image_path into the partition of target_id"""
        return self._run(self._write, target_id, str(image_path))

    def verify(self, target_id: int, image_path: str | Path, short_info: bool = False) -> int:
        """
        Compare image_path with the partition of target_id.
        short_info drops the banner and size warning, e.g. right after a write.
        """
        return self._run(self._verify, target_id, str(image_path), short_info)

    def _run(self, op, *args) -> int:
        self.phase = Phase.idle
        try:
            n = op(*args)
        except Exception:
            self.phase = Phase.failed
            raise
        self.phase = Phase.done
        return n

    def _resolve(self, target_id: int) -> tuple[int, int, int]:
        self.phase = Phase.resolving
        offset, size = self.table.resolve(target_id)
        return offset, size, self.table[target_id].bytes_per_sector

    def _banner(self, verb: str, target_id: int, what: str, offset: int, size: int, bytes_per_sector: int):
        logging.info(f"{verb} SCSI ID {target_id} on SDcard \"{self.device_path}\" {what}.")
        logging.info(
            f"SDcard offset = {offset} bytes = {offset // bytes_per_sector} sectors, "
            f"size = {size} bytes = {size // bytes_per_sector} sectors."
        )

    def _check_image(self, target_id: int, image_path: str, size: int, bytes_per_sector: int, warn: bool) -> int:
        try:
            st = os.stat(image_path)
        except OSError:
            raise ImageNotFound(image_path)
        if stat.S_ISDIR(st.st_mode):
            raise ImageNotFound(image_path)
        file_size = st.st_size
        if file_size % bytes_per_sector:
            raise UnalignedSize(image_path, file_size, bytes_per_sector)
        if file_size > size:
            raise ImageTooLarge(image_path, file_size, target_id, size)
        if file_size < size and warn:
            logging.warning(
                f"Image file too small: Size of file \"{image_path}\" is {file_size}, "
                f"size of SCSI ID {target_id} is {size}"
            )
        return file_size

    def _check_fit(self, card: Device, offset: int, size: int):
        total = card.total_bytes
        # character devices and pipes report no size, let the copy find out
        if total and offset + size > total:
            raise PartitionBeyondDevice(card.fname, offset + size, total)

    def _read(self, target_id: int, image_path: str) -> int:
        offset, size, bps = self._resolve(target_id)
        self._banner("Reading", target_id, f'to file "{image_path}"', offset, size, bps)
        self.phase = Phase.validating
        with Device(self.device_path, mode='ro') as card:
            self._check_fit(card, offset, size)
            with ImageFile(image_path, 'wb') as img:
                self.phase = Phase.transferring
                card.seek(offset)
                return copy_blocks(card, img, size, CopyMode.copy, bps, progress=self.progress)

    def _write(self, target_id: int, image_path: str) -> int:
        offset, size, bps = self._resolve(target_id)
        self.phase = Phase.validating
        file_size = self._check_image(target_id, image_path, size, bps, warn=True)
        self._banner("Writing", target_id, f'from file "{image_path}"', offset, size, bps)
        with Device(self.device_path, mode='rw') as card:
            self._check_fit(card, offset, size)
            with ImageFile(image_path, 'rb') as img:
                self.phase = Phase.transferring
                card.seek(offset)
                # only the image is written, the rest of the partition stays as is
                return copy_blocks(img, card, file_size, CopyMode.copy, bps, progress=self.progress)

    def _verify(self, target_id: int, image_path: str, short_info: bool) -> int:
        offset, size, bps = self._resolve(target_id)
        self.phase = Phase.validating
        file_size = self._check_image(target_id, image_path, size, bps, warn=not short_info)
        if not short_info:
            self._banner("Verifying", target_id, f'with file "{image_path}"', offset, size, bps)
        with Device(self.device_path, mode='ro') as card:
            self._check_fit(card, offset, size)
            with ImageFile(image_path, 'rb') as img:
                self.phase = Phase.transferring
                card.seek(offset)
                return copy_blocks(card, img, file_size, CopyMode.compare, bps, progress=self.progress)
