from typing import ClassVar, Self
from dataclasses import dataclass, replace
import logging

from .globals import max_text_length


def bounded_text(name: str, value: str) -> str:
    """clip an informational string to the length SCSI2SD stores"""
    if len(value) > max_text_length:
        logging.warning(f"ScsiTarget: truncating {name} {value[:16]!r}... at {max_text_length} characters")
        return value[:max_text_length]
    return value


@dataclass(kw_only=True, frozen=True, repr=False)
class ScsiTarget:
    """
    One SCSI target, i.e. one disk partition on the SDcard.

        SDcard
        +--------------+-----------------------------+---------
        |     ...      |  target n                   |   ...
        +--------------+-----------------------------+---------
        ^              ^                             ^
        0              sector_start * bytes/sector   (sector_start + sector_count) * bytes/sector
    """
    empty: ClassVar['ScsiTarget']

    target_id: int
    enabled: bool = False
    device_type: int = 0        # 0 for disk

    sector_start: int = 0       # start position for this drive on SDcard, in sectors
    sector_count: int = 0       # drive size, in sectors

    bytes_per_sector: int = 0
    sectors_per_track: int = 0  # info
    heads_per_cylinder: int = 0 # info
    vendor: str = ''
    product_id: str = ''
    revision: str = ''
    serial: str = ''

    def __post_init__(self):
        for name in ('vendor', 'product_id', 'revision', 'serial'):
            # frozen, so bypass __setattr__
            object.__setattr__(self, name, bounded_text(name, getattr(self, name)))

    def __repr__(self):
        return (
            f"targetId={self.target_id:d}, enabled={self.enabled:d}, devicetype={self.device_type:d},\n"
            f"  sectorStart={self.sector_start:d}, sectors={self.sector_count:d}, "
            f"bytesPerSector={self.bytes_per_sector:d}, sectorsPerTrack={self.sectors_per_track:d}, "
            f"headsPerCylinder={self.heads_per_cylinder:d},\n"
            f"  vendor={self.vendor}, prodId={self.product_id}, revision={self.revision}, serial={self.serial}"
        )

    @property
    def byte_offset(self) -> int:
        return self.sector_start * self.bytes_per_sector

    @property
    def byte_size(self) -> int:
        return self.sector_count * self.bytes_per_sector

    @classmethod
    def disabled(kls, target_id: int) -> Self:
        return replace(kls.empty, target_id=target_id)


ScsiTarget.empty = ScsiTarget(target_id=0)
