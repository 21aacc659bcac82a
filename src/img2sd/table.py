from typing import Iterable, Iterator, Self
import logging

from .globals import max_targets
from .target import ScsiTarget
from .errors import InvalidTarget, TargetDisabled, BadGeometry


class PartitionTable:
    """
    The SCSI targets configured on one SDcard, indexed by SCSI id.

    The table always has `max_targets` slots. Ids not given to the constructor
    get a disabled, zeroed record so that slot i always describes target i.
    The table is never modified after construction.
    """

    def __init__(self, targets: Iterable[ScsiTarget] = ()):
        slots = [ScsiTarget.disabled(i) for i in range(max_targets)]
        seen: set[int] = set()
        for t in targets:
            assert 0 <= t.target_id < max_targets, \
                f"PartitionTable: target id {t.target_id} out of range 0..{max_targets-1}"
            assert t.target_id not in seen, f"PartitionTable: duplicate target id {t.target_id}"
            seen.add(t.target_id)
            slots[t.target_id] = t
        self._slots = tuple(slots)

    def __repr__(self):
        return "\n".join(repr(t) for t in self.enabled_targets) or "No enabled SCSI targets"

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[ScsiTarget]:
        return iter(self._slots)

    def __getitem__(self, target_id: int) -> ScsiTarget:
        if not 0 <= target_id < len(self._slots):
            raise InvalidTarget(target_id)
        return self._slots[target_id]

    @classmethod
    def empty(cls) -> Self:
        return cls()

    @property
    def enabled_targets(self) -> list[ScsiTarget]:
        return [t for t in self._slots if t.enabled]

    def resolve(self, target_id: int) -> tuple[int, int]:
        return resolve(self, target_id)


def resolve(table: PartitionTable, target_id: int) -> tuple[int, int]:
    """
    Return (byte_offset, byte_size) of an enabled target.

    Raises InvalidTarget for ids outside the table, TargetDisabled for
    disabled targets and BadGeometry if no sector size is configured or
    the partition would start or extend below byte 0.
    """
    target = table[target_id]
    if not target.enabled:
        raise TargetDisabled(target_id)
    if target.bytes_per_sector <= 0:
        raise BadGeometry(target_id, 'sector size', target.bytes_per_sector)
    if target.sector_start < 0:
        raise BadGeometry(target_id, 'start sector', target.sector_start)
    if target.sector_count < 0:
        raise BadGeometry(target_id, 'sector count', target.sector_count)
    logging.debug(f"resolve: target {target_id} at {target.byte_offset} size {target.byte_size}")
    return target.byte_offset, target.byte_size
