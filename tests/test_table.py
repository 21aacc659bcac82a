import pytest

from img2sd.table import PartitionTable, resolve
from img2sd.target import ScsiTarget
from img2sd.globals import max_targets
from img2sd.errors import InvalidTarget, TargetDisabled, BadGeometry, ConfigError


@pytest.fixture
def table() -> PartitionTable:
    return PartitionTable([
        ScsiTarget(target_id=0, enabled=True, sector_start=0, sector_count=311200, bytes_per_sector=512),
        ScsiTarget(target_id=3, enabled=True, sector_start=100, sector_count=200, bytes_per_sector=512),
        ScsiTarget(target_id=4, enabled=False, sector_start=400, sector_count=200, bytes_per_sector=512),
        ScsiTarget(target_id=5, enabled=True, sector_start=8, sector_count=8, bytes_per_sector=0),
        # larger than 32 bit byte offsets
        ScsiTarget(target_id=7, enabled=True, sector_start=1 << 24, sector_count=1 << 23, bytes_per_sector=2048),
    ])


@pytest.mark.parametrize('target_id,offset,size', [
    (0, 0, 311200 * 512),
    (3, 51200, 102400),
    (7, (1 << 24) * 2048, (1 << 23) * 2048),
])
def test_resolve(table: PartitionTable, target_id: int, offset: int, size: int):
    assert resolve(table, target_id) == (offset, size)
    assert table.resolve(target_id) == (offset, size)


@pytest.mark.parametrize('target_id', [-1, max_targets, 99])
def test_resolve_invalid(table: PartitionTable, target_id: int):
    with pytest.raises(InvalidTarget) as info:
        resolve(table, target_id)
    assert info.value.target_id == target_id
    assert isinstance(info.value, ConfigError)


@pytest.mark.parametrize('target_id', [1, 2, 4, 6])
def test_resolve_disabled(table: PartitionTable, target_id: int):
    with pytest.raises(TargetDisabled, match=f"Target id {target_id} not enabled"):
        resolve(table, target_id)


def test_resolve_needs_sector_size(table: PartitionTable):
    with pytest.raises(BadGeometry, match="invalid sector size 0"):
        resolve(table, 5)


@pytest.mark.parametrize('sector_start,sector_count,message', [
    (-100, 200, "invalid start sector -100"),
    (0, -2, "invalid sector count -2"),
    (-100, -200, "invalid start sector -100"),
])
def test_resolve_rejects_negative_geometry(sector_start: int, sector_count: int, message: str):
    table = PartitionTable([ScsiTarget(
        target_id=3, enabled=True, sector_start=sector_start, sector_count=sector_count, bytes_per_sector=512,
    )])
    with pytest.raises(BadGeometry, match=message) as info:
        resolve(table, 3)
    assert isinstance(info.value, ConfigError)
    assert info.value.exit_code == 2


def test_table_has_fixed_slots(table: PartitionTable):
    assert len(table) == max_targets
    assert [t.target_id for t in table] == list(range(max_targets))
    assert len(PartitionTable.empty()) == max_targets
    assert not any(t.enabled for t in PartitionTable.empty())


def test_table_rejects_bad_records():
    with pytest.raises(AssertionError):
        PartitionTable([ScsiTarget(target_id=max_targets)])
    with pytest.raises(AssertionError):
        PartitionTable([ScsiTarget(target_id=1), ScsiTarget(target_id=1)])


def test_records_are_frozen(table: PartitionTable):
    with pytest.raises(AttributeError):
        table[3].sector_start = 0    # type: ignore[misc]


def test_repr_lists_enabled(table: PartitionTable):
    s = repr(table)
    assert "targetId=3, enabled=1" in s
    assert "sectorStart=100, sectors=200, bytesPerSector=512" in s
    assert "targetId=4" not in s
    assert repr(PartitionTable.empty()) == "No enabled SCSI targets"
