from pathlib import Path
import logging
import pytest

from img2sd.config import load_config, parse_int
from img2sd.globals import max_targets, max_text_length
from img2sd.errors import ConfigError

from conftest import sample_config, target_xml, write_config


@pytest.mark.parametrize('text,expected', [
    ('0', 0),
    ('311200', 311200),
    (' 42 ', 42),
    ('0x0', 0),
    ('0x1F', 31),
    ('010', 8),
    ('-3', -3),
])
def test_parse_int(text: str, expected: int):
    assert parse_int(text) == expected


@pytest.mark.parametrize('text', ['', 'abc', '12x', '0x', '09'])
def test_parse_int_invalid(text: str):
    with pytest.raises(ValueError):
        parse_int(text)


def test_load_sample():
    table = load_config(sample_config)
    assert len(table) == max_targets
    assert [t.target_id for t in table.enabled_targets] == [0, 1, 2, 3]
    t = table[3]
    assert t.sector_start == 3 * 311200
    assert t.sector_count == 311200
    assert t.bytes_per_sector == 512
    assert t.sectors_per_track == 17
    assert t.heads_per_cylinder == 15
    assert t.vendor == ' DEC'
    assert t.product_id == 'RD54'
    assert t.revision == '2.0'
    assert t.serial == '1234567812345673'
    assert not table[5].enabled


def test_slots_match_target_ids(tmp_path: Path):
    cfg = write_config(tmp_path / "cfg.xml", target_xml(5, sector_count=10), target_xml(2, sector_count=20))
    table = load_config(cfg)
    assert [t.target_id for t in table] == list(range(max_targets))
    assert [t.target_id for t in table.enabled_targets] == [2, 5]
    assert table[0].sector_count == 0 and not table[0].enabled


def test_reload_starts_fresh(tmp_path: Path):
    first = load_config(write_config(tmp_path / "a.xml", target_xml(1, sector_count=10)))
    second = load_config(write_config(tmp_path / "b.xml", target_xml(2, sector_count=10)))
    assert first[1].enabled
    assert not second[1].enabled
    assert second[2].enabled


def test_unknown_elements_ignored(tmp_path: Path):
    cfg = write_config(tmp_path / "cfg.xml",
        '<BoardConfig><parity>false</parity></BoardConfig>\n',
        target_xml(0, sector_count=8, quirks='apple', deviceTypeModifier='0x0'),
    )
    assert load_config(cfg)[0].sector_count == 8


def test_long_text_truncated(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    cfg = write_config(tmp_path / "cfg.xml", target_xml(0, sector_count=8, vendor='V' * 300))
    with caplog.at_level(logging.WARNING):
        table = load_config(cfg)
    assert table[0].vendor == 'V' * max_text_length
    assert "truncating vendor" in caplog.text


@pytest.mark.parametrize('body,message', [
    (target_xml(8, sector_count=1), "out of range"),
    (target_xml(-1, sector_count=1), "out of range"),
    (target_xml('three', sector_count=1), "invalid id"),
    ('<SCSITarget><enabled>true</enabled></SCSITarget>', "without id"),
    (target_xml(1) + target_xml(1), "duplicate"),
    ('<SCSITarget id="0"><scsiSectors></scsiSectors></SCSITarget>', "is empty"),
    ('<SCSITarget id="0"><bytesPerSector>lots</bytesPerSector></SCSITarget>', "bytesPerSector"),
])
def test_malformed_targets(tmp_path: Path, body: str, message: str):
    cfg = write_config(tmp_path / "cfg.xml", body)
    with pytest.raises(ConfigError, match=message):
        load_config(cfg)


def test_wrong_root(tmp_path: Path):
    cfg = write_config(tmp_path / "cfg.xml", target_xml(0), root='SCSI2SDX')
    with pytest.raises(ConfigError, match="wrong type"):
        load_config(cfg)


def test_not_xml(tmp_path: Path):
    cfg = tmp_path / "cfg.xml"
    cfg.write_text("<SCSI2SD><SCSITarget id='0'>")
    with pytest.raises(ConfigError, match="not parsed"):
        load_config(cfg)


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="Can not read"):
        load_config(tmp_path / "nothere.xml")
