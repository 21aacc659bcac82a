from pathlib import Path
from random import Random
import pytest


sample_config = Path(__file__).parent.parent / 'configs' / '4xRD54_rev471.xml'


def pattern(n: int, seed: int = 0) -> bytes:
    """reproducible noise, so a shifted or misplaced block never compares equal"""
    return Random(seed).randbytes(n)


def target_xml(
        target_id: int | str,
        enabled: bool = True,
        sector_start: int = 0,
        sector_count: int = 0,
        bytes_per_sector: int = 512,
        **extra: str,
    ) -> str:
    s = f'<SCSITarget id="{target_id}">\n'
    s += f'<enabled>{"true" if enabled else "false"}</enabled>\n'
    s += '<deviceType>0x0</deviceType>\n'
    s += f'<sdSectorStart>{sector_start}</sdSectorStart>\n'
    s += f'<scsiSectors>{sector_count}</scsiSectors>\n'
    s += f'<bytesPerSector>{bytes_per_sector}</bytesPerSector>\n'
    s += ''.join(f'<{tag}>{text}</{tag}>\n' for tag, text in extra.items())
    return s + '</SCSITarget>\n'


def write_config(dest: Path, *targets: str, root: str = 'SCSI2SD') -> Path:
    dest.write_text(f'<?xml version="1.0" encoding="UTF-8"?>\n<{root}>\n{"".join(targets)}</{root}>\n')
    return dest


@pytest.fixture
def card(tmp_path: Path) -> Path:
    """a 3 MiB file standing in for the SDcard"""
    p = tmp_path / "sdcard.img"
    p.write_bytes(pattern(3 << 20, seed=1))
    return p
