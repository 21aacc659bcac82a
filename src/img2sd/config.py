"""
Load the SCSI2SD configuration XML written by scsi2sd-util.

Only the SCSITarget entries are of interest, a trimmed example:

    <SCSI2SD>
        <BoardConfig> ... </BoardConfig>
        <SCSITarget id="0">
            <enabled>true</enabled>
            <deviceType>0x0</deviceType>
            <sdSectorStart>0</sdSectorStart>
            <scsiSectors>311200</scsiSectors>
            <bytesPerSector>512</bytesPerSector>
            <sectorsPerTrack>17</sectorsPerTrack>
            <headsPerCylinder>15</headsPerCylinder>
            <vendor> DEC</vendor>
            <prodId>RD54</prodId>
            <revision>2.0</revision>
            <serial>1234567812345678</serial>
        </SCSITarget>
        ...
    </SCSI2SD>
"""
from typing import Any, Callable, Final
from pathlib import Path
from xml.etree import ElementTree
import logging

from .globals import max_targets
from .target import ScsiTarget
from .table import PartitionTable
from .errors import ConfigError


root_tag: Final = 'SCSI2SD'
target_tag: Final = 'SCSITarget'


def parse_int(text: str) -> int:
    """integer like C strtol(text, NULL, 0): decimal, 0x hex or 0 octal"""
    s = text.strip()
    try:
        return int(s, 0)
    except ValueError:
        pass
    # int(..., 0) refuses leading zeros, strtol reads them as octal
    digits = s.lstrip('+-')
    if len(digits) > 1 and digits[0] == '0' and digits.isdigit():
        return int(s, 8)
    raise ValueError(f"invalid integer {text!r}")


def parse_bool(text: str) -> bool:
    return text.strip() == 'true'


# XML element name -> (ScsiTarget field, converter)
_fields: Final[dict[str, tuple[str, Callable[[str], Any]]]] = {
    'enabled':          ('enabled', parse_bool),
    'deviceType':       ('device_type', parse_int),
    'sdSectorStart':    ('sector_start', parse_int),
    'scsiSectors':      ('sector_count', parse_int),
    'bytesPerSector':   ('bytes_per_sector', parse_int),
    'sectorsPerTrack':  ('sectors_per_track', parse_int),
    'headsPerCylinder': ('heads_per_cylinder', parse_int),
    'vendor':           ('vendor', str),
    'prodId':           ('product_id', str),
    'revision':         ('revision', str),
    'serial':           ('serial', str),
}


def parse_target(elt: ElementTree.Element, source: str) -> ScsiTarget:
    prop_id = elt.get('id')
    if prop_id is None:
        raise ConfigError(f"{source}: {target_tag} without id attribute")
    try:
        target_id = parse_int(prop_id)
    except ValueError:
        raise ConfigError(f"{source}: {target_tag} has invalid id {prop_id!r}")
    if not 0 <= target_id < max_targets:
        raise ConfigError(f"{source}: {target_tag} id {target_id} out of range 0..{max_targets-1}")

    values: dict[str, Any] = dict(target_id=target_id)
    for child in elt:
        field = _fields.get(child.tag)
        if field is None:
            logging.debug(f"parse_target: ignoring <{child.tag}> of target {target_id}")
            continue
        name, convert = field
        text = child.text or ''
        if convert is not str and not text.strip():
            raise ConfigError(f"{source}: <{child.tag}> of target {target_id} is empty")
        try:
            values[name] = convert(text)
        except ValueError as ex:
            raise ConfigError(f"{source}: <{child.tag}> of target {target_id}: {ex}")
    return ScsiTarget(**values)


def load_config(path: str | Path) -> PartitionTable:
    """
    Parse the XML document at path into a new PartitionTable.

    Any problem with the document raises ConfigError; a table is only
    returned when every SCSITarget entry was read successfully.
    """
    source = str(path)
    try:
        doc = ElementTree.parse(source)
    except OSError as ex:
        raise ConfigError(f"Can not read config file {source}: {ex.strerror or ex}")
    except ElementTree.ParseError as ex:
        raise ConfigError(f"XML Document {source} not parsed successfully: {ex}")

    root = doc.getroot()
    if root.tag != root_tag:
        raise ConfigError(f"XML document {source} of the wrong type, root node != {root_tag}")

    targets: dict[int, ScsiTarget] = {}
    for elt in root.findall(target_tag):
        t = parse_target(elt, source)
        if t.target_id in targets:
            raise ConfigError(f"{source}: duplicate {target_tag} id {t.target_id}")
        targets[t.target_id] = t

    table = PartitionTable(targets.values())
    logging.info(f"Read {len(targets)} SCSI targets from {source}, {len(table.enabled_targets)} enabled")
    return table
