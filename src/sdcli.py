from typing import Annotated, Callable, Iterator, NoReturn
from contextlib import contextmanager
import logging
import typer
from typer import Option, Argument
from typer_di import TyperDI, Depends
from pathlib import Path
from rich.progress import Progress, TextColumn, BarColumn

from img2sd.config import load_config
from img2sd.device import device_path
from img2sd.table import PartitionTable
from img2sd.transfer import PartitionTransfer
from img2sd.copier import Progress as ProgressCallback
from img2sd.errors import Img2sdError


logging.basicConfig(level=logging.WARN)

app = TyperDI(help="Moves SimH disk images from and to SCSI2SD SDcard partitions")


def fail(ex: Img2sdError) -> NoReturn:
    print(ex)
    raise typer.Exit(ex.exit_code)


def get_verbose(verbose: Annotated[bool, Option("--verbose", "-v", help="Verbose output")] = False) -> bool:
    logging.getLogger().setLevel(logging.INFO if verbose else logging.WARN)
    return verbose


def get_table(xml: Annotated[Path, Option(
        "--xml", "-x", help="Path to SCSI2SD geometry config file (XML) from scsi2sd-util")]) -> PartitionTable:
    try:
        return load_config(xml)
    except Img2sdError as ex:
        fail(ex)


def get_device(device: Annotated[str, Option(
        "--device", "-d", help="Raw SDcard device, e.g. sdb for /dev/sdb. Check `dmesg | tail` after plugging in")]) -> str:
    return device_path(device)


def get_target_id(target_id: Annotated[int, Argument(help="SCSI target id")]) -> int:
    return target_id


def get_image(image: Annotated[Path, Argument(help="Disk image file")]) -> Path:
    return image


@contextmanager
def progress_bar(verb: str, enabled: bool) -> Iterator[ProgressCallback | None]:
    if not enabled:
        yield None
        return
    with Progress(
            TextColumn(f"{verb} completed"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
        ) as bar:
        task = bar.add_task(verb, total=100)
        yield lambda percent: bar.update(task, completed=percent)


def run_transfer(
        verb: str,
        table: PartitionTable,
        device: str,
        verbose: bool,
        action: Callable[[PartitionTransfer], int],
    ):
    try:
        with progress_bar(verb, verbose) as progress:
            n = action(PartitionTransfer(table, device, progress))
    except Img2sdError as ex:
        fail(ex)
    logging.info(f"{verb} completed, {n} bytes")


@app.command()
def targets(
        table: PartitionTable = Depends(get_table),
    ):
    """
    Show the enabled SCSI targets of the config file
    """
    print(table)


@app.command()
def read(
        verbose: bool = Depends(get_verbose),
        device: str = Depends(get_device),
        table: PartitionTable = Depends(get_table),
        target_id: int = Depends(get_target_id),
        image: Path = Depends(get_image),
    ):
    """
    Read disk image from SDcard partition.

    `read -d sdb -x 4xRD54.xml 3 rsxdata.img` saves the partition of SCSI ID #3 as file "rsxdata.img".
    """
    run_transfer("Read", table, device, verbose, lambda t: t.read(target_id, image))


@app.command()
def write(
        verbose: bool = Depends(get_verbose),
        device: str = Depends(get_device),
        table: PartitionTable = Depends(get_table),
        target_id: int = Depends(get_target_id),
        image: Path = Depends(get_image),
    ):
    """
    Write disk image into SDcard partition. Size must fit!

    `write -d sdb -x 4xRD54.xml 0 rt1157.rd54` copies "rt1157.rd54" onto the partition of drive #0.
    Offset and size on the SDcard are taken from the XML config file.
    """
    run_transfer("Write", table, device, verbose, lambda t: t.write(target_id, image))


@app.command()
def compare(
        verbose: bool = Depends(get_verbose),
        device: str = Depends(get_device),
        table: PartitionTable = Depends(get_table),
        target_id: int = Depends(get_target_id),
        image: Path = Depends(get_image),
    ):
    """
    Compare disk image file with SDcard partition.
    """
    run_transfer("Verify", table, device, verbose, lambda t: t.verify(target_id, image))


@app.command()
def writecompare(
        verbose: bool = Depends(get_verbose),
        device: str = Depends(get_device),
        table: PartitionTable = Depends(get_table),
        target_id: int = Depends(get_target_id),
        image: Path = Depends(get_image),
    ):
    """
    First write, then compare
    """
    run_transfer("Write", table, device, verbose, lambda t: t.write(target_id, image))
    run_transfer("Verify", table, device, verbose, lambda t: t.verify(target_id, image, short_info=True))


if __name__ == "__main__":
    app()
