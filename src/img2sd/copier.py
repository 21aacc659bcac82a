from typing import Callable, Protocol
from enum import Enum
from bitarray import bitarray
import logging

from .globals import chunk_size as default_chunk_size, default_sector_size
from .errors import ShortRead, ShortWrite, DataMismatch


class CopyMode(str, Enum):
    copy = "copy"
    compare = "compare"


class Readable(Protocol):
    def readinto(self, buf, /) -> int | None: ...


class Writable(Protocol):
    def write(self, data, /) -> int | None: ...


Progress = Callable[[int], None]


def read_exact(stream: Readable, view: memoryview, offset: int):
    """fill view completely from stream, a stream ending early is a ShortRead"""
    n = len(view)
    got = 0
    while got < n:
        k = stream.readinto(view[got:])
        if not k:
            raise ShortRead(offset, n, got)
        got += k


def copy_blocks(
        source: Readable,
        destination: Readable | Writable,
        size: int,
        mode: CopyMode = CopyMode.copy,
        sector_size: int = default_sector_size,
        chunk_size: int = default_chunk_size,
        progress: Progress | None = None,
    ) -> int:
    """
    Copy (or compare) exactly `size` bytes from the current position of source
    to the current position of destination, `chunk_size` bytes at a time.

    In compare mode destination is read instead of written. The whole range is
    always compared; mismatching sectors are collected and the first one is
    reported with a DataMismatch once the end is reached.

    progress, if given, is called with the completed percentage whenever it grows.
    Returns the number of bytes transferred.
    """
    assert size >= 0, f"copy_blocks: negative size {size}"
    assert chunk_size > 0 and sector_size > 0, \
        f"copy_blocks: bad chunk size {chunk_size} or sector size {sector_size}"

    compare = mode == CopyMode.compare
    # one buffer per stream for the whole transfer
    buf = memoryview(bytearray(min(size, chunk_size)))
    other = memoryview(bytearray(len(buf) if compare else 0))
    mismatches = bitarray((size + sector_size - 1) // sector_size if compare else 0)
    mismatches.setall(0)
    first_mismatch: int | None = None

    done = 0
    percent = 0
    remaining = size
    while remaining > 0:
        n = min(remaining, chunk_size)
        view = buf[:n]
        read_exact(source, view, done)
        if not compare:
            written = destination.write(view) or 0   # type: ignore[union-attr]
            if written != n:
                raise ShortWrite(done, n, written)
        else:
            other_view = other[:n]
            read_exact(destination, other_view, done)     # type: ignore[arg-type]
            if view != other_view:
                first = _mark_mismatches(mismatches, view, other_view, done, sector_size)
                if first_mismatch is None:
                    first_mismatch = first
                    logging.debug(f"copy_blocks: first mismatch at byte {first}")
        remaining -= n
        done += n
        logging.debug(f"copy_blocks: {mode.value} {done} of {size} bytes")
        if progress:
            p = done * 100 // size
            if p > percent:
                percent = p
                progress(p)

    if first_mismatch is not None:
        start = (first_mismatch // sector_size) * sector_size
        raise DataMismatch(
            first_offset=first_mismatch,
            start=start,
            end=min(start + sector_size, size),
            mismatched_sectors=mismatches.count(),
        )
    return done


def _mark_mismatches(mismatches: bitarray, a: memoryview, b: memoryview, offset: int, sector_size: int) -> int:
    """flag sectors in [offset, offset+len(a)) where a and b differ, return first differing byte"""
    first: int | None = None
    end = offset + len(a)
    for sector in range(offset // sector_size, (end - 1) // sector_size + 1):
        lo = max(sector * sector_size, offset) - offset
        hi = min((sector + 1) * sector_size, end) - offset
        if a[lo:hi] == b[lo:hi]:
            continue
        mismatches[sector] = 1
        if first is None:
            first = offset + next(i for i in range(lo, hi) if a[i] != b[i])
    assert first is not None, "_mark_mismatches: called without a difference"
    return first
