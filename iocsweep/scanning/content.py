"""Read-only access to file content plus the hashes and timestamps derived from it."""

import hashlib
import mmap
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, NamedTuple, Union

from .models import SampleInfo


class FileHashes(NamedTuple):
    md5: str
    sha1: str
    sha256: str


@contextmanager
def mapped_content(path: Union[str, os.PathLike]) -> Iterator[memoryview]:
    """Map a file read-only and yield a bounds-checked, immutable view of it.

    Empty files cannot be mapped and yield an empty view. The view must not
    be kept past the with block.
    """
    with open(path, "rb") as f:
        size = os.fstat(f.fileno()).st_size
        if size == 0:
            with memoryview(b"") as view:
                yield view
            return
        with mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ) as mapped:
            with memoryview(mapped) as view:
                yield view


def compute_hashes(data: Union[bytes, memoryview]) -> FileHashes:
    return FileHashes(
        md5=hashlib.md5(data).hexdigest(),
        sha1=hashlib.sha1(data).hexdigest(),
        sha256=hashlib.sha256(data).hexdigest(),
    )


def format_timestamp(seconds: float) -> str:
    """UTC, whole seconds, fixed offset: ``2024-01-02T03:04:05+00:00``."""
    return datetime.fromtimestamp(int(seconds), tz=timezone.utc).isoformat()


def build_sample_info(hashes: FileHashes, stat_result: os.stat_result) -> SampleInfo:
    created = getattr(stat_result, "st_birthtime", None)
    if created is None:
        created = stat_result.st_ctime
    return SampleInfo(
        md5=hashes.md5,
        sha1=hashes.sha1,
        sha256=hashes.sha256,
        atime=format_timestamp(stat_result.st_atime),
        mtime=format_timestamp(stat_result.st_mtime),
        ctime=format_timestamp(created),
    )
