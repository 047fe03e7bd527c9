from __future__ import annotations

from typing import Callable, Iterable, Sequence

from sizetrack.config import CollisionPolicy, identity
from sizetrack.models import FilenameSizeMap, SizeRecord, SnapshotFile


def to_size_map(
    filenames: Sequence[str],
    sizes: Sequence[int | None],
    *,
    strip_hash: Callable[[str], str] = identity,
    collisions: CollisionPolicy = "last",
) -> FilenameSizeMap:
    """Pair raw filenames with their sizes, keyed by the dehashed name.

    When two raw names dehash to the same key, ``collisions`` decides:
    ``last`` keeps the later size, ``sum`` adds them, ``error`` raises.
    """
    if len(filenames) != len(sizes):
        raise ValueError("filenames and sizes must have the same length")

    result: FilenameSizeMap = {}
    origins: dict[str, str] = {}
    for filename, size in zip(filenames, sizes):
        key = strip_hash(filename)
        if key in result:
            if collisions == "error":
                raise ValueError(
                    f"{filename!r} and {origins[key]!r} both normalize to {key!r}"
                )
            if collisions == "sum":
                previous = result[key]
                if previous is not None or size is not None:
                    size = (previous or 0) + (size or 0)
        result[key] = size
        origins[key] = filename
    return result


def snapshot_size_map(files: Iterable[SnapshotFile]) -> FilenameSizeMap:
    # Zero-size entries were absent in that build, not empty files.
    return {file.filename: file.size for file in files if file.size}


def reconcile(before: FilenameSizeMap, after: FilenameSizeMap) -> list[SizeRecord]:
    names = list(dict.fromkeys([*before, *after]))
    return [
        SizeRecord(
            filename=name,
            previous_size=before.get(name) or 0,
            current_size=after.get(name) or 0,
        )
        for name in names
    ]
