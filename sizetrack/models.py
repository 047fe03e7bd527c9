from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Callable, Union

# Keys are dehashed filenames. None marks a file whose size could not be computed.
FilenameSizeMap = dict[str, Union[int, None]]

AssetSource = Union[bytes, str, Callable[[], Union[bytes, str]]]


@dataclass(slots=True)
class Asset:
    source: AssetSource


@dataclass(frozen=True, slots=True)
class SizeRecord:
    filename: str
    previous_size: int
    current_size: int

    @property
    def delta(self) -> int:
        return self.current_size - self.previous_size


@dataclass(frozen=True, slots=True)
class SnapshotFile:
    filename: str
    previous: int
    size: int
    diff: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SnapshotFile:
        return cls(
            filename=str(data["filename"]),
            previous=int(data.get("previous") or 0),
            size=int(data.get("size") or 0),
            diff=int(data.get("diff") or 0),
        )


@dataclass(frozen=True, slots=True)
class Snapshot:
    timestamp: int
    files: tuple[SnapshotFile, ...] = ()

    @property
    def has_changes(self) -> bool:
        return any(file.diff != 0 for file in self.files)

    def to_dict(self) -> dict[str, Any]:
        return {"timestamp": self.timestamp, "files": [asdict(file) for file in self.files]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Snapshot:
        return cls(
            timestamp=int(data["timestamp"]),
            files=tuple(SnapshotFile.from_dict(item) for item in data.get("files") or ()),
        )


@dataclass(slots=True)
class DisplayItem:
    name: str
    size_before: int
    size: int
    delta: int
    size_text: str
    delta_text: str
    msg: str
    color: str


@dataclass(slots=True)
class RawSizes:
    sizes_before: FilenameSizeMap
    sizes: FilenameSizeMap


@dataclass(slots=True)
class ReportData:
    sizes: list[DisplayItem]
    raw: RawSizes
    output: str = ""
