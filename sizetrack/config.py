from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal

if TYPE_CHECKING:
    from sizetrack.models import DisplayItem, ReportData, Snapshot


CONFIG_FILENAME = ".sizetrack.json"
DEFAULT_PATTERN = "**/*.{mjs,js,jsx,css,html}"
DEFAULT_SNAPSHOT_FILENAME = "size-plugin.json"
DEFAULT_ENDPOINT = "https://size-store.now.sh"
DEFAULT_BRANCH = "master"
PRODUCTION_MODE = "production"
TEST_MODE = "test"

COMPRESSION_METHODS = ("gzip", "brotli")
ERROR_POLICIES = ("skip", "raise")
COLLISION_POLICIES = ("last", "sum", "error")

CompressionMethod = Literal["gzip", "brotli"]
ErrorPolicy = Literal["skip", "raise"]
CollisionPolicy = Literal["last", "sum", "error"]


def identity(filename: str) -> str:
    return filename


def environment_mode() -> str | None:
    return os.getenv("SIZE_TRACKER_MODE") or os.getenv("NODE_ENV") or None


def is_test_environment() -> bool:
    return environment_mode() == TEST_MODE


def default_endpoint() -> str:
    return os.getenv("SIZE_STORE_ENDPOINT") or DEFAULT_ENDPOINT


def regex_strip_hash(pattern: str) -> Callable[[str], str]:
    """Build a filename normalizer that deletes every match of ``pattern``.

    ``regex_strip_hash(r"\\.[0-9a-f]{8}(?=\\.)")`` maps ``main.1a2b3c4d.js``
    to ``main.js``.
    """
    compiled = re.compile(pattern)

    def strip_hash(filename: str) -> str:
        return compiled.sub("", filename)

    return strip_hash


@dataclass(frozen=True, slots=True)
class SizeTrackerConfig:
    pattern: str = DEFAULT_PATTERN
    exclude: str | None = None
    strip_hash: Callable[[str], str] = identity
    filename: str = DEFAULT_SNAPSHOT_FILENAME
    base_dir: str = field(default_factory=os.getcwd)
    write_file: bool = True
    publish: bool = False
    compression: CompressionMethod = "gzip"
    mode: str | None = field(default_factory=environment_mode)
    decorate_item: Callable[[str, DisplayItem], str | None] | None = None
    decorate_after: Callable[[ReportData], str | None] | None = None
    save: Callable[[Snapshot], Awaitable[None] | None] | None = None
    baseline_errors: ErrorPolicy = "skip"
    asset_errors: ErrorPolicy = "raise"
    collisions: CollisionPolicy = "last"
    default_branch: str = DEFAULT_BRANCH
    endpoint: str = field(default_factory=default_endpoint)

    def __post_init__(self) -> None:
        if self.compression not in COMPRESSION_METHODS:
            raise ValueError(
                f"Unsupported compression method: {self.compression!r}. "
                f"Use one of: {', '.join(COMPRESSION_METHODS)}."
            )
        for name in ("baseline_errors", "asset_errors"):
            if getattr(self, name) not in ERROR_POLICIES:
                raise ValueError(f"{name} must be one of {ERROR_POLICIES}, got {getattr(self, name)!r}")
        if self.collisions not in COLLISION_POLICIES:
            raise ValueError(f"collisions must be one of {COLLISION_POLICIES}, got {self.collisions!r}")
        if not self.pattern.strip():
            raise ValueError("pattern must not be empty")

    @property
    def filepath(self) -> Path:
        return Path(self.base_dir).resolve() / self.filename

    @property
    def is_production(self) -> bool:
        return self.mode == PRODUCTION_MODE


# Keys of SizeTrackerConfig that can be expressed in the JSON config file.
_FILE_KEYS = {
    "pattern",
    "exclude",
    "filename",
    "write_file",
    "publish",
    "compression",
    "mode",
    "baseline_errors",
    "asset_errors",
    "collisions",
    "default_branch",
    "endpoint",
}


def config_path(base_dir: Path | None = None) -> Path:
    return (base_dir or Path.cwd()).resolve() / CONFIG_FILENAME


def load_config_file(base_dir: Path | None = None) -> dict[str, Any]:
    """Read ``.sizetrack.json`` into keyword arguments for SizeTrackerConfig.

    A missing file yields an empty mapping. ``hash_pattern`` is turned into a
    ``strip_hash`` callable.
    """
    path = config_path(base_dir)
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)

    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")

    unknown = set(data) - _FILE_KEYS - {"hash_pattern"}
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {', '.join(sorted(unknown))}")

    options = {key: value for key, value in data.items() if key in _FILE_KEYS}
    hash_pattern = data.get("hash_pattern")
    if hash_pattern:
        options["strip_hash"] = regex_strip_hash(str(hash_pattern))
    return options
