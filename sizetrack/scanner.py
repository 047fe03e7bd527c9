from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Mapping

from sizetrack.compression import compressed_file_size, compressed_size
from sizetrack.config import SizeTrackerConfig
from sizetrack.filters import PathFilter, build_path_filter
from sizetrack.models import FilenameSizeMap
from sizetrack.reconcile import to_size_map

logger = logging.getLogger(__name__)


def _discover_candidates(root: Path, path_filter: PathFilter) -> list[tuple[Path, str]]:
    candidates: list[tuple[Path, str]] = []

    for file_path in sorted(root.rglob("*")):
        if not file_path.is_file():
            continue
        relative_path = file_path.relative_to(root).as_posix()
        if not path_filter.matches(relative_path):
            continue
        candidates.append((file_path, relative_path))

    return candidates


async def _skip_failure(name: str, pending: Awaitable[int]) -> int | None:
    try:
        return await pending
    except Exception as exc:
        logger.warning("Could not compute size of %s: %s", name, exc)
        return None


async def _gather_sizes(
    names: list[str], pending: list[Awaitable[int]], policy: str
) -> list[int | None]:
    if policy == "skip":
        pending = [_skip_failure(name, job) for name, job in zip(names, pending)]
    return list(await asyncio.gather(*pending))


async def scan_output_dir(
    root: Path | None,
    config: SizeTrackerConfig,
    *,
    path_filter: PathFilter | None = None,
) -> FilenameSizeMap:
    """Compute compressed sizes of the tracked files already on disk under ``root``."""
    if root is None or not root.is_dir():
        logger.debug("No output directory to scan for a baseline: %s", root)
        return {}

    path_filter = path_filter or build_path_filter(config.pattern, config.exclude)
    candidates = await asyncio.to_thread(_discover_candidates, root.resolve(), path_filter)
    names = [relative_path for _, relative_path in candidates]
    sizes = await _gather_sizes(
        names,
        [compressed_file_size(file_path, config.compression) for file_path, _ in candidates],
        config.baseline_errors,
    )
    return to_size_map(
        names, sizes, strip_hash=config.strip_hash, collisions=config.collisions
    )


def _source_of(asset: Any):
    if isinstance(asset, Mapping):
        return asset["source"]
    return getattr(asset, "source", asset)


async def scan_assets(
    assets: Mapping[str, Any],
    config: SizeTrackerConfig,
    *,
    path_filter: PathFilter | None = None,
) -> FilenameSizeMap:
    """Compute compressed sizes of the in-memory build assets that are tracked."""
    path_filter = path_filter or build_path_filter(config.pattern, config.exclude)
    names = path_filter.filter(assets.keys())
    sizes = await _gather_sizes(
        names,
        [compressed_size(_source_of(assets[name]), config.compression) for name in names],
        config.asset_errors,
    )
    return to_size_map(
        names, sizes, strip_hash=config.strip_hash, collisions=config.collisions
    )
