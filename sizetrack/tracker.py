from __future__ import annotations

import inspect
import logging
import time
from pathlib import Path
from typing import Any, Callable, Mapping

from sizetrack.ci import CiContext, detect_ci
from sizetrack.config import SizeTrackerConfig
from sizetrack.filters import build_path_filter
from sizetrack.models import DisplayItem, FilenameSizeMap, Snapshot, SnapshotFile
from sizetrack.publish import SizeStorePublisher
from sizetrack.reconcile import reconcile, snapshot_size_map
from sizetrack.report import HookFormatter, ReportFormatter, build_report, render_plain
from sizetrack.scanner import scan_assets, scan_output_dir
from sizetrack.store import load_history, prepend_snapshot, save_history

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class SizeTracker:
    """Compare compressed build output sizes against the last recorded snapshot.

    ``output_sizes`` runs one invocation: load the baseline, scan the current
    assets, reconcile both maps, format the report and save the new snapshot
    when the mode and deltas allow it.
    """

    def __init__(
        self,
        config: SizeTrackerConfig | None = None,
        *,
        formatter: ReportFormatter | None = None,
        publisher: SizeStorePublisher | None = None,
        ci: CiContext | None = None,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self.config = config or SizeTrackerConfig()
        self.formatter = formatter or HookFormatter(
            item_hook=self.config.decorate_item,
            after_hook=self.config.decorate_after,
        )
        self.publisher = publisher or SizeStorePublisher(
            endpoint=self.config.endpoint,
            ci=ci if ci is not None else detect_ci(),
            default_branch=self.config.default_branch,
        )
        self.path_filter = build_path_filter(self.config.pattern, self.config.exclude)
        self._clock = clock

    async def load_baseline(self, output_dir: Path | str | None) -> FilenameSizeMap:
        history = await load_history(self.config.filepath)
        if history:
            return snapshot_size_map(history[0].files)
        logger.debug("No recorded snapshot; scanning %s for a baseline", output_dir)
        root = Path(output_dir) if output_dir is not None else None
        return await scan_output_dir(root, self.config, path_filter=self.path_filter)

    async def scan_assets(self, assets: Mapping[str, Any]) -> FilenameSizeMap:
        return await scan_assets(assets, self.config, path_filter=self.path_filter)

    def build_snapshot(self, items: list[DisplayItem]) -> Snapshot:
        return Snapshot(
            timestamp=self._clock(),
            files=tuple(
                SnapshotFile(
                    filename=item.name,
                    previous=item.size_before,
                    size=item.size,
                    diff=item.size - item.size_before,
                )
                for item in items
            ),
        )

    async def write_snapshot(self, snapshot: Snapshot) -> bool:
        config = self.config
        if not config.is_production or not snapshot.has_changes:
            logger.debug(
                "Not saving snapshot (mode=%s, changes=%s)", config.mode, snapshot.has_changes
            )
            return False

        history = await prepend_snapshot(config.filepath, snapshot)
        if config.write_file:
            await save_history(config.filepath, history)
            logger.info("Saved snapshot of %d file(s) to %s", len(snapshot.files), config.filepath)
        if config.publish:
            await self.publisher.publish_sizes(history, config.filename)
        return True

    async def save(self, items: list[DisplayItem]) -> Snapshot:
        snapshot = self.build_snapshot(items)
        if self.config.publish:
            await self.publisher.publish_diff(snapshot, self.config.filename)
        if self.config.save is not None:
            result = self.config.save(snapshot)
            if inspect.isawaitable(result):
                await result
        await self.write_snapshot(snapshot)
        return snapshot

    async def output_sizes(
        self,
        assets: Mapping[str, Any],
        output_dir: Path | str | None = None,
        *,
        markup: bool = False,
    ) -> str:
        """Return the size report, as plain text or with rich colour markup."""
        sizes_before = await self.load_baseline(output_dir)
        sizes_after = await self.scan_assets(assets)
        records = reconcile(sizes_before, sizes_after)
        items, output = build_report(records, sizes_before, sizes_after, self.formatter)
        await self.save(items)
        return output if markup else render_plain(output)
