from __future__ import annotations

import json
from pathlib import Path

import pytest

from sizetrack.models import Snapshot, SnapshotFile
from sizetrack.store import load_history, prepend_snapshot, save_history


def _snapshot(timestamp: int, size: int = 10) -> Snapshot:
    return Snapshot(
        timestamp=timestamp,
        files=(SnapshotFile(filename="a.js", previous=0, size=size, diff=size),),
    )


@pytest.mark.asyncio
async def test_missing_history_is_empty(tmp_path: Path) -> None:
    assert await load_history(tmp_path / "size-plugin.json") == []


@pytest.mark.asyncio
async def test_corrupt_history_is_empty(tmp_path: Path) -> None:
    path = tmp_path / "size-plugin.json"
    path.write_text("{not json", encoding="utf-8")
    assert await load_history(path) == []

    path.write_text('{"timestamp": 1}', encoding="utf-8")
    assert await load_history(path) == []

    path.write_text('[{"timestamp": 1e400, "files": []}]', encoding="utf-8")
    assert await load_history(path) == []


@pytest.mark.asyncio
async def test_history_is_sorted_newest_first(tmp_path: Path) -> None:
    path = tmp_path / "size-plugin.json"
    path.write_text(
        json.dumps(
            [
                {"timestamp": 1, "files": []},
                {"timestamp": 3, "files": [{"filename": "a.js", "previous": 1, "size": 2, "diff": 1}]},
                {"timestamp": 2, "files": []},
            ]
        ),
        encoding="utf-8",
    )

    history = await load_history(path)

    assert [snapshot.timestamp for snapshot in history] == [3, 2, 1]
    assert history[0].files == (SnapshotFile(filename="a.js", previous=1, size=2, diff=1),)


@pytest.mark.asyncio
async def test_saved_history_uses_plugin_file_format(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "size-plugin.json"

    await save_history(path, [_snapshot(5, size=7)])

    assert json.loads(path.read_text(encoding="utf-8")) == [
        {"timestamp": 5, "files": [{"filename": "a.js", "previous": 0, "size": 7, "diff": 7}]}
    ]


@pytest.mark.asyncio
async def test_prepend_snapshot_puts_new_snapshot_first(tmp_path: Path) -> None:
    path = tmp_path / "size-plugin.json"
    await save_history(path, [_snapshot(2), _snapshot(1)])

    history = await prepend_snapshot(path, _snapshot(3))

    assert [snapshot.timestamp for snapshot in history] == [3, 2, 1]
