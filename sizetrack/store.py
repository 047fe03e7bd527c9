from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from sizetrack.models import Snapshot

logger = logging.getLogger(__name__)


def _read_history(path: Path) -> list[Snapshot]:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"Snapshot history must be a JSON array: {path}")
    history = [Snapshot.from_dict(item) for item in data]
    history.sort(key=lambda snapshot: snapshot.timestamp, reverse=True)
    return history


def _write_history(path: Path, history: list[Snapshot]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [snapshot.to_dict() for snapshot in history]
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh)


async def load_history(path: Path) -> list[Snapshot]:
    """Return the stored snapshots, newest first.

    A missing or unreadable history file is treated as an empty history.
    """
    try:
        return await asyncio.to_thread(_read_history, path)
    except FileNotFoundError:
        logger.debug("No snapshot history at %s", path)
    except (OSError, ValueError, KeyError, TypeError, ArithmeticError) as exc:
        logger.debug("Ignoring unreadable snapshot history at %s: %s", path, exc)
    return []


async def save_history(path: Path, history: list[Snapshot]) -> None:
    await asyncio.to_thread(_write_history, path, history)


async def prepend_snapshot(path: Path, snapshot: Snapshot) -> list[Snapshot]:
    history = await load_history(path)
    history.insert(0, snapshot)
    return history
