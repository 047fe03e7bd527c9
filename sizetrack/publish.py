from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from sizetrack.ci import PULL_REQUEST, PUSH, CiContext, detect_ci
from sizetrack.config import DEFAULT_BRANCH, default_endpoint, is_test_environment
from sizetrack.models import Snapshot

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0


@dataclass(slots=True)
class SizeStorePublisher:
    """Best-effort client for the remote size store.

    Diffs are posted for pull requests, full histories for pushes to the
    default branch. Network errors are logged and never raised.
    """

    endpoint: str = field(default_factory=default_endpoint)
    ci: CiContext = field(default_factory=detect_ci)
    suppressed: bool = field(default_factory=is_test_environment)
    default_branch: str = DEFAULT_BRANCH
    timeout: float = REQUEST_TIMEOUT_SECONDS

    def _post(self, path: str, params: dict[str, Any]) -> None:
        url = f"{self.endpoint.rstrip('/')}/{path}"
        response = requests.post(url, json=params, timeout=self.timeout)
        response.raise_for_status()

    async def _send(self, path: str, params: dict[str, Any], what: str) -> bool:
        try:
            await asyncio.to_thread(self._post, path, params)
        except requests.RequestException as exc:
            logger.error("error: while publishing %s: %s", what, exc)
            return False
        logger.debug("Published %s to %s", what, self.endpoint)
        return True

    async def publish_diff(self, snapshot: Snapshot, filename: str) -> bool:
        if self.suppressed or not self.ci.in_ci or self.ci.event != PULL_REQUEST:
            logger.debug("Skipping diff publish (ci=%s, event=%s)", self.ci.ci, self.ci.event)
            return False
        params = self.ci.payload() | {"filename": filename, "diff": snapshot.to_dict()}
        return await self._send("diff", params, "diff")

    async def publish_sizes(self, history: list[Snapshot], filename: str) -> bool:
        if (
            self.suppressed
            or not self.ci.in_ci
            or self.ci.event != PUSH
            or self.ci.branch != self.default_branch
        ):
            logger.debug(
                "Skipping size publish (ci=%s, event=%s, branch=%s)",
                self.ci.ci,
                self.ci.event,
                self.ci.branch,
            )
            return False
        params = self.ci.payload() | {
            "filename": filename,
            "size": [snapshot.to_dict() for snapshot in history],
        }
        return await self._send("size", params, "sizes")
