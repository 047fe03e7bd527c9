from __future__ import annotations

import pytest

from sizetrack.compression import to_bytes


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SIZE_TRACKER_MODE",
        "NODE_ENV",
        "SIZE_STORE_ENDPOINT",
        "GITHUB_ACTIONS",
        "TRAVIS",
        "GITLAB_CI",
        "CIRCLECI",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def raw_sizes(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the "compressed" size of a file equal to its raw length."""

    async def _asset_size(source, method="gzip") -> int:
        return len(to_bytes(source))

    async def _file_size(path, method="gzip") -> int:
        return len(path.read_bytes())

    monkeypatch.setattr("sizetrack.scanner.compressed_size", _asset_size)
    monkeypatch.setattr("sizetrack.scanner.compressed_file_size", _file_size)
