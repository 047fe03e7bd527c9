from __future__ import annotations

import pytest

from sizetrack.config import regex_strip_hash
from sizetrack.models import SnapshotFile
from sizetrack.reconcile import reconcile, snapshot_size_map, to_size_map


def test_reconcile_scenario_orders_before_keys_first() -> None:
    before = {"a.js": 100, "b.js": 200}
    after = {"a.js": 150, "c.js": 50}

    records = reconcile(before, after)

    assert [(r.filename, r.previous_size, r.current_size, r.delta) for r in records] == [
        ("a.js", 100, 150, 50),
        ("b.js", 200, 0, -200),
        ("c.js", 0, 50, 50),
    ]


def test_reconcile_covers_union_once() -> None:
    before = {"x.js": 1, "y.js": 2, "z.js": 3}
    after = {"z.js": 4, "w.js": 5, "x.js": 6}

    records = reconcile(before, after)
    names = [record.filename for record in records]

    assert names == ["x.js", "y.js", "z.js", "w.js"]
    assert len(names) == len(set(names))
    for record in records:
        assert record.delta == record.current_size - record.previous_size


def test_reconcile_treats_unknown_size_as_zero() -> None:
    records = reconcile({"a.js": None}, {"a.js": 10})
    assert records[0].previous_size == 0
    assert records[0].delta == 10


def test_reconcile_empty_maps() -> None:
    assert reconcile({}, {}) == []


def test_to_size_map_last_write_wins_by_default() -> None:
    strip = regex_strip_hash(r"\.[0-9a-f]{4}(?=\.js$)")
    sizes = to_size_map(["main.aaaa.js", "other.js", "main.bbbb.js"], [10, 5, 20], strip_hash=strip)

    assert sizes == {"main.js": 20, "other.js": 5}
    assert list(sizes) == ["main.js", "other.js"]


def test_to_size_map_sum_policy_adds_collisions() -> None:
    sizes = to_size_map(
        ["a.1.js", "a.2.js", "b.js"],
        [10, 20, None],
        strip_hash=lambda name: name.replace(".1", "").replace(".2", ""),
        collisions="sum",
    )
    assert sizes == {"a.js": 30, "b.js": None}


def test_to_size_map_error_policy_rejects_collisions() -> None:
    with pytest.raises(ValueError, match="both normalize to 'a.js'"):
        to_size_map(
            ["a.1.js", "a.2.js"],
            [10, 20],
            strip_hash=lambda name: "a.js",
            collisions="error",
        )


def test_snapshot_size_map_drops_zero_sizes() -> None:
    files = [
        SnapshotFile(filename="gone.js", previous=40, size=0, diff=-40),
        SnapshotFile(filename="kept.js", previous=10, size=12, diff=2),
    ]
    assert snapshot_size_map(files) == {"kept.js": 12}
