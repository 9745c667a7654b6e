"""Tests for the allocation engine."""

import random

import pytest

import allocation
from allocation import (
    GRANULARITY,
    AllocationError,
    allocate,
    build_allocations,
    check_share,
    evenly,
    fairly,
)
from conftest import make_items


# ---------------------------------------------------------------------------
# evenly
# ---------------------------------------------------------------------------

class TestEvenly:

    def test_example(self):
        assert evenly(100, 3) == [34, 33, 33]

    @pytest.mark.parametrize(
        "total, count",
        [(0, 1), (0, 5), (1, 2), (59, 60), (28800, 3), (28800, 7), (86400, 10), (123457, 9)],
    )
    def test_sum_and_spread(self, total, count):
        shares = evenly(total, count)
        assert len(shares) == count
        assert sum(shares) == total
        assert max(shares) - min(shares) <= 1

    def test_extra_seconds_go_first(self):
        assert evenly(11, 4) == [3, 3, 3, 2]

    @pytest.mark.parametrize("total, count", [(-1, 3), (100, 0)])
    def test_rejects_bad_input(self, total, count):
        with pytest.raises(ValueError):
            evenly(total, count)


# ---------------------------------------------------------------------------
# fairly
# ---------------------------------------------------------------------------

class TestFairly:

    def test_single_item_gets_everything(self):
        assert fairly(100, 1) == [100]

    def test_sum_is_exact(self):
        rng = random.Random(42)
        totals = [0, 1, 59, 299, 300, 301, 3600, 28800, 28801, 86399, 86400]
        totals += list(range(0, 86401, 4999))
        for total in totals:
            for count in range(1, 11):
                shares = fairly(total, count, rng)
                assert len(shares) == count
                assert sum(shares) == total, (total, count, shares)
                assert all(s >= 0 for s in shares), (total, count, shares)

    def test_all_but_last_are_five_minute_blocks(self):
        shares = fairly(28800 + 17, 5, random.Random(7))
        assert all(s % GRANULARITY == 0 for s in shares[:-1])
        assert shares[-1] % GRANULARITY == 17

    def test_seeded_rng_is_reproducible(self):
        assert fairly(28800, 4, random.Random(3)) == fairly(28800, 4, random.Random(3))


# ---------------------------------------------------------------------------
# allocate / check_share / build_allocations
# ---------------------------------------------------------------------------

class TestAllocate:

    def test_dispatches_policy(self):
        assert allocate(100, 3, "evenly") == [34, 33, 33]
        assert allocate(100, 1, "fairly") == [100]

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="Unknown allocation policy"):
            allocate(100, 3, "randomly")


class TestCheckShare:

    @pytest.mark.parametrize("seconds", [60, 3600, 86400])
    def test_accepts(self, seconds):
        assert check_share(seconds) == seconds

    @pytest.mark.parametrize("seconds", [0, 59, 86401, 90.5, None])
    def test_rejects(self, seconds):
        with pytest.raises(AllocationError):
            check_share(seconds)


class TestBuildAllocations:

    def test_pairs_items_with_durations(self):
        items = make_items(3)
        allocations, dropped = build_allocations(items, 8 * 3600, "evenly")
        assert dropped == []
        assert [a.item.key for a in allocations] == ["PROJ-1", "PROJ-2", "PROJ-3"]
        assert [a.seconds for a in allocations] == [9600, 9600, 9600]
        assert [a.duration for a in allocations] == ["2h 40m"] * 3

    def test_drops_out_of_bound_share_only(self, monkeypatch):
        monkeypatch.setattr(allocation, "allocate", lambda total, count, policy, rng=None: [3600, 30, 3570])
        allocations, dropped = build_allocations(make_items(3), 7200, "fairly")
        assert [a.item.key for a in allocations] == ["PROJ-1", "PROJ-3"]
        assert len(dropped) == 1
        item, share, error = dropped[0]
        assert item.key == "PROJ-2"
        assert share == 30
        assert isinstance(error, AllocationError)

    def test_all_dropped_when_budget_too_thin(self):
        allocations, dropped = build_allocations(make_items(62), 3600, "evenly")
        assert allocations == []
        assert len(dropped) == 62
