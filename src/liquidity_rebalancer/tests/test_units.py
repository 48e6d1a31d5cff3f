from __future__ import annotations

import random

import pytest

from liquidity_rebalancer.execution.units import UnitAllocator, WeightedItem, exact_weights


def _items(**weights: float):
    return [WeightedItem(key=key, usd_weight=value) for key, value in weights.items()]


def test_leftover_units_go_to_lowest_key_on_ties():
    shares = UnitAllocator().allocate(_items(a=1, b=1, c=1), 10)
    assert shares == {"a": 4, "b": 3, "c": 3}


def test_largest_remainder_wins():
    shares = UnitAllocator().allocate(_items(a=33.33, b=66.67), 7)
    assert shares == {"a": 2, "b": 5}


def test_weights_are_scaled_to_a_common_exponent():
    assert exact_weights(_items(a=19.99, b=0.1)) == {"a": 1999, "b": 10}
    assert exact_weights(_items(a=0.004, b=2)) == {"a": 4, "b": 2000}
    assert exact_weights(_items(a=1e20)) == {"a": 10**20}


def test_shares_always_sum_to_total():
    allocator = UnitAllocator()
    weights = _items(a=0.01, b=123.45, c=9_999.99, d=3.5)
    for total in (1, 7, 1_000, 10**18 + 3, 2**64 - 1):
        shares = allocator.allocate(weights, total)
        assert sum(shares.values()) == total
        assert all(value >= 0 for value in shares.values())


def test_sub_cent_weights_still_receive_the_full_total():
    shares = UnitAllocator().allocate(_items(a=0.004, b=0.006), 1_000)
    assert shares == {"a": 400, "b": 600}


@pytest.mark.parametrize("seed", range(20))
def test_any_positive_weights_sum_exactly(seed: int):
    rng = random.Random(seed)
    items = [
        WeightedItem(key=f"pool-{index}", usd_weight=rng.choice([1e-6, 0.003, 0.5]) * rng.random() + 1e-9)
        for index in range(rng.randint(1, 8))
    ]
    total = rng.randint(1, 10**20)

    shares = UnitAllocator().allocate(items, total)

    assert sum(shares.values()) == total
    assert set(shares) == {item.key for item in items}


def test_keys_are_merged_case_insensitively():
    shares = UnitAllocator().allocate(
        [WeightedItem("0xAB", 10), WeightedItem("0xab", 10), WeightedItem("0xcd", 20)], 100
    )
    assert shares == {"0xab": 50, "0xcd": 50}


def test_non_positive_weights_are_dropped():
    shares = UnitAllocator().allocate(_items(a=0, b=-5, c=2), 9)
    assert shares == {"c": 9}


def test_non_finite_weight_is_rejected():
    with pytest.raises(ValueError):
        UnitAllocator().allocate(_items(a=float("nan"), b=1), 9)


def test_zero_total_or_weight_yields_empty_split():
    allocator = UnitAllocator()
    assert allocator.allocate(_items(a=1), 0) == {}
    assert allocator.allocate(_items(a=0), 10) == {}
    assert allocator.allocate([], 10) == {}


def test_invalid_totals_raise():
    allocator = UnitAllocator()
    with pytest.raises(ValueError):
        allocator.allocate(_items(a=1), -1)
    with pytest.raises(TypeError):
        allocator.allocate(_items(a=1), 10.0)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        allocator.allocate(_items(a=1), True)
