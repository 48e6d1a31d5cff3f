"""Exact integer splitting of on-chain amounts by USD weight."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List


@dataclass(slots=True)
class WeightedItem:
    """A split target and its USD weight."""

    key: str
    usd_weight: float


def exact_weights(items: Iterable[WeightedItem]) -> Dict[str, int]:
    """Scale positive weights to integers sharing one power-of-ten exponent.

    Each float is read through its shortest decimal repr, so ``0.004`` stays
    ``4`` thousandths and never collapses to zero. Keys are merged
    case-insensitively; non-positive weights are dropped.
    """

    merged: Dict[str, Decimal] = {}
    for item in items:
        weight = Decimal(repr(float(item.usd_weight)))
        if not weight.is_finite():
            raise ValueError(f"weight for {item.key!r} is not finite: {item.usd_weight!r}")
        if weight <= 0:
            continue
        key = item.key.lower()
        merged[key] = merged.get(key, Decimal(0)) + weight
    if not merged:
        return {}
    exponent = min(value.as_tuple().exponent for value in merged.values())
    scale = max(-exponent, 0)
    return {key: int(value.scaleb(scale)) for key, value in merged.items()}


class UnitAllocator:
    """Largest-remainder apportionment of an integer total.

    Weights become exact integers before any arithmetic so the split never
    touches floating point and always sums to ``total``. Leftover units go
    to the largest remainders first, ties broken by key.
    """

    def allocate(self, items: Iterable[WeightedItem], total: int) -> Dict[str, int]:
        if isinstance(total, bool) or not isinstance(total, int):
            raise TypeError(f"total must be an int, got {type(total).__name__}")
        if total < 0:
            raise ValueError(f"total must be non-negative, got {total}")

        weights = exact_weights(items)
        result: Dict[str, int] = {}
        total_weight = sum(weights.values())
        if total <= 0 or total_weight <= 0:
            return result

        remainders: List[tuple] = []
        allocated = 0
        for key, weight in weights.items():
            base, remainder = divmod(total * weight, total_weight)
            result[key] = base
            allocated += base
            remainders.append((-remainder, key))

        leftover = total - allocated
        remainders.sort()
        # leftover < number of items, so a single pass suffices
        for _, key in remainders[:leftover]:
            result[key] += 1
        return result


__all__ = ["UnitAllocator", "WeightedItem", "exact_weights"]
