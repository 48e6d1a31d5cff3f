"""Conversion of approved decisions into integer-unit dispatch instructions."""

from __future__ import annotations

from typing import List, Optional

from ..datalake.schemas import Decision, DispatchInstruction
from .units import UnitAllocator, WeightedItem


def plan_dispatch(
    decision: Decision,
    amount_units: int,
    *,
    allocator: Optional[UnitAllocator] = None,
) -> List[DispatchInstruction]:
    """Split ``amount_units`` across the decision's add targets.

    Gated-off decisions produce no instructions. Targets whose share rounds
    to zero units are dropped.
    """

    if not decision.should_execute or not decision.actions.to_add:
        return []
    splitter = allocator or UnitAllocator()
    shares = splitter.allocate(
        (
            WeightedItem(key=target.pool_address, usd_weight=target.allocation_usd)
            for target in decision.actions.to_add
        ),
        amount_units,
    )
    instructions: List[DispatchInstruction] = []
    for target in decision.actions.to_add:
        units = shares.pop(target.pool_address.lower(), 0)
        if units <= 0:
            continue
        instructions.append(
            DispatchInstruction(
                pool_address=target.pool_address,
                dex_name=target.dex_name,
                amount_units=units,
                target_usd=target.allocation_usd,
            )
        )
    instructions.sort(key=lambda item: item.pool_address)
    return instructions


__all__ = ["plan_dispatch"]
