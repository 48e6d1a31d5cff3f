"""Adapters that turn collaborator snapshots into engine inputs."""

from __future__ import annotations

import math
from typing import Iterable, List, Mapping, Optional

from ..datalake.schemas import CandidatePool, CurrentPosition
from ..monitoring.logger import get_logger
from ..utils.constants import MAX_SAFE_INTEGER, round2

logger = get_logger(__name__)


class CapitalSourceError(ValueError):
    """Raised when no usable capital figure is supplied."""


def resolve_total_capital(
    total_capital_usd: Optional[float] = None,
    total_capital_units: Optional[int] = None,
) -> float:
    """Pick the capital figure the engine sizes against.

    There is no price oracle: integer native units stand in for USD when no
    USD figure is given.
    """

    if total_capital_usd is not None:
        value = float(total_capital_usd)
        if not math.isfinite(value):
            raise CapitalSourceError(f"total_capital_usd is not finite: {total_capital_usd!r}")
        return value
    if total_capital_units is None:
        raise CapitalSourceError("Missing total_capital_usd and no native-unit capital provided")
    units = int(total_capital_units)
    if units > MAX_SAFE_INTEGER:
        logger.warning(
            "Capping native-unit capital at %d", MAX_SAFE_INTEGER, extra={"units": str(units)}
        )
        units = MAX_SAFE_INTEGER
    return float(units)


def positions_from_onchain_amounts(
    amounts: Mapping[str, int],
    pools: Iterable[CandidatePool],
    total_capital_usd: float,
    *,
    yields: Optional[Mapping[str, float]] = None,
) -> List[CurrentPosition]:
    """Size positions from relative on-chain amounts against a known total.

    ``amounts`` maps pool address to the integer amount held there. Pools
    that are not in ``pools`` are ignored. Yields default to each pool's
    trailing yield unless overridden through ``yields``.
    """

    by_address = {pool.pool_address.lower(): pool for pool in pools}
    yield_overrides = {key.lower(): value for key, value in (yields or {}).items()}
    held = {
        address.lower(): int(amount)
        for address, amount in amounts.items()
        if address.lower() in by_address and int(amount) > 0
    }
    total_units = sum(held.values())
    if total_units <= 0:
        return []

    capital = max(total_capital_usd, 0.0)
    snapshots: List[CurrentPosition] = []
    for address, amount in held.items():
        pool = by_address[address]
        snapshots.append(
            CurrentPosition(
                position_id=f"onchain:{address}",
                pool_address=pool.pool_address,
                dex_name=pool.dex_name,
                token0_symbol=pool.token0_symbol,
                token1_symbol=pool.token1_symbol,
                allocation_usd=round2(capital * amount / total_units),
                current_yield_pct=yield_overrides.get(address, pool.trailing_30d_yield_pct),
            )
        )
    snapshots.sort(key=lambda item: item.pool_address)
    return snapshots


__all__ = ["CapitalSourceError", "positions_from_onchain_amounts", "resolve_total_capital"]
