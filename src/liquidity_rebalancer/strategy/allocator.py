"""Greedy construction of the ideal portfolio."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

from ..config.preferences import Preferences
from ..datalake.schemas import IdealPosition, ScoredCandidate
from ..utils.constants import floor_cents


def ranking_key(candidate: ScoredCandidate) -> tuple:
    return (-candidate.effective_yield_pct, candidate.pool_address.lower())


def _to_ideal(candidate: ScoredCandidate, allocation_usd: Decimal) -> IdealPosition:
    pool = candidate.pool
    return IdealPosition(
        pool_address=pool.pool_address,
        dex_name=pool.dex_name,
        token0_symbol=pool.token0_symbol,
        token1_symbol=pool.token1_symbol,
        allocation_usd=float(allocation_usd),
        effective_yield_pct=candidate.effective_yield_pct,
        il_risk_factor=candidate.il_risk_factor,
    )


class PortfolioAllocator:
    """Fills position slots with the highest risk-adjusted yields first.

    Amounts are tracked as exact cents and rounded down, so the ideal
    portfolio never commits more than the available capital.
    """

    def build(
        self,
        total_capital_usd: float,
        candidates: Iterable[ScoredCandidate],
        prefs: Preferences,
    ) -> List[IdealPosition]:
        ranked = sorted(candidates, key=ranking_key)
        ideal: List[IdealPosition] = []
        if total_capital_usd <= 0 or not ranked:
            return ideal

        min_size = Decimal(repr(float(prefs.min_position_size_usd)))
        max_alloc = floor_cents(prefs.max_alloc_per_pos_usd)
        remaining = floor_cents(total_capital_usd)
        for candidate in ranked:
            if len(ideal) >= prefs.max_positions:
                break
            proposed = min(max_alloc, remaining)
            if proposed <= 0 or proposed < min_size:
                continue
            ideal.append(_to_ideal(candidate, proposed))
            remaining -= proposed
            if remaining <= 0 or remaining < min_size:
                break

        if remaining > min_size:
            self._sink_remainder(ideal, ranked, remaining, prefs)
        return ideal

    def _sink_remainder(
        self,
        ideal: List[IdealPosition],
        ranked: List[ScoredCandidate],
        remaining: Decimal,
        prefs: Preferences,
    ) -> None:
        target = self._remainder_sink(ranked)
        if target is None:
            return
        address = target.pool_address.lower()
        for position in ideal:
            if position.pool_address.lower() == address:
                position.allocation_usd = float(floor_cents(position.allocation_usd) + remaining)
                return
        if len(ideal) < prefs.max_positions:
            ideal.append(_to_ideal(target, remaining))
        elif ideal:
            ideal[0].allocation_usd = float(floor_cents(ideal[0].allocation_usd) + remaining)

    @staticmethod
    def _remainder_sink(ranked: List[ScoredCandidate]) -> Optional[ScoredCandidate]:
        stable = [candidate for candidate in ranked if candidate.il_risk_factor == 0.0]
        if not stable:
            return None
        return min(stable, key=lambda item: (-item.pool.tvl_usd, item.pool_address.lower()))


__all__ = ["PortfolioAllocator", "ranking_key"]
