"""Diffing of current holdings against the ideal portfolio."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ..config.settings import EngineConfig, get_app_config
from ..datalake.schemas import AdjustAction, CurrentPosition, IdealPosition, RebalanceActions


def allocation_delta_pct(current_usd: float, ideal_usd: float) -> float:
    if current_usd <= 0:
        return 100.0
    return abs(ideal_usd - current_usd) / current_usd * 100


class PortfolioDiffer:
    """Turns a current/ideal pair into withdraw, add, and adjust actions."""

    def __init__(
        self,
        engine_config: EngineConfig | None = None,
        *,
        materiality_threshold_pct: float | None = None,
    ) -> None:
        config = engine_config or get_app_config().engine
        if materiality_threshold_pct is None:
            materiality_threshold_pct = config.materiality_threshold_pct
        self._threshold = materiality_threshold_pct

    def diff(
        self,
        current_positions: Iterable[CurrentPosition],
        ideal: Iterable[IdealPosition],
    ) -> RebalanceActions:
        current = list(current_positions)
        ideal_by_pool: Dict[str, IdealPosition] = {}
        for position in ideal:
            ideal_by_pool.setdefault(position.pool_address.lower(), position)
        held = {position.pool_address.lower() for position in current}

        to_withdraw: List[CurrentPosition] = []
        to_add: List[IdealPosition] = []
        to_adjust: List[AdjustAction] = []

        for position in current:
            target = ideal_by_pool.get(position.pool_address.lower())
            if target is None:
                to_withdraw.append(position)
                continue
            delta = allocation_delta_pct(position.allocation_usd, target.allocation_usd)
            if delta <= self._threshold:
                continue
            if target.allocation_usd > position.allocation_usd:
                to_add.append(target)
            else:
                to_adjust.append(
                    AdjustAction(
                        pool_address=position.pool_address,
                        from_usd=position.allocation_usd,
                        to_usd=target.allocation_usd,
                    )
                )

        for address, target in ideal_by_pool.items():
            if address not in held:
                to_add.append(target)

        to_withdraw.sort(key=lambda item: item.pool_address)
        to_add.sort(key=lambda item: item.pool_address)
        to_adjust.sort(key=lambda item: item.pool_address)
        return RebalanceActions(to_withdraw=to_withdraw, to_add=to_add, to_adjust=to_adjust)


__all__ = ["PortfolioDiffer", "allocation_delta_pct"]
