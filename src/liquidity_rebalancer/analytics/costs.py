"""Transaction cost and expected profit estimates for a proposed rebalance."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from ..config.preferences import Preferences
from ..config.settings import EngineConfig, get_app_config
from ..datalake.schemas import CurrentPosition, DecisionMetrics, IdealPosition, RebalanceActions
from ..utils.constants import DAYS_PER_YEAR, round2, round4


def weighted_yield_pct(items: Iterable[Tuple[float, float]], total_capital_usd: float) -> float:
    """Capital-weighted yield of ``(allocation_usd, yield_pct)`` pairs."""

    if total_capital_usd <= 0:
        return 0.0
    total = sum(allocation * yield_pct for allocation, yield_pct in items)
    return round4(total / total_capital_usd)


class CostBenefitEstimator:
    """Weighs one-off gas spend against the projected yield uplift."""

    def __init__(self, engine_config: EngineConfig | None = None) -> None:
        self._config = engine_config or get_app_config().engine

    def estimate_gas_usd(self, withdraw_count: int, add_count: int, expected_gas_usd: float) -> float:
        # withdrawals include a swap back into the base asset
        withdraw_cost = withdraw_count * self._config.withdraw_gas_coefficient * expected_gas_usd
        add_cost = add_count * self._config.add_gas_coefficient * expected_gas_usd
        return round2(withdraw_cost + add_cost)

    def estimate_profit_usd(
        self,
        current_weighted_yield_pct: float,
        ideal_weighted_yield_pct: float,
        total_capital_usd: float,
    ) -> float:
        diff_pct = ideal_weighted_yield_pct - current_weighted_yield_pct
        horizon = self._config.profit_horizon_days / DAYS_PER_YEAR
        return round2(diff_pct / 100 * total_capital_usd * horizon)

    def evaluate(
        self,
        *,
        current_positions: Sequence[CurrentPosition],
        ideal_positions: Sequence[IdealPosition],
        actions: RebalanceActions,
        total_capital_usd: float,
        prefs: Preferences,
    ) -> DecisionMetrics:
        current_yield = weighted_yield_pct(
            ((item.allocation_usd, item.current_yield_pct) for item in current_positions),
            total_capital_usd,
        )
        ideal_yield = weighted_yield_pct(
            ((item.allocation_usd, item.effective_yield_pct) for item in ideal_positions),
            total_capital_usd,
        )
        gas = self.estimate_gas_usd(
            len(actions.to_withdraw), len(actions.to_add), prefs.expected_gas_usd
        )
        profit = self.estimate_profit_usd(current_yield, ideal_yield, total_capital_usd)
        return DecisionMetrics(
            current_weighted_yield_pct=current_yield,
            ideal_weighted_yield_pct=ideal_yield,
            estimated_gas_usd=gas,
            profit_30d_usd=profit,
            net_profit_30d_usd=round2(profit - gas),
        )


__all__ = ["CostBenefitEstimator", "weighted_yield_pct"]
