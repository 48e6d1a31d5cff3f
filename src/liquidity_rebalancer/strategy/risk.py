"""Go/no-go safety guards evaluated before a rebalance is dispatched."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from ..config.preferences import Preferences
from ..config.settings import EngineConfig, IlMissingPolicy, get_app_config
from ..datalake.schemas import DecisionMetrics, RebalanceActions

REASON_YIELD_REGRESSION = "Ideal weighted yield is lower than current"
REASON_RATE_LIMIT = "Daily rebalance limit reached"
REASON_IMPROVEMENT = "APY improvement below threshold"
REASON_GAS_COVER = "Net profit does not cover gas multiple"
REASON_NO_CHANGES = "No changes required"


@dataclass(slots=True)
class GateResult:
    """Outcome of the execution gate with every failing guard explained."""

    approved: bool
    reasons: List[str]
    checks: Dict[str, bool] = field(default_factory=dict)


class ExecutionGate:
    """Evaluates independent guards without short-circuiting."""

    def __init__(self, engine_config: EngineConfig | None = None) -> None:
        self._config = engine_config or get_app_config().engine

    def evaluate(
        self,
        *,
        metrics: DecisionMetrics,
        actions: RebalanceActions,
        prefs: Preferences,
        rebalances_today: int,
    ) -> GateResult:
        current = metrics.current_weighted_yield_pct
        ideal = metrics.ideal_weighted_yield_pct
        checks: Dict[str, bool] = {}
        reasons: List[str] = []

        def record(name: str, passed: bool, reason: str) -> None:
            checks[name] = passed
            if not passed:
                reasons.append(reason)

        record("no_downward_rebalance", ideal >= current, REASON_YIELD_REGRESSION)
        record("rate_limit", rebalances_today < prefs.daily_rebalance_limit, REASON_RATE_LIMIT)
        record(
            "min_improvement",
            ideal >= current + prefs.min_yield_improvement_pct,
            REASON_IMPROVEMENT,
        )
        record(
            "gas_cover",
            metrics.net_profit_30d_usd > metrics.estimated_gas_usd * prefs.gas_cover_multiplier,
            REASON_GAS_COVER,
        )
        record("il_safeguard", not self._il_breached(actions), self._il_reason())
        record("non_trivial", not actions.is_empty, REASON_NO_CHANGES)

        return GateResult(approved=not reasons, reasons=reasons, checks=checks)

    def _il_breached(self, actions: RebalanceActions) -> bool:
        limit = self._config.il_safeguard_pct
        block_missing = self._config.il_missing_policy is IlMissingPolicy.BLOCK
        for position in actions.to_withdraw:
            if position.impermanent_loss_pct is None:
                if block_missing:
                    return True
                continue
            if position.impermanent_loss_pct > limit:
                return True
        return False

    def _il_reason(self) -> str:
        return f"Withdraw IL > {self._config.il_safeguard_pct:g}% safeguard triggered"


__all__ = ["ExecutionGate", "GateResult"]
