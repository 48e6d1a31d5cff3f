"""Per-user evaluation wrapper adding logging and metrics around the engine."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from .config.preferences import Preferences, resolve_preferences
from .config.settings import AppConfig, get_app_config
from .datalake.schemas import CandidatePool, CurrentPosition, Decision, DispatchInstruction
from .execution.planner import plan_dispatch
from .ingestion.positions import resolve_total_capital
from .monitoring.logger import decision_context, get_logger
from .monitoring.metrics import METRICS, MetricsRegistry
from .strategy.engine import DecisionEngine, EngineInputs

logger = get_logger(__name__)


@dataclass(slots=True)
class EvaluationRequest:
    """Snapshot bundle supplied by the caller for one user and one tick."""

    user_id: str
    preferences: Preferences | Mapping[str, Any]
    candidates: Sequence[CandidatePool] = field(default_factory=tuple)
    current_positions: Sequence[CurrentPosition] = field(default_factory=tuple)
    rebalances_today: int = 0
    total_capital_usd: Optional[float] = None
    total_capital_units: Optional[int] = None
    now: Optional[datetime] = None


class RebalanceService:
    """Resolves boundary inputs, runs the engine, and records the outcome.

    The rebalance counter stays with the caller; this class only reads it.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        engine: Optional[DecisionEngine] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._config = config or get_app_config()
        self._engine = engine or DecisionEngine(self._config.engine)
        self._metrics = metrics or METRICS

    def evaluate(self, request: EvaluationRequest) -> Decision:
        started = time.perf_counter()
        with decision_context(user_id=request.user_id):
            decision = self._evaluate(request)
            with decision_context(decision.id):
                logger.info(
                    "Decision computed should_execute=%s reasons=%s",
                    decision.should_execute,
                    "; ".join(decision.reasons) or "-",
                    extra={
                        "eligible": len(decision.eligible_candidates),
                        "withdraw": len(decision.actions.to_withdraw),
                        "add": len(decision.actions.to_add),
                        "adjust": len(decision.actions.to_adjust),
                        "net_profit_30d_usd": decision.metrics.net_profit_30d_usd,
                    },
                )
        self._record_decision(decision, time.perf_counter() - started)
        return decision

    def _evaluate(self, request: EvaluationRequest) -> Decision:
        try:
            prefs = resolve_preferences(request.preferences, defaults=self._config.preferences)
            capital = resolve_total_capital(request.total_capital_usd, request.total_capital_units)
            return self._engine.decide(
                EngineInputs(
                    prefs=prefs,
                    total_capital_usd=capital,
                    candidates=request.candidates,
                    current_positions=request.current_positions,
                    rebalances_today=request.rebalances_today,
                    now=request.now,
                )
            )
        except Exception:
            self._record("decisions.failed")
            logger.exception("Decision evaluation failed")
            raise

    def plan(self, decision: Decision, amount_units: int) -> List[DispatchInstruction]:
        instructions = plan_dispatch(decision, amount_units)
        with decision_context(decision.id):
            logger.info(
                "Planned %d dispatch instructions for %d units",
                len(instructions),
                amount_units,
            )
        return instructions

    def _record(self, name: str, amount: float = 1.0) -> None:
        if self._config.monitoring.metrics_enabled:
            self._metrics.increment(name, amount)

    def _record_decision(self, decision: Decision, elapsed: float) -> None:
        if not self._config.monitoring.metrics_enabled:
            return
        self._metrics.increment("decisions.evaluated")
        self._metrics.increment("decisions.eligible_candidates", len(decision.eligible_candidates))
        self._metrics.observe("decisions.evaluation_seconds", elapsed)
        self._metrics.gauge("decisions.last_net_profit_30d_usd", decision.metrics.net_profit_30d_usd)
        if decision.should_execute:
            self._metrics.increment("decisions.executable")
        for reason in decision.reasons:
            self._metrics.increment(f"decisions.blocked.{_reason_slug(reason)}")


def _reason_slug(reason: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", reason.lower()).strip("_")


__all__ = ["EvaluationRequest", "RebalanceService"]
