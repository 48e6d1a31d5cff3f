"""Composition of scoring, allocation, diffing, costing, and gating."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..analysis.scoring import RiskAdjustedScorer
from ..analytics.costs import CostBenefitEstimator
from ..config.preferences import Preferences, resolve_preferences
from ..config.settings import EngineConfig, get_app_config
from ..datalake.schemas import CandidatePool, CurrentPosition, Decision
from ..ingestion.pool_filters import PoolEligibilityFilter
from ..utils.constants import utc_now
from ..utils.hashing import DecisionIdentity
from .allocator import PortfolioAllocator, ranking_key
from .differ import PortfolioDiffer
from .risk import ExecutionGate, GateResult


@dataclass(slots=True)
class EngineInputs:
    """Everything a decision depends on."""

    prefs: Preferences
    total_capital_usd: float
    candidates: Sequence[CandidatePool] = field(default_factory=tuple)
    current_positions: Sequence[CurrentPosition] = field(default_factory=tuple)
    rebalances_today: int = 0
    now: Optional[datetime] = None


class DecisionEngine:
    """Pure, synchronous rebalancing decision engine.

    The engine holds only immutable configuration, so one instance can serve
    many users from many threads.
    """

    def __init__(self, engine_config: EngineConfig | None = None) -> None:
        config = engine_config or get_app_config().engine
        self._scorer = RiskAdjustedScorer(config)
        self._filter = PoolEligibilityFilter(config)
        self._allocator = PortfolioAllocator()
        self._differ = PortfolioDiffer(config)
        self._estimator = CostBenefitEstimator(config)
        self._gate = ExecutionGate(config)

    def decide(self, inputs: EngineInputs) -> Decision:
        now = inputs.now or utc_now()
        prefs = inputs.prefs
        current = list(inputs.current_positions)

        eligible = sorted(
            self._scorer.score(self._filter.filter(inputs.candidates, prefs)),
            key=ranking_key,
        )
        ideal = self._allocator.build(inputs.total_capital_usd, eligible, prefs)
        actions = self._differ.diff(current, ideal)
        metrics = self._estimator.evaluate(
            current_positions=current,
            ideal_positions=ideal,
            actions=actions,
            total_capital_usd=inputs.total_capital_usd,
            prefs=prefs,
        )
        gate: GateResult = self._gate.evaluate(
            metrics=metrics,
            actions=actions,
            prefs=prefs,
            rebalances_today=inputs.rebalances_today,
        )
        decision_id = DecisionIdentity.compute(
            now=now,
            prefs=prefs,
            total_capital_usd=inputs.total_capital_usd,
            eligible=eligible,
            current_positions=current,
        )
        return Decision(
            id=decision_id,
            created_at=now,
            eligible_candidates=eligible,
            ideal_positions=ideal,
            actions=actions,
            metrics=metrics,
            should_execute=gate.approved,
            reasons=gate.reasons,
        )


def make_decision(
    prefs: Preferences | Mapping[str, Any],
    total_capital_usd: float,
    candidates: Sequence[CandidatePool],
    current_positions: Sequence[CurrentPosition],
    rebalances_today: int,
    now: Optional[datetime] = None,
    *,
    engine: Optional[DecisionEngine] = None,
) -> Decision:
    """Functional entrypoint around :class:`DecisionEngine`."""

    runner = engine or DecisionEngine()
    return runner.decide(
        EngineInputs(
            prefs=resolve_preferences(prefs),
            total_capital_usd=total_capital_usd,
            candidates=candidates,
            current_positions=current_positions,
            rebalances_today=rebalances_today,
            now=now,
        )
    )


__all__ = ["DecisionEngine", "EngineInputs", "make_decision"]
