"""Data models shared by the scoring, allocation, and gating layers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class CandidatePool:
    """Latest synced snapshot of a pool the engine may allocate into."""

    pool_id: str
    pool_address: str
    dex_name: str
    token0_symbol: str
    token1_symbol: str
    trailing_30d_yield_pct: float
    tvl_usd: float
    age_days: float
    category_hint: Optional[str] = None
    token0_address: Optional[str] = None
    token1_address: Optional[str] = None


@dataclass(slots=True)
class ScoredCandidate:
    """Eligible pool annotated with its risk-adjusted yield."""

    pool: CandidatePool
    il_risk_factor: float
    effective_yield_pct: float

    @property
    def pool_address(self) -> str:
        return self.pool.pool_address

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self.pool)
        payload["il_risk_factor"] = self.il_risk_factor
        payload["effective_yield_pct"] = self.effective_yield_pct
        return payload


@dataclass(slots=True)
class CurrentPosition:
    """A live liquidity position held on behalf of the user."""

    position_id: str
    pool_address: str
    dex_name: str
    token0_symbol: str
    token1_symbol: str
    allocation_usd: float
    current_yield_pct: float
    impermanent_loss_pct: Optional[float] = None


@dataclass(slots=True)
class IdealPosition:
    """Target allocation for a pool in the ideal portfolio."""

    pool_address: str
    dex_name: str
    token0_symbol: str
    token1_symbol: str
    allocation_usd: float
    effective_yield_pct: float
    il_risk_factor: float


@dataclass(slots=True)
class AdjustAction:
    """Reduction of an existing position to a smaller target."""

    pool_address: str
    from_usd: float
    to_usd: float


@dataclass(slots=True)
class RebalanceActions:
    """Withdraw, add, and adjust instructions derived from a portfolio diff."""

    to_withdraw: List[CurrentPosition] = field(default_factory=list)
    to_add: List[IdealPosition] = field(default_factory=list)
    to_adjust: List[AdjustAction] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_withdraw or self.to_add or self.to_adjust)


@dataclass(slots=True)
class DecisionMetrics:
    """Yield and cost figures backing a decision."""

    current_weighted_yield_pct: float
    ideal_weighted_yield_pct: float
    estimated_gas_usd: float
    profit_30d_usd: float
    net_profit_30d_usd: float


@dataclass(slots=True)
class Decision:
    """Outcome of one engine evaluation."""

    id: str
    created_at: datetime
    eligible_candidates: List[ScoredCandidate]
    ideal_positions: List[IdealPosition]
    actions: RebalanceActions
    metrics: DecisionMetrics
    should_execute: bool
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the decision to a JSON-serialisable dictionary."""

        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "eligible_candidates": [item.to_dict() for item in self.eligible_candidates],
            "ideal_positions": [asdict(item) for item in self.ideal_positions],
            "actions": asdict(self.actions),
            "metrics": asdict(self.metrics),
            "should_execute": self.should_execute,
            "reasons": list(self.reasons),
        }


@dataclass(slots=True)
class DispatchInstruction:
    """Integer-unit amount to send into a pool once a decision is approved."""

    pool_address: str
    dex_name: str
    amount_units: int
    target_usd: float


__all__ = [
    "AdjustAction",
    "CandidatePool",
    "CurrentPosition",
    "Decision",
    "DecisionMetrics",
    "DispatchInstruction",
    "IdealPosition",
    "RebalanceActions",
    "ScoredCandidate",
]
