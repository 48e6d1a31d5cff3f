"""Impermanent-loss risk classification and risk-adjusted yield scoring."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional

from ..config.settings import EngineConfig, UnknownTokenPolicy, get_app_config
from ..datalake.schemas import CandidatePool, ScoredCandidate
from ..utils.constants import BLUECHIP_SYMBOLS, STABLE_SYMBOLS, round4


class TokenClass(str, Enum):
    """Coarse volatility bucket for a token symbol."""

    STABLE = "stable"
    BLUECHIP = "bluechip"
    OTHER = "other"


STABLE_PAIR_RISK = 0.0
BLUECHIP_PAIR_RISK = 0.08
MIDCAP_PAIR_RISK = 0.18
OTHER_PAIR_RISK = 0.30

CATEGORY_HINT_RISK = {
    "stable-stable": STABLE_PAIR_RISK,
    "bluechip-volatile": BLUECHIP_PAIR_RISK,
    "midcap": MIDCAP_PAIR_RISK,
    "other": OTHER_PAIR_RISK,
}


def classify_token(symbol: str) -> TokenClass:
    normalized = symbol.strip().upper()
    if normalized in STABLE_SYMBOLS:
        return TokenClass.STABLE
    if normalized in BLUECHIP_SYMBOLS:
        return TokenClass.BLUECHIP
    return TokenClass.OTHER


def il_risk_factor(token0: str, token1: str) -> float:
    """Return the heuristic IL risk coefficient for a token pair."""

    first = classify_token(token0)
    second = classify_token(token1)
    classes = {first, second}
    if classes == {TokenClass.STABLE}:
        return STABLE_PAIR_RISK
    if TokenClass.OTHER not in classes:
        # stable/bluechip or bluechip/bluechip
        return BLUECHIP_PAIR_RISK
    if TokenClass.STABLE in classes:
        return MIDCAP_PAIR_RISK
    return OTHER_PAIR_RISK


def category_hint_risk(hint: str) -> float:
    """Map an explicit category hint to its risk factor; unknown hints are riskiest."""

    return CATEGORY_HINT_RISK.get(hint.strip().lower(), OTHER_PAIR_RISK)


def effective_yield(raw_yield_pct: float, risk_factor: float) -> float:
    return round4(raw_yield_pct * (1 - risk_factor))


def has_unknown_token(pool: CandidatePool) -> bool:
    return (
        classify_token(pool.token0_symbol) is TokenClass.OTHER
        or classify_token(pool.token1_symbol) is TokenClass.OTHER
    )


class RiskAdjustedScorer:
    """Scores pools by yield discounted for impermanent-loss exposure."""

    def __init__(self, engine_config: EngineConfig | None = None) -> None:
        self._config = engine_config or get_app_config().engine

    def risk_factor(self, pool: CandidatePool) -> float:
        if pool.category_hint:
            return category_hint_risk(pool.category_hint)
        return il_risk_factor(pool.token0_symbol, pool.token1_symbol)

    def score_pool(self, pool: CandidatePool) -> Optional[ScoredCandidate]:
        if (
            self._config.unknown_token_policy is UnknownTokenPolicy.REJECT
            and not pool.category_hint
            and has_unknown_token(pool)
        ):
            return None
        factor = self.risk_factor(pool)
        return ScoredCandidate(
            pool=pool,
            il_risk_factor=factor,
            effective_yield_pct=effective_yield(pool.trailing_30d_yield_pct, factor),
        )

    def score(self, pools: Iterable[CandidatePool]) -> List[ScoredCandidate]:
        results: List[ScoredCandidate] = []
        for pool in pools:
            scored = self.score_pool(pool)
            if scored is not None:
                results.append(scored)
        return results


__all__ = [
    "RiskAdjustedScorer",
    "TokenClass",
    "category_hint_risk",
    "classify_token",
    "effective_yield",
    "il_risk_factor",
]
