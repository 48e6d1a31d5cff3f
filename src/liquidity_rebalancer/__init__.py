"""Deterministic rebalancing decision engine for cross-chain liquidity positions."""

from .config.preferences import Preferences, PreferencesError, resolve_preferences
from .datalake.schemas import (
    AdjustAction,
    CandidatePool,
    CurrentPosition,
    Decision,
    DecisionMetrics,
    IdealPosition,
    RebalanceActions,
)
from .execution.units import UnitAllocator, WeightedItem
from .strategy.engine import DecisionEngine, EngineInputs, make_decision

__all__ = [
    "AdjustAction",
    "CandidatePool",
    "CurrentPosition",
    "Decision",
    "DecisionEngine",
    "DecisionMetrics",
    "EngineInputs",
    "IdealPosition",
    "Preferences",
    "PreferencesError",
    "RebalanceActions",
    "UnitAllocator",
    "WeightedItem",
    "make_decision",
    "resolve_preferences",
]
