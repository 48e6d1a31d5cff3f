"""Strategy package exports."""

from .allocator import PortfolioAllocator
from .differ import PortfolioDiffer
from .engine import DecisionEngine, EngineInputs, make_decision
from .risk import ExecutionGate, GateResult

__all__ = [
    "DecisionEngine",
    "EngineInputs",
    "ExecutionGate",
    "GateResult",
    "PortfolioAllocator",
    "PortfolioDiffer",
    "make_decision",
]
