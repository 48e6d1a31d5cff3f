from __future__ import annotations

from datetime import datetime, timezone

from liquidity_rebalancer.config.preferences import resolve_preferences
from liquidity_rebalancer.config.settings import EngineConfig, PreferenceDefaults
from liquidity_rebalancer.datalake.schemas import CandidatePool
from liquidity_rebalancer.execution.planner import plan_dispatch
from liquidity_rebalancer.strategy.engine import DecisionEngine, EngineInputs

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _decision(rebalances_today: int = 0):
    prefs = resolve_preferences(
        {
            "min_yield_pct": 8,
            "allowed_token_symbols": ["USDC", "USDT", "WETH"],
            "max_positions": 2,
            "max_alloc_per_pos_usd": 25_000,
        },
        defaults=PreferenceDefaults(),
    )
    candidates = [
        CandidatePool("p1", "0x01", "Algebra", "USDC", "USDT", 8.5, 2_000_000.0, 30),
        CandidatePool("p2", "0x02", "Algebra", "USDC", "WETH", 12.0, 5_000_000.0, 40),
    ]
    return DecisionEngine(EngineConfig()).decide(
        EngineInputs(
            prefs=prefs,
            total_capital_usd=50_000,
            candidates=candidates,
            rebalances_today=rebalances_today,
            now=NOW,
        )
    )


def test_units_split_across_add_targets():
    instructions = plan_dispatch(_decision(), 1_000_001)

    assert [(item.pool_address, item.amount_units) for item in instructions] == [
        ("0x01", 500_001),
        ("0x02", 500_000),
    ]
    assert sum(item.amount_units for item in instructions) == 1_000_001
    assert all(item.target_usd == 25_000 for item in instructions)


def test_large_native_amounts_stay_exact():
    total = 10**24 + 1
    instructions = plan_dispatch(_decision(), total)
    assert sum(item.amount_units for item in instructions) == total


def test_gated_decision_dispatches_nothing():
    decision = _decision(rebalances_today=8)

    assert not decision.should_execute
    assert plan_dispatch(decision, 1_000) == []


def test_zero_share_targets_are_dropped():
    instructions = plan_dispatch(_decision(), 1)
    assert [(item.pool_address, item.amount_units) for item in instructions] == [("0x01", 1)]
