from __future__ import annotations

import pytest

from liquidity_rebalancer.analytics.costs import CostBenefitEstimator, weighted_yield_pct
from liquidity_rebalancer.config.preferences import resolve_preferences
from liquidity_rebalancer.config.settings import EngineConfig, PreferenceDefaults
from liquidity_rebalancer.datalake.schemas import (
    CurrentPosition,
    IdealPosition,
    RebalanceActions,
)


def test_gas_estimate_weights_withdrawals_higher():
    estimator = CostBenefitEstimator(EngineConfig())

    assert estimator.estimate_gas_usd(2, 3, 1) == 8.4
    assert estimator.estimate_gas_usd(1, 0, 2.5) == 4.5
    assert estimator.estimate_gas_usd(0, 0, 1) == 0.0


def test_profit_is_projected_over_thirty_days():
    estimator = CostBenefitEstimator(EngineConfig())

    assert estimator.estimate_profit_usd(8, 9, 100_000) == 82.19
    assert estimator.estimate_profit_usd(9, 8, 100_000) == -82.19


def test_weighted_yield_guards_zero_capital():
    assert weighted_yield_pct([(1_000, 8.0)], 0) == 0.0
    assert weighted_yield_pct([], 10_000) == 0.0
    assert weighted_yield_pct([(25_000, 11.04), (25_000, 8.5)], 50_000) == pytest.approx(9.77)


def test_idle_capital_dilutes_weighted_yield():
    assert weighted_yield_pct([(5_000, 10.0)], 10_000) == 5.0


def test_evaluate_combines_yield_and_cost():
    prefs = resolve_preferences(
        {"min_yield_pct": 5, "max_positions": 2, "max_alloc_per_pos_usd": 50_000},
        defaults=PreferenceDefaults(),
    )
    current = [
        CurrentPosition(
            position_id="pos-1",
            pool_address="0x01",
            dex_name="Algebra",
            token0_symbol="USDC",
            token1_symbol="USDT",
            allocation_usd=50_000,
            current_yield_pct=2.0,
        )
    ]
    ideal = [
        IdealPosition(
            pool_address="0x02",
            dex_name="Algebra",
            token0_symbol="USDC",
            token1_symbol="USDT",
            allocation_usd=50_000,
            effective_yield_pct=10.0,
            il_risk_factor=0.0,
        )
    ]
    actions = RebalanceActions(to_withdraw=list(current), to_add=list(ideal))

    metrics = CostBenefitEstimator(EngineConfig()).evaluate(
        current_positions=current,
        ideal_positions=ideal,
        actions=actions,
        total_capital_usd=50_000,
        prefs=prefs,
    )

    assert metrics.current_weighted_yield_pct == 2.0
    assert metrics.ideal_weighted_yield_pct == 10.0
    assert metrics.estimated_gas_usd == 3.4
    assert metrics.profit_30d_usd == 328.77
    assert metrics.net_profit_30d_usd == 325.37
