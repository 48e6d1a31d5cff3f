from liquidity_rebalancer.config.preferences import resolve_preferences
from liquidity_rebalancer.config.settings import EngineConfig, PreferenceDefaults
from liquidity_rebalancer.datalake.schemas import CandidatePool
from liquidity_rebalancer.ingestion.pool_filters import PoolEligibilityFilter


def _prefs(**overrides):
    payload = {
        "min_yield_pct": 8,
        "allowed_token_symbols": ["usdc", "USDT", "WETH"],
        "max_positions": 2,
        "max_alloc_per_pos_usd": 25_000,
    }
    payload.update(overrides)
    return resolve_preferences(payload, defaults=PreferenceDefaults())


def _pool(**overrides) -> CandidatePool:
    values = {
        "pool_id": "p1",
        "pool_address": "0x01",
        "dex_name": "Algebra",
        "token0_symbol": "USDC",
        "token1_symbol": "USDT",
        "trailing_30d_yield_pct": 8.5,
        "tvl_usd": 2_000_000.0,
        "age_days": 30,
    }
    values.update(overrides)
    return CandidatePool(**values)


def test_pool_matching_every_constraint_is_eligible():
    assert PoolEligibilityFilter(EngineConfig()).is_eligible(_pool(), _prefs())


def test_token_symbols_are_case_insensitive():
    pool = _pool(token0_symbol="usdc", token1_symbol="weth")
    assert PoolEligibilityFilter(EngineConfig()).is_eligible(pool, _prefs())


def test_both_tokens_must_be_allowed():
    pool = _pool(token1_symbol="DOT")
    assert not PoolEligibilityFilter(EngineConfig()).is_eligible(pool, _prefs())


def test_yield_floor_has_five_percent_tolerance():
    eligibility = PoolEligibilityFilter(EngineConfig())
    prefs = _prefs()

    assert eligibility.is_eligible(_pool(trailing_30d_yield_pct=7.6), prefs)
    assert not eligibility.is_eligible(_pool(trailing_30d_yield_pct=7.59), prefs)


def test_tvl_and_age_floors_use_defaults():
    eligibility = PoolEligibilityFilter(EngineConfig())
    prefs = _prefs()

    assert not eligibility.is_eligible(_pool(tvl_usd=999_999.0), prefs)
    assert not eligibility.is_eligible(_pool(age_days=13), prefs)
    assert eligibility.is_eligible(_pool(age_days=14, tvl_usd=1_000_000.0), prefs)


def test_dex_allow_list_applies_only_when_non_empty():
    eligibility = PoolEligibilityFilter(EngineConfig())
    pool = _pool(dex_name="StellaSwap")

    assert eligibility.is_eligible(pool, _prefs(allowed_dex_names=[]))
    assert eligibility.is_eligible(pool, _prefs(allowed_dex_names=["stellaswap"]))
    assert not eligibility.is_eligible(pool, _prefs(allowed_dex_names=["Algebra"]))


def test_empty_token_allow_list_yields_no_candidates():
    eligibility = PoolEligibilityFilter(EngineConfig())
    pools = [_pool(), _pool(pool_address="0x02", token1_symbol="WETH")]

    assert eligibility.filter(pools, _prefs(allowed_token_symbols=[])) == []


def test_token_addresses_checked_when_pool_reports_them():
    eligibility = PoolEligibilityFilter(EngineConfig())
    prefs = _prefs(allowed_token_addresses=["0xAAA", "0xbbb"])

    matching = _pool(token0_address="0xaaa", token1_address="0xBBB")
    bridged = _pool(token0_address="0xaaa", token1_address="0xccc")
    unlabelled = _pool()

    assert eligibility.is_eligible(matching, prefs)
    assert not eligibility.is_eligible(bridged, prefs)
    assert eligibility.is_eligible(unlabelled, prefs)
