"""Preference-driven eligibility checks for candidate pools."""

from __future__ import annotations

from typing import Iterable, List

from ..config.preferences import Preferences
from ..config.settings import EngineConfig, get_app_config
from ..datalake.schemas import CandidatePool


class PoolEligibilityFilter:
    """Applies token, venue, yield, liquidity, and age constraints."""

    def __init__(self, engine_config: EngineConfig | None = None) -> None:
        self._config = engine_config or get_app_config().engine

    def is_eligible(self, pool: CandidatePool, prefs: Preferences) -> bool:
        allowed_tokens = prefs.allowed_token_symbols
        if pool.token0_symbol.strip().upper() not in allowed_tokens:
            return False
        if pool.token1_symbol.strip().upper() not in allowed_tokens:
            return False

        if prefs.allowed_token_addresses and pool.token0_address and pool.token1_address:
            addresses = prefs.allowed_token_addresses
            if pool.token0_address.strip().upper() not in addresses:
                return False
            if pool.token1_address.strip().upper() not in addresses:
                return False

        if prefs.allowed_dex_names and pool.dex_name.strip().lower() not in prefs.allowed_dex_names:
            return False

        # floor is relaxed by yield_tolerance
        if pool.trailing_30d_yield_pct < prefs.min_yield_pct * self._config.yield_tolerance:
            return False
        if pool.tvl_usd < prefs.min_tvl_usd:
            return False
        if pool.age_days < prefs.min_age_days:
            return False
        return True

    def filter(self, pools: Iterable[CandidatePool], prefs: Preferences) -> List[CandidatePool]:
        return [pool for pool in pools if self.is_eligible(pool, prefs)]


__all__ = ["PoolEligibilityFilter"]
