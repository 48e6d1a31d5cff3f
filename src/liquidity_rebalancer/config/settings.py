"""Configuration management for the rebalancing engine."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, cast

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = Path("config/app.toml")
CONFIG_FILE_ENV_VAR = "APP_CONFIG_FILE"
PROFILE_ENV_VAR = "REBALANCER_PROFILE"
DEFAULT_PROFILE = "default"


class IlMissingPolicy(str, Enum):
    """How the IL safeguard treats withdrawals without an IL reading."""

    SKIP = "skip"
    BLOCK = "block"


class UnknownTokenPolicy(str, Enum):
    """How tokens absent from the static risk tables are handled."""

    SCORE = "score"
    REJECT = "reject"


def _resolve_config_path() -> Path:
    env_value = os.getenv(CONFIG_FILE_ENV_VAR)
    if env_value:
        candidate = Path(env_value)
        if not candidate.is_absolute():
            candidate = Path.cwd() / candidate
        return candidate
    return Path.cwd() / DEFAULT_CONFIG_FILE


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(cast(Dict[str, Any], result[key]), value)
        else:
            result[key] = value
    return result


def _select_profile(data: Dict[str, Any]) -> Dict[str, Any]:
    if not data:
        return {}
    base_section = cast(Dict[str, Any], data.get(DEFAULT_PROFILE, {}))
    requested = (os.getenv(PROFILE_ENV_VAR) or DEFAULT_PROFILE).lower()
    if requested != DEFAULT_PROFILE and isinstance(data.get(requested), dict):
        return _deep_merge(base_section, cast(Dict[str, Any], data[requested]))
    return base_section


def _load_toml_config() -> Tuple[Dict[str, Any], Optional[Path]]:
    path = _resolve_config_path()
    if not path.exists():
        return {}, None
    with path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        return {}, path
    merged = _select_profile(payload)
    if not isinstance(merged, dict):
        return {}, path
    return dict(merged), path


class EngineConfig(BaseModel):
    """Numeric policy constants of the decision engine."""

    materiality_threshold_pct: float = Field(default=5.0, ge=0.0)
    withdraw_gas_coefficient: float = Field(default=1.8, ge=0.0)
    add_gas_coefficient: float = Field(default=1.6, ge=0.0)
    il_safeguard_pct: float = Field(default=6.0, ge=0.0)
    il_missing_policy: IlMissingPolicy = Field(default=IlMissingPolicy.SKIP)
    yield_tolerance: float = Field(default=0.95, gt=0.0, le=1.0)
    profit_horizon_days: int = Field(default=30, ge=1)
    unknown_token_policy: UnknownTokenPolicy = Field(default=UnknownTokenPolicy.SCORE)


class PreferenceDefaults(BaseModel):
    """Fallback values for optional user preference fields."""

    min_position_size_usd: float = Field(default=3_000.0, ge=0.0)
    min_tvl_usd: float = Field(default=1_000_000.0, ge=0.0)
    min_age_days: float = Field(default=14.0, ge=0.0)
    daily_rebalance_limit: int = Field(default=8, ge=0)
    expected_gas_usd: float = Field(default=1.0, ge=0.0)
    min_yield_improvement_pct: float = Field(default=0.7, ge=0.0)
    gas_cover_multiplier: float = Field(default=4.0, ge=0.0)
    fallback_token_symbols: List[str] = Field(
        default_factory=lambda: ["USDC", "USDT", "DOT", "WETH"]
    )
    fallback_max_positions: int = Field(default=6, ge=0)
    fallback_max_alloc_per_pos_usd: float = Field(default=25_000.0, ge=0.0)


class MonitoringConfig(BaseModel):
    """Logging and metrics configuration."""

    log_level: str = Field(default="INFO")
    metrics_enabled: bool = True


class AppConfig(BaseSettings):
    """Aggregated application configuration."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    preferences: PreferenceDefaults = Field(default_factory=PreferenceDefaults)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    config_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def file_settings(_: Optional[BaseSettings] = None) -> Dict[str, Any]:
            payload, path = _load_toml_config()
            if path is not None:
                payload.setdefault("config_file", str(path))
            return payload

        # Runtime environment variables win over the static config file.
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_settings,
            file_secret_settings,
        )


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Create a cached application configuration object."""

    return AppConfig()


__all__ = [
    "AppConfig",
    "EngineConfig",
    "IlMissingPolicy",
    "MonitoringConfig",
    "PreferenceDefaults",
    "UnknownTokenPolicy",
    "get_app_config",
]
