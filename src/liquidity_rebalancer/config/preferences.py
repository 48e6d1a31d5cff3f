"""Typed user preferences with defaults resolved once at the boundary."""

from __future__ import annotations

from typing import Any, FrozenSet, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .settings import PreferenceDefaults, get_app_config


class PreferencesError(ValueError):
    """Raised when a preference payload is structurally invalid."""


class Preferences(BaseModel):
    """Constraints a user places on the rebalancing engine."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_yield_pct: float = Field(ge=0.0)
    allowed_token_symbols: FrozenSet[str] = Field(default_factory=frozenset)
    allowed_dex_names: FrozenSet[str] = Field(default_factory=frozenset)
    # Symbols are not unique across chains and bridges; addresses are.
    allowed_token_addresses: FrozenSet[str] = Field(default_factory=frozenset)
    max_positions: int = Field(ge=0)
    max_alloc_per_pos_usd: float = Field(ge=0.0)
    min_position_size_usd: float = Field(default=3_000.0, ge=0.0)
    min_tvl_usd: float = Field(default=1_000_000.0, ge=0.0)
    min_age_days: float = Field(default=14.0, ge=0.0)
    daily_rebalance_limit: int = Field(default=8, ge=0)
    expected_gas_usd: float = Field(default=1.0, ge=0.0)
    min_yield_improvement_pct: float = Field(default=0.7, ge=0.0)
    gas_cover_multiplier: float = Field(default=4.0, ge=0.0)

    @field_validator("allowed_token_symbols", "allowed_token_addresses", mode="before")
    @classmethod
    def _upper_tokens(cls, value: Any) -> Any:
        return _normalise_set(value, str.upper)

    @field_validator("allowed_dex_names", mode="before")
    @classmethod
    def _lower_dexes(cls, value: Any) -> Any:
        return _normalise_set(value, str.lower)

    def fingerprint_payload(self) -> dict:
        """Return a JSON-friendly, order-independent view for hashing."""

        payload = self.model_dump()
        for key in ("allowed_token_symbols", "allowed_dex_names", "allowed_token_addresses"):
            payload[key] = sorted(payload[key])
        return payload


def _normalise_set(value: Any, transform) -> Any:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        raise ValueError("expected a collection of strings, got a single string")
    if isinstance(value, Iterable):
        items = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError(f"expected string entries, got {type(item).__name__}")
            stripped = item.strip()
            if stripped:
                items.append(transform(stripped))
        return frozenset(items)
    return value


def resolve_preferences(
    raw: Mapping[str, Any] | Preferences,
    *,
    defaults: Optional[PreferenceDefaults] = None,
) -> Preferences:
    """Validate a raw preference mapping, filling omitted fields from config."""

    if isinstance(raw, Preferences):
        return raw
    if not isinstance(raw, Mapping):
        raise PreferencesError(f"preferences must be a mapping, got {type(raw).__name__}")
    fallback = defaults or get_app_config().preferences
    payload = {key: value for key, value in raw.items() if value is not None}
    payload.setdefault("min_position_size_usd", fallback.min_position_size_usd)
    payload.setdefault("min_tvl_usd", fallback.min_tvl_usd)
    payload.setdefault("min_age_days", fallback.min_age_days)
    payload.setdefault("daily_rebalance_limit", fallback.daily_rebalance_limit)
    payload.setdefault("expected_gas_usd", fallback.expected_gas_usd)
    payload.setdefault("min_yield_improvement_pct", fallback.min_yield_improvement_pct)
    payload.setdefault("gas_cover_multiplier", fallback.gas_cover_multiplier)
    try:
        return Preferences.model_validate(payload)
    except ValidationError as exc:
        raise PreferencesError(f"Invalid preferences: {exc}") from exc


def preferences_from_user_record(
    record: Mapping[str, Any],
    *,
    defaults: Optional[PreferenceDefaults] = None,
) -> Preferences:
    """Map a stored user preference row onto engine preferences.

    Stored rows keep the minimum APR in basis points and optional lists of
    preferred tokens and venues. Position limits are not stored per user and
    come from configuration.
    """

    fallback = defaults or get_app_config().preferences
    min_apr_bps = record.get("min_apr_bps")
    if min_apr_bps is None:
        raise PreferencesError("user preference record is missing min_apr_bps")
    try:
        min_yield_pct = float(min_apr_bps) / 100
    except (TypeError, ValueError) as exc:
        raise PreferencesError(f"min_apr_bps is not numeric: {min_apr_bps!r}") from exc
    tokens = list(record.get("preferred_tokens") or []) or list(fallback.fallback_token_symbols)
    return resolve_preferences(
        {
            "min_yield_pct": min_yield_pct,
            "allowed_token_symbols": tokens,
            "allowed_dex_names": record.get("preferred_dexes") or [],
            "max_positions": fallback.fallback_max_positions,
            "max_alloc_per_pos_usd": fallback.fallback_max_alloc_per_pos_usd,
        },
        defaults=fallback,
    )


__all__ = [
    "Preferences",
    "PreferencesError",
    "preferences_from_user_record",
    "resolve_preferences",
]
