"""Deterministic decision fingerprints for idempotency and log correlation."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable

from ..config.preferences import Preferences
from ..datalake.schemas import CurrentPosition, ScoredCandidate

DECISION_ID_PREFIX = "dec_"
_MASK_32 = 0xFFFFFFFF


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def mix32(text: str) -> int:
    """Polynomial rolling hash kept to 32 bits; input is ASCII canonical JSON."""

    digest = 0
    for char in text:
        digest = (digest * 31 + ord(char)) & _MASK_32
    return digest


def _iso_utc(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


class DecisionIdentity:
    """Fingerprints the inputs of a decision.

    Not a security primitive: two different inputs may collide, which only
    matters for log correlation.
    """

    @staticmethod
    def payload(
        *,
        now: datetime,
        prefs: Preferences,
        total_capital_usd: float,
        eligible: Iterable[ScoredCandidate],
        current_positions: Iterable[CurrentPosition],
    ) -> dict:
        return {
            "now": _iso_utc(now),
            "prefs": prefs.fingerprint_payload(),
            "total_capital_usd": float(total_capital_usd),
            "eligible": [
                {
                    "pool_address": item.pool_address,
                    "effective_yield_pct": float(item.effective_yield_pct),
                }
                for item in eligible
            ],
            "current": [
                {
                    "pool_address": item.pool_address,
                    "allocation_usd": float(item.allocation_usd),
                    "yield_pct": float(item.current_yield_pct),
                }
                for item in current_positions
            ],
        }

    @classmethod
    def compute(cls, **kwargs: Any) -> str:
        digest = mix32(canonical_json(cls.payload(**kwargs)))
        return f"{DECISION_ID_PREFIX}{digest:x}"


__all__ = ["DecisionIdentity", "canonical_json", "mix32"]
