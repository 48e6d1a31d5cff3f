"""Command-line entrypoint for evaluating rebalancing decisions offline."""

from __future__ import annotations

import argparse
import json
import math
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config.preferences import PreferencesError
from .config.settings import get_app_config
from .datalake.schemas import CandidatePool, CurrentPosition
from .execution.units import UnitAllocator, WeightedItem
from .ingestion.positions import CapitalSourceError
from .monitoring import METRICS, bootstrap_observability
from .monitoring.logger import get_logger
from .service import EvaluationRequest, RebalanceService

logger = get_logger(__name__)


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _build_records(cls, items: Sequence[Dict[str, Any]], label: str) -> List[Any]:
    records = []
    for index, item in enumerate(items):
        try:
            records.append(cls(**item))
        except TypeError as exc:
            raise SystemExit(f"Invalid {label} entry #{index}: {exc}") from exc
    return records


def load_request(path: Path, *, now: Optional[str] = None, rebalances_today: Optional[int] = None) -> EvaluationRequest:
    """Read an evaluation request from a JSON document."""

    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise SystemExit(f"{path} must contain a JSON object")
    if "preferences" not in payload:
        raise SystemExit(f"{path} is missing the 'preferences' object")
    return EvaluationRequest(
        user_id=str(payload.get("user_id", "cli")),
        preferences=payload["preferences"],
        candidates=_build_records(CandidatePool, payload.get("candidates", []), "candidate"),
        current_positions=_build_records(
            CurrentPosition, payload.get("current_positions", []), "current position"
        ),
        rebalances_today=(
            rebalances_today if rebalances_today is not None else int(payload.get("rebalances_today", 0))
        ),
        total_capital_usd=payload.get("total_capital_usd"),
        total_capital_units=payload.get("total_capital_units"),
        now=_parse_now(now or payload.get("now")),
    )


def _non_negative_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {raw!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {value}")
    return value


def _parse_weight(raw: str) -> WeightedItem:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=USD, got {raw!r}")
    try:
        weight = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"weight for {key!r} is not numeric: {value!r}") from exc
    if not math.isfinite(weight):
        raise argparse.ArgumentTypeError(f"weight for {key!r} is not finite: {value!r}")
    return WeightedItem(key=key, usd_weight=weight)


def _cmd_evaluate(args: argparse.Namespace) -> int:
    request = load_request(args.input, now=args.now, rebalances_today=args.rebalances_today)
    service = RebalanceService(get_app_config())
    try:
        decision = service.evaluate(request)
    except (PreferencesError, CapitalSourceError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    output: Dict[str, Any] = decision.to_dict()
    if args.amount_units is not None:
        output["dispatch"] = [
            {
                "pool_address": item.pool_address,
                "dex_name": item.dex_name,
                "amount_units": str(item.amount_units),
                "target_usd": item.target_usd,
            }
            for item in service.plan(decision, args.amount_units)
        ]
    print(json.dumps(output, indent=2, sort_keys=True))
    if args.metrics_file is not None:
        args.metrics_file.write_text(METRICS.export_prometheus(), encoding="utf-8")
    return 0


def _cmd_allocate_units(args: argparse.Namespace) -> int:
    shares = UnitAllocator().allocate(args.weights, args.total)
    print(json.dumps({key: str(value) for key, value in sorted(shares.items())}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deterministic liquidity rebalancing decisions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    evaluate = subparsers.add_parser("evaluate", help="Evaluate a decision from a JSON snapshot file")
    evaluate.add_argument("--input", type=Path, required=True, help="Path to the JSON snapshot")
    evaluate.add_argument("--now", default=None, help="Override evaluation timestamp (ISO-8601)")
    evaluate.add_argument(
        "--rebalances-today",
        type=_non_negative_int,
        default=None,
        help="Override the number of rebalances already executed today.",
    )
    evaluate.add_argument(
        "--amount-units",
        type=_non_negative_int,
        default=None,
        help="Also split this many native units across the add targets.",
    )
    evaluate.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write the decision metrics in Prometheus text format to this path.",
    )
    evaluate.set_defaults(handler=_cmd_evaluate)

    allocate = subparsers.add_parser("allocate-units", help="Split an integer total by USD weights")
    allocate.add_argument("--total", type=_non_negative_int, required=True, help="Integer total to split")
    allocate.add_argument("weights", nargs="+", type=_parse_weight, help="KEY=USD weight pairs")
    allocate.set_defaults(handler=_cmd_allocate_units)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    bootstrap_observability()
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
