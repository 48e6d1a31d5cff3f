"""In-process decision counters, gauges and timings with Prometheus rendering."""

from __future__ import annotations

import math
import re
import threading
from collections import deque
from typing import Any, Deque, Dict, List

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_QUANTILES = (0.5, 0.9, 0.99)


def prometheus_name(name: str, prefix: str = "rebalancer") -> str:
    """``decisions.blocked.no_changes_required`` -> ``rebalancer_decisions_blocked_no_changes_required``."""

    sanitized = _INVALID_NAME_CHARS.sub("_", name).strip("_") or "unnamed"
    return f"{prefix}_{sanitized}" if prefix else sanitized


def _nearest_rank(ordered: List[float], quantile: float) -> float:
    rank = max(math.ceil(quantile * len(ordered)), 1)
    return ordered[rank - 1]


class MetricsRegistry:
    """Thread-safe store for the ``decisions.*`` series the service records.

    Timings keep only the most recent ``window`` samples.
    """

    def __init__(self, *, window: int = 512) -> None:
        self._lock = threading.Lock()
        self._window = window
        self._counters: Dict[str, float] = {}
        self._gauges: Dict[str, float] = {}
        self._timings: Dict[str, Deque[float]] = {}

    def increment(self, name: str, amount: float = 1.0) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0.0) + amount

    def get(self, name: str) -> float:
        with self._lock:
            return self._counters.get(name, 0.0)

    def gauge(self, name: str, value: float) -> None:
        with self._lock:
            self._gauges[name] = float(value)

    def observe(self, name: str, seconds: float) -> None:
        with self._lock:
            samples = self._timings.get(name)
            if samples is None:
                samples = self._timings[name] = deque(maxlen=self._window)
            samples.append(float(seconds))

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            counters = dict(self._counters)
            gauges = dict(self._gauges)
            timings = {name: sorted(samples) for name, samples in self._timings.items()}
        summaries: Dict[str, Dict[str, float]] = {}
        for name, ordered in timings.items():
            if not ordered:
                continue
            summary = {"count": float(len(ordered)), "sum": math.fsum(ordered)}
            for quantile in _QUANTILES:
                summary[f"p{round(quantile * 100)}"] = _nearest_rank(ordered, quantile)
            summaries[name] = summary
        return {"counters": counters, "gauges": gauges, "timings": summaries}

    def export_prometheus(self, *, prefix: str = "rebalancer") -> str:
        """Render the registry in the Prometheus text exposition format."""

        snap = self.snapshot()
        lines: List[str] = []
        for name, value in sorted(snap["counters"].items()):
            metric = f"{prometheus_name(name, prefix)}_total"
            lines += [f"# TYPE {metric} counter", f"{metric} {value}"]
        for name, value in sorted(snap["gauges"].items()):
            metric = prometheus_name(name, prefix)
            lines += [f"# TYPE {metric} gauge", f"{metric} {value}"]
        for name, summary in sorted(snap["timings"].items()):
            metric = prometheus_name(name, prefix)
            lines.append(f"# TYPE {metric} summary")
            for quantile in _QUANTILES:
                key = f"p{round(quantile * 100)}"
                lines.append(f'{metric}{{quantile="{quantile}"}} {summary[key]}')
            lines.append(f"{metric}_sum {summary['sum']}")
            lines.append(f"{metric}_count {int(summary['count'])}")
        return "\n".join(lines) + "\n" if lines else ""


METRICS = MetricsRegistry()


__all__ = ["METRICS", "MetricsRegistry", "prometheus_name"]
