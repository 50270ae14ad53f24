"""
Diagnostics counters for the positioning, presence and routing pipelines.

A single collector is shared by every component. Each fusion cycle that
discards an observation, or gives up on an estimate or a route, records one
reason code from ``MetricsCollector.DROP_REASONS``. Histograms keep a bounded
window of recent samples (residuals, route lengths, A* expansions).
"""

import logging
import threading
import time
from typing import Deque, Dict, List, Optional, Sequence
from dataclasses import dataclass, field
from collections import deque
import statistics

logger = logging.getLogger(__name__)

DEFAULT_HISTOGRAM_WINDOW = 10000


def _nearest_rank(ordered: Sequence[float], fraction: float) -> float:
    index = min(int(len(ordered) * fraction), len(ordered) - 1)
    return ordered[index]


def summarize_samples(samples: Sequence[float]) -> Optional[Dict[str, float]]:
    """count/min/max/mean/median/p95/p99 of a sample window, or None if empty."""
    if not samples:
        return None

    ordered = sorted(samples)
    return {
        'count': len(ordered),
        'min': ordered[0],
        'max': ordered[-1],
        'mean': statistics.mean(ordered),
        'median': statistics.median(ordered),
        'p95': _nearest_rank(ordered, 0.95),
        'p99': _nearest_rank(ordered, 0.99),
    }


@dataclass
class CounterSnapshot:
    """Point-in-time copy of the collector."""

    timestamp: float
    counters: Dict[str, int] = field(default_factory=dict)
    drop_reasons: Dict[str, int] = field(default_factory=dict)
    histograms: Dict[str, List[float]] = field(default_factory=dict)

    def total_dropped(self) -> int:
        return sum(self.drop_reasons.values())

    def drop_rate(self, total_items: int) -> float:
        """Dropped items as a percentage of ``total_items``."""
        if total_items == 0:
            return 0.0
        return 100.0 * self.total_dropped() / total_items

    def active_drop_reasons(self) -> Dict[str, int]:
        return {reason: n for reason, n in self.drop_reasons.items() if n > 0}


class MetricsCollector:
    """
    Thread-safe counters, drop reasons and histograms.

    Example:
        metrics = MetricsCollector()
        metrics.increment('fusion_cycles')
        metrics.increment_drop('singular_geometry')
        metrics.record_histogram('route_length_m', 42.0)
    """

    DROP_REASONS = {
        'stale': 'Observation older than the staleness window',
        'unknown_anchor': 'Observation for an anchor missing from the anchor table',
        'duplicate_anchor': 'Older reading superseded by a fresher one',
        'non_finite_distance': 'RSSI converted to a non-finite distance',
        'insufficient_anchors': 'Fewer than three usable anchors',
        'singular_geometry': 'Colinear or coincident anchors',
        'no_estimate': 'Cycle produced no position estimate',
        'no_route': 'Goal node unreachable from start node',
        'no_node_on_floor': 'No graph node on the query floor',
        'no_fingerprint_match': 'No reference fingerprint shares an access point with the scan',
    }

    STANDARD_COUNTERS = (
        'observations_in',
        'fusion_cycles',
        'position_estimates',
        'centroid_fallbacks',
        'fingerprint_estimates',
        'presence_evaluations',
        'presence_transitions',
        'routes_requested',
        'routes_planned',
    )

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._drop_reasons: Dict[str, int] = {}
        self._histograms: Dict[str, Deque[float]] = {}
        self._start_time = time.time()
        self._zero()

    def _zero(self):
        # Caller holds the lock, or the object is still being built.
        self._counters = dict.fromkeys(self.STANDARD_COUNTERS, 0)
        self._counters['items_dropped'] = 0
        self._drop_reasons = dict.fromkeys(self.DROP_REASONS, 0)
        self._histograms = {}

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def increment(self, counter_name: str, value: int = 1):
        with self._lock:
            self._counters[counter_name] = self._counters.get(counter_name, 0) + value

    def increment_drop(self, reason: str, value: int = 1):
        """
        Count ``value`` dropped items under ``reason``.

        Reasons outside DROP_REASONS are logged and still counted.
        """
        if reason not in self.DROP_REASONS:
            logger.warning(f"Unknown drop reason '{reason}'")

        with self._lock:
            self._drop_reasons[reason] = self._drop_reasons.get(reason, 0) + value
            self._counters['items_dropped'] += value

    def record_histogram(
        self,
        histogram_name: str,
        value: float,
        max_samples: int = DEFAULT_HISTOGRAM_WINDOW,
    ):
        """Append a sample; only the newest ``max_samples`` are kept."""
        with self._lock:
            window = self._histograms.get(histogram_name)
            if window is None or window.maxlen != max_samples:
                window = deque(window or (), maxlen=max_samples)
                self._histograms[histogram_name] = window
            window.append(float(value))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_counter(self, counter_name: str) -> int:
        with self._lock:
            return self._counters.get(counter_name, 0)

    def get_drop_count(self, reason: str) -> int:
        with self._lock:
            return self._drop_reasons.get(reason, 0)

    def get_histogram_stats(self, histogram_name: str) -> Optional[Dict[str, float]]:
        """Summary statistics for one histogram, or None when it has no samples."""
        with self._lock:
            samples = list(self._histograms.get(histogram_name, ()))
        return summarize_samples(samples)

    def snapshot(self) -> CounterSnapshot:
        with self._lock:
            return CounterSnapshot(
                timestamp=time.time(),
                counters=dict(self._counters),
                drop_reasons=dict(self._drop_reasons),
                histograms={name: list(w) for name, w in self._histograms.items()},
            )

    def reset(self):
        with self._lock:
            self._zero()
            self._start_time = time.time()

    def get_uptime(self) -> float:
        return time.time() - self._start_time

    def format_summary(self) -> str:
        """Multi-line report for the end of a scenario run."""
        snap = self.snapshot()
        rule = "=" * 70

        lines = [rule, f"  METRICS SUMMARY (uptime: {self.get_uptime():.1f}s)", rule, "", "COUNTERS:"]
        lines += [f"  {name:30s}: {value:8d}" for name, value in sorted(snap.counters.items())]

        dropped = snap.total_dropped()
        if dropped:
            lines += ["", "DROP REASONS:"]
            for reason, count in sorted(snap.active_drop_reasons().items()):
                lines.append(f"  {reason:30s}: {count:8d} ({100.0 * count / dropped:5.1f}%)")

        if snap.histograms:
            lines += ["", "HISTOGRAMS:"]
            for name, samples in sorted(snap.histograms.items()):
                stats = summarize_samples(samples)
                if stats is None:
                    continue
                lines.append(
                    f"  {name}: count={stats['count']}, mean={stats['mean']:.3f}, "
                    f"p95={stats['p95']:.3f}, max={stats['max']:.3f}"
                )

        lines.append(rule)
        return "\n".join(lines)
