"""
Process-wide diagnostics for the positioning and navigation pipelines.

Failures degrade to "no estimate" / "no route" rather than raising, so the
reason for each one is counted here instead:

    from inav_core.metrics import get_metrics

    get_metrics().increment_drop('no_route')
"""

from .counters import CounterSnapshot, MetricsCollector, summarize_samples

_collector = None


def get_metrics() -> MetricsCollector:
    """Shared collector, created on first use."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector


def reset_metrics():
    """Replace the shared collector with an empty one."""
    global _collector
    _collector = MetricsCollector()


__all__ = ['CounterSnapshot', 'MetricsCollector', 'get_metrics', 'reset_metrics', 'summarize_samples']
