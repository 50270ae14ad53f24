"""
Indoor Navigation (iNav) Core Package.

Signal-based indoor positioning, indoor/outdoor presence detection and
multi-floor route planning.

Package structure:
- proto: Value types (positions, observations, estimates, routes)
- localization: RSSI ranging, multilateration, smoothing, fusion cycle
- domain: WiFi fingerprint scoring, presence detection
- navigation: Navigation graph, A* planner, instructions, route metrics
- metrics: Diagnostics, counters, histograms

Entry points:
- estimate_position(observations, anchors)
- detect_presence(wifi_confidence, gps_fix, building_reference)
- plan_route(graph, start, end)
"""

__version__ = "0.1.0"
__author__ = "iNav Core Team"

from .localization import estimate_position
from .domain import detect_presence
from .navigation import plan_route
from .metrics import get_metrics, reset_metrics

__all__ = [
    'estimate_position',
    'detect_presence',
    'plan_route',
    'get_metrics',
    'reset_metrics',
]
