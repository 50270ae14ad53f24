"""
Pytest configuration and shared fixtures for iNav core tests.

This module provides reusable fixtures for anchor layouts, signal
observations, navigation graphs and metrics isolation.
"""

import sys
import math
from pathlib import Path
from typing import Dict, List, Tuple

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from inav_core.metrics import reset_metrics
from inav_core.proto import Anchor, Position2D, Position3D, SignalObservation
from inav_core.navigation import NavigationGraph, NodeKind


# =============================================================================
# Metrics Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Give every test its own global metrics collector."""
    reset_metrics()
    yield
    reset_metrics()


# =============================================================================
# Anchor Configuration Fixtures
# =============================================================================


@pytest.fixture
def t_now() -> float:
    """Fixed cycle time so staleness checks are deterministic."""
    return 1000.0


@pytest.fixture
def square_anchors() -> Dict[str, Anchor]:
    """
    Four anchors at the corners of a 10m x 10m room on floor 0.

    Returns:
        Anchor table keyed by anchor ID.
    """
    return {
        "A0": Anchor("A0", Position2D(0.0, 0.0), floor=0),
        "A1": Anchor("A1", Position2D(10.0, 0.0), floor=0),
        "A2": Anchor("A2", Position2D(0.0, 10.0), floor=0),
        "A3": Anchor("A3", Position2D(10.0, 10.0), floor=0),
    }


@pytest.fixture
def colinear_anchors() -> Dict[str, Anchor]:
    """Three anchors on the x-axis (singular geometry)."""
    return {
        "L0": Anchor("L0", Position2D(0.0, 0.0)),
        "L1": Anchor("L1", Position2D(5.0, 0.0)),
        "L2": Anchor("L2", Position2D(10.0, 0.0)),
    }


# =============================================================================
# Observation Helpers
# =============================================================================


def rssi_for_distance(distance_m: float, tx_power: int = -59, exponent: float = 2.0) -> float:
    """
    Inverse of the log-distance path-loss model.

    Returns a float RSSI; observations round it, so distances recovered from
    it are only approximate.
    """
    return tx_power - 10.0 * exponent * math.log10(distance_m)


def observations_for(
    anchors: Dict[str, Anchor],
    true_position: Tuple[float, float],
    t_now: float,
    age_s: float = 0.5,
) -> List[SignalObservation]:
    """Noise-free (up to RSSI rounding) observations of every anchor."""
    x, y = true_position
    observations = []
    for anchor in anchors.values():
        distance = max(0.1, math.hypot(anchor.position.x - x, anchor.position.y - y))
        rssi = round(rssi_for_distance(distance, anchor.tx_power, anchor.path_loss_exponent))
        observations.append(SignalObservation(anchor.id, rssi, t_now - age_s))
    return observations


@pytest.fixture
def make_observations():
    """Factory fixture wrapping observations_for()."""
    return observations_for


# =============================================================================
# Navigation Graph Fixtures
# =============================================================================


@pytest.fixture
def line_graph() -> NavigationGraph:
    """A - B - C along the x-axis, 1m apart, floor 0."""
    graph = NavigationGraph()
    graph.add_node("A", Position3D(0.0, 0.0, 0))
    graph.add_node("B", Position3D(1.0, 0.0, 0))
    graph.add_node("C", Position3D(2.0, 0.0, 0))
    graph.connect("A", "B")
    graph.connect("B", "C")
    return graph.freeze()


@pytest.fixture
def two_floor_graph() -> NavigationGraph:
    """
    Corridor on floor 0 with stairs up to a corridor on floor 1.

        floor 0:  F0 --- H0 --- S0
                                |  (stairs)
        floor 1:  F1 --- H1 --- S1
    """
    graph = NavigationGraph()
    graph.add_node("F0", Position3D(0.0, 0.0, 0))
    graph.add_node("H0", Position3D(10.0, 0.0, 0), NodeKind.INTERSECTION)
    graph.add_node("S0", Position3D(20.0, 0.0, 0), NodeKind.STAIRS)
    graph.add_node("S1", Position3D(20.0, 0.0, 1), NodeKind.STAIRS)
    graph.add_node("H1", Position3D(10.0, 0.0, 1), NodeKind.INTERSECTION)
    graph.add_node("F1", Position3D(0.0, 0.0, 1))
    graph.connect("F0", "H0")
    graph.connect("H0", "S0")
    graph.connect("S0", "S1")
    graph.connect("S1", "H1")
    graph.connect("H1", "F1")
    return graph.freeze()


@pytest.fixture
def disconnected_graph() -> NavigationGraph:
    """Two components on floor 0: {A, B} and {X, Y}."""
    graph = NavigationGraph()
    graph.add_node("A", Position3D(0.0, 0.0, 0))
    graph.add_node("B", Position3D(5.0, 0.0, 0))
    graph.add_node("X", Position3D(50.0, 0.0, 0))
    graph.add_node("Y", Position3D(55.0, 0.0, 0))
    graph.connect("A", "B")
    graph.connect("X", "Y")
    return graph.freeze()
