"""
Unit tests for A* path planning.

Tests cover:
- Optimal path on a trivial line graph
- Multi-floor routing through transition nodes
- Floor penalty steering route choice
- Disconnected graphs, empty graphs, missing floors
- Literal start/end waypoints and close-waypoint collapsing
"""

import math

import pytest

from inav_core.proto import Position3D
from inav_core.navigation import (
    NavigationGraph,
    NodeKind,
    PathPlanner,
    PathPlannerConfig,
    plan_route,
)
from inav_core.metrics import get_metrics


@pytest.fixture
def detour_graph() -> NavigationGraph:
    """
    Two ways from A to B on floor 0.

    Same-floor detour via M (~36.06m), or a planar-shorter route (30m) up the
    stairs at S and back down at T, which crosses two floors.
    """
    graph = NavigationGraph()
    graph.add_node("A", Position3D(0, 0, 0))
    graph.add_node("B", Position3D(30, 0, 0))
    graph.add_node("M", Position3D(15, 10, 0))
    graph.add_node("S0", Position3D(0, 0.5, 0), NodeKind.STAIRS)
    graph.add_node("S1", Position3D(0, 0.5, 1), NodeKind.STAIRS)
    graph.add_node("T1", Position3D(30, 0.5, 1), NodeKind.STAIRS)
    graph.add_node("T0", Position3D(30, 0.5, 0), NodeKind.STAIRS)
    graph.connect("A", "M")
    graph.connect("M", "B")
    graph.connect("A", "S0")
    graph.connect("S0", "S1")
    graph.connect("S1", "T1")
    graph.connect("T1", "T0")
    graph.connect("T0", "B")
    return graph.freeze()


# =============================================================================
# Test Route Shape
# =============================================================================


class TestFindPath:
    """Tests for PathPlanner.find_path()."""

    def test_line_graph_goes_through_middle(self, line_graph):
        """A-B-C: route passes B and has length dist(A,B)+dist(B,C)."""
        planner = PathPlanner(line_graph)

        route = planner.find_path(Position3D(0, 0, 0), Position3D(2, 0, 0))

        assert route is not None
        assert Position3D(1, 0, 0) in route.waypoints
        assert route.total_length_m() == pytest.approx(2.0)

    def test_route_starts_and_ends_at_query_points(self, line_graph):
        start = Position3D(0.2, 0.4, 0)
        end = Position3D(2.3, -0.6, 0)

        route = PathPlanner(line_graph).find_path(start, end)

        assert route.waypoints[0] == start
        assert route.waypoints[-1] == end
        assert route.start == start
        assert route.end == end

    def test_close_waypoints_collapsed(self, line_graph):
        """Nodes within 1m of the previous waypoint are dropped."""
        route = PathPlanner(line_graph).find_path(Position3D(0.3, 0, 0), Position3D(1.8, 0, 0))

        for a, b in zip(route.waypoints, route.waypoints[1:-1]):
            assert a.distance_to(b) >= 1.0
        assert Position3D(0, 0, 0) not in route.waypoints

    def test_same_node_for_both_ends(self, line_graph):
        route = PathPlanner(line_graph).find_path(Position3D(0.1, 0, 0), Position3D(0.2, 0, 0))

        assert route.waypoints == (Position3D(0.1, 0, 0), Position3D(0.2, 0, 0))

    def test_grid_route_is_manhattan_optimal(self):
        graph = NavigationGraph.grid(5, 5, floor=0, width_m=40.0, height_m=40.0)

        route = PathPlanner(graph).find_path(Position3D(0, 0, 0), Position3D(40, 40, 0))

        assert route.total_length_m() == pytest.approx(80.0)

    def test_plan_route_helper(self, line_graph):
        route = plan_route(line_graph, Position3D(0, 0, 0), Position3D(2, 0, 0))

        assert route is not None
        assert route.num_waypoints == 3


class TestMultiFloor:
    """Routing across floors through transition nodes."""

    def test_route_uses_stairs(self, two_floor_graph):
        route = PathPlanner(two_floor_graph).find_path(Position3D(0, 0, 0), Position3D(0, 0, 1))

        assert route.floor_changes == 1
        assert Position3D(20, 0, 0) in route.waypoints
        assert Position3D(20, 0, 1) in route.waypoints
        assert route.total_length_m() == pytest.approx(40.0)
        assert route.total_length_m(floor_penalty_m=15.0) == pytest.approx(55.0)

    def test_coincident_transition_nodes_not_collapsed(self, two_floor_graph):
        """Stacked stair nodes are 0m apart in plan but on different floors."""
        route = PathPlanner(two_floor_graph).find_path(Position3D(0, 0, 0), Position3D(0, 0, 1))

        floors = [w.floor for w in route.waypoints]
        assert floors == sorted(floors)
        assert floors[0] == 0 and floors[-1] == 1

    def test_floor_penalty_avoids_needless_floor_changes(self, detour_graph):
        planner = PathPlanner(detour_graph)

        route = planner.find_path(Position3D(0, 0, 0), Position3D(30, 0, 0))

        assert route.floor_changes == 0
        assert Position3D(15, 10, 0) in route.waypoints

    def test_without_penalty_shorter_floor_route_wins(self, detour_graph):
        planner = PathPlanner(detour_graph, PathPlannerConfig(floor_penalty_m=0.0))

        route = planner.find_path(Position3D(0, 0, 0), Position3D(30, 0, 0))

        assert route.floor_changes == 2

    def test_penalty_cost_difference(self, detour_graph):
        """Crossing floors costs at least the penalty more than the planar distance."""
        planner = PathPlanner(detour_graph)
        floor_path = ["A", "S0", "S1", "T1", "T0", "B"]

        planar = 0.5 + 30.0 + 0.5
        assert planner.path_cost(floor_path) - planar >= 2 * 15.0 - 1e-9

    def test_endpoint_floor_without_nodes(self, two_floor_graph):
        route = PathPlanner(two_floor_graph).find_path(Position3D(0, 0, 0), Position3D(0, 0, 4))

        assert route is None
        assert get_metrics().get_drop_count('no_node_on_floor') == 1


# =============================================================================
# Test Failure and Fallback
# =============================================================================


class TestNoRoute:
    """Unreachable goals and degenerate graphs."""

    def test_disconnected_components(self, disconnected_graph):
        planner = PathPlanner(disconnected_graph)

        route = planner.find_path(Position3D(1, 0, 0), Position3D(54, 0, 0))

        assert route is None
        assert get_metrics().get_drop_count('no_route') == 1

    def test_find_node_path_disconnected(self, disconnected_graph):
        assert PathPlanner(disconnected_graph).find_node_path("A", "Y") is None

    def test_find_node_path_unknown_node(self, line_graph):
        with pytest.raises(KeyError):
            PathPlanner(line_graph).find_node_path("A", "nope")

    def test_empty_graph_returns_direct_route(self):
        start = Position3D(0, 0, 0)
        end = Position3D(10, 5, 2)

        route = PathPlanner(NavigationGraph().freeze()).find_path(start, end)

        assert route.waypoints == (start, end)
        assert route.total_length_m() == pytest.approx(math.hypot(10, 5))


class TestNodePath:
    """Tests for find_node_path()."""

    def test_node_path(self, two_floor_graph):
        path = PathPlanner(two_floor_graph).find_node_path("F0", "F1")

        assert path == ["F0", "H0", "S0", "S1", "H1", "F1"]

    def test_trivial_node_path(self, line_graph):
        assert PathPlanner(line_graph).find_node_path("B", "B") == ["B"]

    def test_metrics_recorded(self, line_graph):
        PathPlanner(line_graph).find_path(Position3D(0, 0, 0), Position3D(2, 0, 0))

        metrics = get_metrics()
        assert metrics.get_counter('routes_requested') == 1
        assert metrics.get_counter('routes_planned') == 1
        assert metrics.get_histogram_stats('route_length_m')['count'] == 1
        assert metrics.get_histogram_stats('astar_expanded_nodes')['count'] == 1

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            PathPlannerConfig(floor_penalty_m=-1.0)
