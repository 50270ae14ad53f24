"""
Unit tests for the navigation graph.

Tests cover:
- Node/edge construction and symmetric edges
- Freezing and copy-on-edit
- Nearest-node matching per floor
- Edge cost with floor penalty
- Dict/JSON loading, grid builder and validation
"""

import json

import pytest

from inav_core.proto import Position3D
from inav_core.navigation import NavigationGraph, NodeKind, edge_cost


# =============================================================================
# Test Construction
# =============================================================================


class TestGraphConstruction:
    """Tests for the builder methods."""

    def test_add_and_connect(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))
        graph.add_node("B", Position3D(3, 4, 0))

        graph.connect("A", "B")

        assert graph.neighbors("A") == frozenset({"B"})
        assert graph.neighbors("B") == frozenset({"A"})
        assert graph.num_edges == 1

    def test_duplicate_node_rejected(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))

        with pytest.raises(ValueError):
            graph.add_node("A", Position3D(1, 1, 0))

    def test_connect_unknown_node(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))

        with pytest.raises(KeyError):
            graph.connect("A", "missing")

    def test_self_loop_rejected(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))

        with pytest.raises(ValueError):
            graph.connect("A", "A")

    def test_disconnect(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))
        graph.add_node("B", Position3D(1, 0, 0))
        graph.connect("A", "B")

        assert graph.disconnect("B", "A") is True
        assert graph.neighbors("A") == frozenset()
        assert graph.disconnect("A", "B") is False

    def test_remove_node_drops_edges(self):
        graph = NavigationGraph()
        for node_id, x in (("A", 0), ("B", 1), ("C", 2)):
            graph.add_node(node_id, Position3D(x, 0, 0))
        graph.connect("A", "B")
        graph.connect("B", "C")

        assert graph.remove_node("B") is True

        assert "B" not in graph
        assert graph.neighbors("A") == frozenset()
        assert graph.neighbors("C") == frozenset()
        assert graph.remove_node("B") is False

    def test_node_record(self):
        graph = NavigationGraph()
        graph.add_node("S", Position3D(5, 5, 1), NodeKind.ELEVATOR)

        node = graph.node("S")

        assert node.id == "S"
        assert node.floor == 1
        assert node.kind == NodeKind.ELEVATOR
        assert node.kind.is_floor_transition

    def test_floor_transition_kinds(self):
        transitions = {k for k in NodeKind if k.is_floor_transition}

        assert transitions == {NodeKind.STAIRS, NodeKind.ELEVATOR, NodeKind.ESCALATOR}


class TestFreeze:
    """A frozen graph is read-only."""

    def test_frozen_rejects_mutation(self, line_graph):
        assert line_graph.is_frozen

        with pytest.raises(RuntimeError):
            line_graph.add_node("D", Position3D(3, 0, 0))
        with pytest.raises(RuntimeError):
            line_graph.connect("A", "C")
        with pytest.raises(RuntimeError):
            line_graph.remove_node("A")

    def test_copy_is_mutable_and_independent(self, line_graph):
        clone = line_graph.copy()

        clone.connect("A", "C")

        assert not clone.is_frozen
        assert "C" in clone.neighbors("A")
        assert "C" not in line_graph.neighbors("A")

    def test_node_neighbors_are_immutable(self, line_graph):
        node = line_graph.node("B")

        assert isinstance(node.neighbors, frozenset)


# =============================================================================
# Test Queries
# =============================================================================


class TestGraphQueries:
    """Tests for lookup helpers."""

    def test_nearest_node_same_floor(self, two_floor_graph):
        node = two_floor_graph.nearest_node(Position3D(11, 1, 1))

        assert node.id == "H1"

    def test_nearest_node_never_crosses_floors(self, two_floor_graph):
        assert two_floor_graph.nearest_node(Position3D(0, 0, 5)) is None

    def test_nearest_node_any_floor(self, two_floor_graph):
        node = two_floor_graph.nearest_node(Position3D(0, 0, 5), same_floor=False)

        assert node.id in ("F0", "F1")

    def test_nodes_on_floor_and_floors(self, two_floor_graph):
        assert {n.id for n in two_floor_graph.nodes_on_floor(1)} == {"S1", "H1", "F1"}
        assert two_floor_graph.floors == [0, 1]
        assert len(two_floor_graph) == 6

    def test_empty_graph(self):
        graph = NavigationGraph()

        assert graph.is_empty
        assert graph.nearest_node(Position3D(0, 0, 0)) is None
        assert graph.floors == []


class TestEdgeCost:
    """Euclidean distance plus the floor penalty."""

    def test_same_floor_cost_is_distance(self):
        assert edge_cost(Position3D(0, 0, 0), Position3D(3, 4, 0)) == pytest.approx(5.0)

    def test_floor_change_adds_penalty(self):
        same = edge_cost(Position3D(0, 0, 0), Position3D(3, 4, 0), 15.0)
        cross = edge_cost(Position3D(0, 0, 0), Position3D(3, 4, 1), 15.0)

        assert cross - same >= 15.0

    def test_penalty_per_floor(self):
        assert edge_cost(Position3D(0, 0, 0), Position3D(0, 0, 3), 15.0) == pytest.approx(45.0)

    def test_graph_edge_cost(self, two_floor_graph):
        assert two_floor_graph.edge_cost("S0", "S1") == pytest.approx(15.0)
        assert two_floor_graph.edge_cost("F0", "H0") == pytest.approx(10.0)

    def test_edge_cost_requires_edge(self, two_floor_graph):
        with pytest.raises(KeyError):
            two_floor_graph.edge_cost("F0", "S0")


# =============================================================================
# Test Serialization and Builders
# =============================================================================


class TestGraphLoading:
    """Tests for from_dict / to_dict / JSON and grid()."""

    def test_from_dict_symmetrises_and_skips_unknown(self):
        data = {
            "nodes": [
                {"id": "A", "x": 0, "y": 0, "floor": 0, "connections": ["B", "ghost"]},
                {"id": "B", "x": 5, "y": 0, "floor": 0, "kind": "intersection"},
            ]
        }

        graph = NavigationGraph.from_dict(data)

        assert graph.is_frozen
        assert graph.neighbors("B") == frozenset({"A"})
        assert graph.node("B").kind == NodeKind.INTERSECTION
        assert graph.validate() == []

    def test_json_round_trip(self, two_floor_graph):
        text = two_floor_graph.to_json()

        loaded = NavigationGraph.from_json(text)

        assert loaded.to_dict() == two_floor_graph.to_dict()
        assert json.loads(text)["nodes"][0]["id"] == "F0"

    def test_to_dict_format(self, line_graph):
        entry = line_graph.to_dict()["nodes"][1]

        assert entry == {
            "id": "B", "x": 1.0, "y": 0.0, "floor": 0,
            "kind": "CORRIDOR", "connections": ["A", "C"],
        }

    def test_grid_builder(self):
        graph = NavigationGraph.grid(3, 4, floor=2, width_m=30.0, height_m=20.0)

        assert len(graph) == 12
        # 3 rows of 3 horizontal edges + 4 columns of 2 vertical edges
        assert graph.num_edges == 3 * 3 + 4 * 2
        assert graph.position("node_2_2_3") == Position3D(30.0, 20.0, 2)
        assert graph.neighbors("node_2_0_0") == frozenset({"node_2_0_1", "node_2_1_0"})

    def test_grid_too_small(self):
        with pytest.raises(ValueError):
            NavigationGraph.grid(1, 5, floor=0, width_m=10.0, height_m=10.0)


class TestValidate:
    """validate() reports structural problems."""

    def test_consistent_graph_has_no_problems(self, two_floor_graph):
        assert two_floor_graph.validate() == []

    def test_floor_crossing_without_transition(self):
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))
        graph.add_node("B", Position3D(0, 0, 1))
        graph.connect("A", "B")

        problems = graph.validate()

        assert len(problems) == 2
        assert "transition" in problems[0]
