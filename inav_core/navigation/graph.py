"""
Navigation Graph.

Sparse graph of walkable waypoint nodes per floor, plus transition nodes
(stairs, elevators, escalators) whose edges connect floors. Edges are
always stored symmetrically.

The graph is built (or reloaded) from configuration, then frozen; a frozen
graph rejects mutation so it stays fixed for the duration of route queries.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, FrozenSet, Iterator, List, Optional, Set
import json
import logging

from inav_core.proto.geometry import Position3D

logger = logging.getLogger(__name__)


DEFAULT_FLOOR_PENALTY_M = 15.0


class NodeKind(IntEnum):
    """Closed set of waypoint kinds."""

    CORRIDOR = 0
    ROOM = 1
    INTERSECTION = 2
    ENTRANCE = 3
    STAIRS = 4
    ELEVATOR = 5
    ESCALATOR = 6

    @property
    def is_floor_transition(self) -> bool:
        return self in (NodeKind.STAIRS, NodeKind.ELEVATOR, NodeKind.ESCALATOR)


@dataclass(frozen=True)
class NavNode:
    """
    Navigation waypoint.

    Attributes:
        id: Node identifier
        position: Position with floor
        neighbors: IDs of connected nodes
        kind: Waypoint kind
    """

    id: str
    position: Position3D
    neighbors: FrozenSet[str] = frozenset()
    kind: NodeKind = NodeKind.CORRIDOR

    @property
    def floor(self) -> int:
        return self.position.floor


def edge_cost(a: Position3D, b: Position3D, floor_penalty_m: float = DEFAULT_FLOOR_PENALTY_M) -> float:
    """
    Traversal cost between two positions.

    Planar Euclidean distance plus floor_penalty_m per floor crossed.
    """
    return a.distance_to(b) + floor_penalty_m * a.floor_difference(b)


class NavigationGraph:
    """
    Undirected navigation graph.

    Usage:
        graph = NavigationGraph()
        graph.add_node("A", Position3D(0, 0, 0))
        graph.add_node("B", Position3D(10, 0, 0), NodeKind.STAIRS)
        graph.add_node("B1", Position3D(10, 0, 1), NodeKind.STAIRS)
        graph.connect("A", "B")
        graph.connect("B", "B1")
        graph.freeze()

        node = graph.nearest_node(Position3D(1, 1, 0))
    """

    def __init__(self):
        self._positions: Dict[str, Position3D] = {}
        self._kinds: Dict[str, NodeKind] = {}
        self._adjacency: Dict[str, Set[str]] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(
        self,
        node_id: str,
        position: Position3D,
        kind: NodeKind = NodeKind.CORRIDOR,
    ) -> NavNode:
        """
        Add a node.

        Raises:
            ValueError: empty or duplicate node ID
        """
        self._check_mutable()

        if not node_id:
            raise ValueError("Node id cannot be empty")
        if node_id in self._positions:
            raise ValueError(f"Duplicate node id: {node_id}")

        self._positions[node_id] = position
        self._kinds[node_id] = NodeKind(kind)
        self._adjacency[node_id] = set()
        return self.node(node_id)

    def connect(self, a: str, b: str):
        """
        Connect two nodes in both directions.

        Raises:
            KeyError: unknown node ID
            ValueError: self-connection
        """
        self._check_mutable()
        self._require(a)
        self._require(b)

        if a == b:
            raise ValueError(f"Cannot connect node to itself: {a}")

        self._adjacency[a].add(b)
        self._adjacency[b].add(a)

    def disconnect(self, a: str, b: str) -> bool:
        """Remove the edge between two nodes. Returns False if absent."""
        self._check_mutable()
        if b not in self._adjacency.get(a, ()):
            return False

        self._adjacency[a].discard(b)
        self._adjacency[b].discard(a)
        return True

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and all its edges. Returns False if absent."""
        self._check_mutable()
        if node_id not in self._positions:
            return False

        for neighbor in self._adjacency.pop(node_id):
            self._adjacency[neighbor].discard(node_id)

        del self._positions[node_id]
        del self._kinds[node_id]
        return True

    def freeze(self) -> "NavigationGraph":
        """Make the graph read-only. Returns self."""
        if not self._frozen:
            self._frozen = True
            logger.info(
                f"Navigation graph frozen: {len(self)} nodes, {self.num_edges} edges, "
                f"floors {self.floors}"
            )
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "NavigationGraph":
        """Mutable copy (for editing or reloading)."""
        clone = NavigationGraph()
        clone._positions = dict(self._positions)
        clone._kinds = dict(self._kinds)
        clone._adjacency = {k: set(v) for k, v in self._adjacency.items()}
        return clone

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._positions)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._positions

    def __iter__(self) -> Iterator[NavNode]:
        for node_id in self._positions:
            yield self.node(node_id)

    @property
    def is_empty(self) -> bool:
        return not self._positions

    @property
    def num_edges(self) -> int:
        return sum(len(n) for n in self._adjacency.values()) // 2

    @property
    def floors(self) -> List[int]:
        return sorted({p.floor for p in self._positions.values()})

    def node(self, node_id: str) -> NavNode:
        """Node by ID. Raises KeyError if absent."""
        self._require(node_id)
        return NavNode(
            id=node_id,
            position=self._positions[node_id],
            neighbors=frozenset(self._adjacency[node_id]),
            kind=self._kinds[node_id],
        )

    def position(self, node_id: str) -> Position3D:
        self._require(node_id)
        return self._positions[node_id]

    def neighbors(self, node_id: str) -> FrozenSet[str]:
        self._require(node_id)
        return frozenset(self._adjacency[node_id])

    def nodes_on_floor(self, floor: int) -> List[NavNode]:
        return [self.node(nid) for nid, p in self._positions.items() if p.floor == floor]

    def nearest_node(self, position: Position3D, same_floor: bool = True) -> Optional[NavNode]:
        """
        Closest node by planar distance.

        Args:
            position: Query position
            same_floor: Only consider nodes on the query floor

        Returns:
            Closest node, or None if there is no candidate
        """
        best_id = None
        best_distance = float('inf')

        for node_id, node_pos in self._positions.items():
            if same_floor and node_pos.floor != position.floor:
                continue
            distance = position.distance_to(node_pos)
            if distance < best_distance:
                best_id, best_distance = node_id, distance

        return None if best_id is None else self.node(best_id)

    def edge_cost(self, a: str, b: str, floor_penalty_m: float = DEFAULT_FLOOR_PENALTY_M) -> float:
        """
        Cost of the edge a-b.

        Raises:
            KeyError: nodes unknown or not connected
        """
        if b not in self.neighbors(a):
            raise KeyError(f"No edge between {a} and {b}")
        return edge_cost(self._positions[a], self._positions[b], floor_penalty_m)

    def validate(self) -> List[str]:
        """
        Consistency check.

        Returns:
            List of problems (empty when the graph is consistent)
        """
        problems = []
        for node_id, neighbors in self._adjacency.items():
            for neighbor in neighbors:
                if neighbor not in self._positions:
                    problems.append(f"{node_id} -> unknown node {neighbor}")
                elif node_id not in self._adjacency[neighbor]:
                    problems.append(f"{node_id} -> {neighbor} is not symmetric")

            kind = self._kinds[node_id]
            for neighbor in neighbors:
                if neighbor in self._positions and \
                        self._positions[neighbor].floor != self._positions[node_id].floor and \
                        not (kind.is_floor_transition or self._kinds[neighbor].is_floor_transition):
                    problems.append(
                        f"{node_id} -> {neighbor} crosses floors without a transition node"
                    )
        return problems

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """{"nodes": [{id, x, y, floor, kind, connections}, ...]}"""
        return {
            'nodes': [
                {
                    'id': node_id,
                    'x': pos.x,
                    'y': pos.y,
                    'floor': pos.floor,
                    'kind': self._kinds[node_id].name,
                    'connections': sorted(self._adjacency[node_id]),
                }
                for node_id, pos in self._positions.items()
            ]
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: dict, freeze: bool = True) -> "NavigationGraph":
        """
        Build a graph from its dictionary form.

        Connections to unknown nodes are skipped; one-sided connections are
        made symmetric.
        """
        graph = cls()
        entries = data.get('nodes', [])

        for entry in entries:
            kind = NodeKind[entry.get('kind', NodeKind.CORRIDOR.name).upper()]
            graph.add_node(
                str(entry['id']),
                Position3D(float(entry['x']), float(entry['y']), int(entry.get('floor', 0))),
                kind,
            )

        skipped = 0
        for entry in entries:
            node_id = str(entry['id'])
            for other in entry.get('connections', []):
                other = str(other)
                if other not in graph or other == node_id:
                    skipped += 1
                    continue
                graph.connect(node_id, other)

        if skipped:
            logger.warning(f"Skipped {skipped} connections to unknown or self nodes")

        return graph.freeze() if freeze else graph

    @classmethod
    def from_json(cls, text: str, freeze: bool = True) -> "NavigationGraph":
        return cls.from_dict(json.loads(text), freeze=freeze)

    @classmethod
    def grid(
        cls,
        rows: int,
        cols: int,
        floor: int,
        width_m: float,
        height_m: float,
        freeze: bool = True,
    ) -> "NavigationGraph":
        """
        Regular 4-connected grid on one floor.

        Node IDs are node_{floor}_{row}_{col}; rows run along y, cols along x.
        """
        if rows < 2 or cols < 2:
            raise ValueError(f"Grid needs at least 2x2 nodes: {rows}x{cols}")

        graph = cls()
        row_spacing = height_m / (rows - 1)
        col_spacing = width_m / (cols - 1)

        def node_id(r: int, c: int) -> str:
            return f"node_{floor}_{r}_{c}"

        for r in range(rows):
            for c in range(cols):
                graph.add_node(node_id(r, c), Position3D(c * col_spacing, r * row_spacing, floor))

        for r in range(rows):
            for c in range(cols):
                if c < cols - 1:
                    graph.connect(node_id(r, c), node_id(r, c + 1))
                if r < rows - 1:
                    graph.connect(node_id(r, c), node_id(r + 1, c))

        return graph.freeze() if freeze else graph

    # ------------------------------------------------------------------

    def _check_mutable(self):
        if self._frozen:
            raise RuntimeError("Navigation graph is frozen; use copy() to edit")

    def _require(self, node_id: str):
        if node_id not in self._positions:
            raise KeyError(f"Unknown node: {node_id}")
