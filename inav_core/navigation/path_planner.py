"""
Path Planner (A* over the navigation graph).

Edge cost: planar distance + floor_penalty_m * |floor delta|.
Heuristic: the same formula between a node and the goal node.

The floor penalty is a fixed constant, not a measured inter-floor travel
cost. The heuristic is therefore only admissible relative to this cost
model: routes are optimal in penalised meters, not in real walking time,
and floor changes are discouraged more than their true cost would. This
relaxation is intentional.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import heapq
import itertools
import logging

from inav_core.proto.geometry import Position3D
from inav_core.proto.route import Route
from inav_core.navigation.graph import NavigationGraph, edge_cost, DEFAULT_FLOOR_PENALTY_M
from inav_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class PathPlannerConfig:
    """
    Configuration for path planner.

    Attributes:
        floor_penalty_m: Extra cost per floor crossed (m)
        min_waypoint_spacing_m: Consecutive same-floor waypoints closer than
            this are collapsed
    """

    floor_penalty_m: float = DEFAULT_FLOOR_PENALTY_M
    min_waypoint_spacing_m: float = 1.0

    def __post_init__(self):
        if self.floor_penalty_m < 0:
            raise ValueError(f"Floor penalty cannot be negative: {self.floor_penalty_m}")

        if self.min_waypoint_spacing_m < 0:
            raise ValueError(
                f"Waypoint spacing cannot be negative: {self.min_waypoint_spacing_m}"
            )


class PathPlanner:
    """
    Route search over a frozen navigation graph.

    Usage:
        planner = PathPlanner(graph)

        route = planner.find_path(Position3D(1, 1, 0), Position3D(40, 12, 2))
        if route is None:
            print("No route")

    Notes:
        - Each query allocates its own search state; a planner can serve
          concurrent queries as long as the graph is not mutated
    """

    def __init__(self, graph: NavigationGraph, config: Optional[PathPlannerConfig] = None):
        """
        Initialize path planner.

        Args:
            graph: Navigation graph (should be frozen)
            config: Planner configuration (uses defaults if None)
        """
        self.graph = graph
        self.config = config or PathPlannerConfig()
        self.metrics = get_metrics()

        if not graph.is_frozen:
            logger.warning("Path planner created on a mutable navigation graph")

    def find_path(self, start: Position3D, end: Position3D) -> Optional[Route]:
        """
        Plan a route between two positions.

        Args:
            start: Start position (floor used to match a node)
            end: Destination position

        Returns:
            Route whose first waypoint is start and last is end, or None when
            an endpoint has no node on its floor or no path exists
        """
        self.metrics.increment('routes_requested')

        if self.graph.is_empty:
            # Nothing to route through: go straight there
            route = Route(start, end, (start, end))
            self._record(route)
            return route

        start_node = self.graph.nearest_node(start, same_floor=True)
        end_node = self.graph.nearest_node(end, same_floor=True)

        if start_node is None or end_node is None:
            missing = start.floor if start_node is None else end.floor
            logger.info(f"No navigation node on floor {missing}")
            self.metrics.increment_drop('no_node_on_floor')
            return None

        node_path = self.find_node_path(start_node.id, end_node.id)
        if node_path is None:
            logger.info(f"No route from {start_node.id} to {end_node.id}")
            self.metrics.increment_drop('no_route')
            return None

        waypoints = self._build_waypoints(start, end, node_path)
        route = Route(start, end, tuple(waypoints))
        self._record(route)

        logger.debug(
            f"Route {start_node.id} -> {end_node.id}: {len(node_path)} nodes, "
            f"{route.num_waypoints} waypoints, {route.total_length_m():.1f}m"
        )
        return route

    def find_node_path(self, start_id: str, goal_id: str) -> Optional[List[str]]:
        """
        A* between two graph nodes.

        Returns:
            Node IDs from start to goal inclusive, or None if unreachable

        Raises:
            KeyError: unknown node ID
        """
        graph = self.graph
        penalty = self.config.floor_penalty_m
        goal_pos = graph.position(goal_id)
        graph.position(start_id)

        if start_id == goal_id:
            return [start_id]

        # Insertion counter breaks ties so heap entries never compare IDs
        counter = itertools.count()
        open_heap = [(edge_cost(graph.position(start_id), goal_pos, penalty), next(counter), start_id)]
        g_score: Dict[str, float] = {start_id: 0.0}
        came_from: Dict[str, str] = {}
        closed = set()

        while open_heap:
            _, _, current = heapq.heappop(open_heap)
            if current in closed:
                continue

            if current == goal_id:
                self.metrics.record_histogram('astar_expanded_nodes', len(closed) + 1)
                return self._reconstruct(came_from, current)

            closed.add(current)
            current_pos = graph.position(current)

            for neighbor in graph.neighbors(current):
                if neighbor in closed:
                    continue

                neighbor_pos = graph.position(neighbor)
                tentative = g_score[current] + edge_cost(current_pos, neighbor_pos, penalty)

                if tentative < g_score.get(neighbor, float('inf')):
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative
                    f_score = tentative + edge_cost(neighbor_pos, goal_pos, penalty)
                    heapq.heappush(open_heap, (f_score, next(counter), neighbor))

        self.metrics.record_histogram('astar_expanded_nodes', len(closed))
        return None

    def path_cost(self, node_path: List[str]) -> float:
        """Sum of edge costs along a node path."""
        penalty = self.config.floor_penalty_m
        return sum(
            self.graph.edge_cost(a, b, penalty) for a, b in zip(node_path, node_path[1:])
        )

    @staticmethod
    def _reconstruct(came_from: Dict[str, str], current: str) -> List[str]:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path

    def _build_waypoints(
        self,
        start: Position3D,
        end: Position3D,
        node_path: List[str],
    ) -> List[Position3D]:
        """start + node positions + end, collapsing close same-floor points."""
        spacing = self.config.min_waypoint_spacing_m
        waypoints = [start]

        for node_id in node_path:
            position = self.graph.position(node_id)
            if self._too_close(waypoints[-1], position, spacing):
                continue
            waypoints.append(position)

        # The literal destination always ends the route
        if len(waypoints) > 1 and self._too_close(waypoints[-1], end, spacing):
            waypoints[-1] = end
        else:
            waypoints.append(end)

        return waypoints

    @staticmethod
    def _too_close(a: Position3D, b: Position3D, spacing: float) -> bool:
        return a.floor == b.floor and a.distance_to(b) < spacing

    def _record(self, route: Route):
        self.metrics.increment('routes_planned')
        self.metrics.record_histogram('route_length_m', route.total_length_m())


def plan_route(
    graph: NavigationGraph,
    start: Position3D,
    end: Position3D,
    config: Optional[PathPlannerConfig] = None,
) -> Optional[Route]:
    """Single-call route query."""
    return PathPlanner(graph, config).find_path(start, end)
