"""
Navigation Module: waypoint graph, A* routing, instructions.

Key classes:
- NavigationGraph: per-floor waypoint graph with floor transitions
- PathPlanner: A* route search with a floor-change penalty
- InstructionGenerator: turn-by-turn instructions for a Route
- RouteMetricsCalculator: distance, ETA, remaining distance
"""

from .graph import (
    NavigationGraph,
    NavNode,
    NodeKind,
    edge_cost,
    DEFAULT_FLOOR_PENALTY_M,
)
from .path_planner import (
    PathPlanner,
    PathPlannerConfig,
    plan_route,
)
from .instructions import (
    InstructionGenerator,
    InstructionConfig,
    classify_turn,
    turn_angle_deg,
)
from .route_metrics import (
    RouteMetricsCalculator,
    RouteMetricsConfig,
)

__all__ = [
    # Graph
    'NavigationGraph',
    'NavNode',
    'NodeKind',
    'edge_cost',
    'DEFAULT_FLOOR_PENALTY_M',
    # Routing
    'PathPlanner',
    'PathPlannerConfig',
    'plan_route',
    # Instructions
    'InstructionGenerator',
    'InstructionConfig',
    'classify_turn',
    'turn_angle_deg',
    # Metrics
    'RouteMetricsCalculator',
    'RouteMetricsConfig',
]
