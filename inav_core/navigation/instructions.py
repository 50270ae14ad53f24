"""
Turn-by-turn instruction generation.

Turns are classified from the signed angle between the incoming and the
outgoing segment at each waypoint. Positive angles are right turns in the
building's y-up frame.

    |angle| > 150          -> TURN_AROUND
    angle > 45 / < -45     -> RIGHT / LEFT
    angle > 20 / < -20     -> SLIGHT_RIGHT / SLIGHT_LEFT
    otherwise              -> straight (CONTINUE if the next leg is long)
"""

from dataclasses import dataclass
from typing import List, Optional
import logging
import math

from inav_core.proto.geometry import Position3D
from inav_core.proto.route import (
    Route,
    NavigationInstruction,
    InstructionType,
    TurnDirection,
)
from inav_core.navigation.graph import NavigationGraph

logger = logging.getLogger(__name__)


@dataclass
class InstructionConfig:
    """
    Configuration for instruction generation.

    Attributes:
        u_turn_deg: Angle above which a turn is a U-turn
        turn_deg: Angle above which a turn is a full left/right
        slight_turn_deg: Angle above which a turn is reported at all
        continue_min_m: Straight legs longer than this get a CONTINUE
        transition_match_m: Max distance to match a waypoint to a
            transition node (for naming stairs/elevators)
    """

    u_turn_deg: float = 150.0
    turn_deg: float = 45.0
    slight_turn_deg: float = 20.0
    continue_min_m: float = 5.0
    transition_match_m: float = 0.5

    def __post_init__(self):
        if not 0 < self.slight_turn_deg < self.turn_deg < self.u_turn_deg <= 180:
            raise ValueError(
                f"Turn thresholds must satisfy 0 < slight < turn < u-turn <= 180: "
                f"{self.slight_turn_deg}, {self.turn_deg}, {self.u_turn_deg}"
            )

        if self.continue_min_m < 0:
            raise ValueError(f"continue_min_m cannot be negative: {self.continue_min_m}")


def turn_angle_deg(a: Position3D, b: Position3D, c: Position3D) -> Optional[float]:
    """
    Signed turn angle at b for the path a -> b -> c.

    Returns:
        Angle in (-180, 180], positive = right turn; None if either leg has
        zero length
    """
    in_dx, in_dy = b.x - a.x, b.y - a.y
    out_dx, out_dy = c.x - b.x, c.y - b.y

    if (in_dx == 0 and in_dy == 0) or (out_dx == 0 and out_dy == 0):
        return None

    heading_in = math.degrees(math.atan2(in_dy, in_dx))
    heading_out = math.degrees(math.atan2(out_dy, out_dx))

    # Counter-clockwise heading change is a left turn
    angle = (heading_in - heading_out) % 360.0
    if angle > 180.0:
        angle -= 360.0
    return angle


def classify_turn(angle_deg: float, config: Optional[InstructionConfig] = None) -> TurnDirection:
    """Map a signed turn angle onto a TurnDirection."""
    config = config or InstructionConfig()

    if abs(angle_deg) > config.u_turn_deg:
        return TurnDirection.TURN_AROUND
    if angle_deg > config.turn_deg:
        return TurnDirection.RIGHT
    if angle_deg < -config.turn_deg:
        return TurnDirection.LEFT
    if angle_deg > config.slight_turn_deg:
        return TurnDirection.SLIGHT_RIGHT
    if angle_deg < -config.slight_turn_deg:
        return TurnDirection.SLIGHT_LEFT
    return TurnDirection.FORWARD


class InstructionGenerator:
    """
    Turns a Route into an ordered list of NavigationInstructions.

    Usage:
        generator = InstructionGenerator()
        for instruction in generator.generate(route, graph):
            print(instruction.describe())
    """

    def __init__(self, config: Optional[InstructionConfig] = None):
        self.config = config or InstructionConfig()

    def generate(
        self,
        route: Route,
        graph: Optional[NavigationGraph] = None,
    ) -> List[NavigationInstruction]:
        """
        Generate instructions for a route.

        Args:
            route: Planned route
            graph: Graph the route came from; used to name floor transitions

        Returns:
            START, then TURN / CONTINUE / FLOOR_CHANGE as needed, then DESTINATION
        """
        waypoints = route.waypoints
        last = len(waypoints) - 1

        instructions = [
            NavigationInstruction(
                type=InstructionType.START,
                direction=TurnDirection.FORWARD,
                distance_m=waypoints[0].distance_to(waypoints[1]),
                waypoint_index=0,
            )
        ]

        for i in range(last):
            here, ahead = waypoints[i], waypoints[i + 1]
            leg_m = here.distance_to(ahead)

            if here.floor != ahead.floor:
                instructions.append(self._floor_change(i, here, ahead, graph))
                continue

            if i == 0:
                continue

            behind = waypoints[i - 1]
            direction = TurnDirection.FORWARD
            if behind.floor == here.floor:
                angle = turn_angle_deg(behind, here, ahead)
                if angle is not None:
                    direction = classify_turn(angle, self.config)

            if direction != TurnDirection.FORWARD:
                instructions.append(NavigationInstruction(
                    type=InstructionType.TURN,
                    direction=direction,
                    distance_m=leg_m,
                    waypoint_index=i,
                ))
            elif leg_m > self.config.continue_min_m:
                instructions.append(NavigationInstruction(
                    type=InstructionType.CONTINUE,
                    direction=TurnDirection.FORWARD,
                    distance_m=leg_m,
                    waypoint_index=i,
                ))

        instructions.append(NavigationInstruction(
            type=InstructionType.DESTINATION,
            direction=TurnDirection.FORWARD,
            distance_m=0.0,
            waypoint_index=last,
        ))

        logger.debug(f"Generated {len(instructions)} instructions for {route.num_waypoints} waypoints")
        return instructions

    def _floor_change(
        self,
        index: int,
        here: Position3D,
        ahead: Position3D,
        graph: Optional[NavigationGraph],
    ) -> NavigationInstruction:
        return NavigationInstruction(
            type=InstructionType.FLOOR_CHANGE,
            direction=TurnDirection.UP if ahead.floor > here.floor else TurnDirection.DOWN,
            distance_m=here.distance_to(ahead),
            waypoint_index=index,
            target_floor=ahead.floor,
            transition_kind=self._transition_kind(here, graph),
        )

    def _transition_kind(
        self,
        position: Position3D,
        graph: Optional[NavigationGraph],
    ) -> Optional[str]:
        if graph is None:
            return None

        node = graph.nearest_node(position, same_floor=True)
        if node is None or not node.kind.is_floor_transition:
            return None
        if node.position.distance_to(position) > self.config.transition_match_m:
            return None
        return node.kind.name
