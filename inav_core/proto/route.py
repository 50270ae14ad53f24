"""
Route and Navigation Instruction Schemas.

A Route is the output of one planning call: the literal query start, the
ordered waypoints, and the literal query end. It is not retained by the
planner.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from enum import IntEnum

from .geometry import Position3D


@dataclass(frozen=True)
class Route:
    """
    Planned walking route.
    
    Attributes:
        start: Query start position
        end: Query end position
        waypoints: Ordered waypoints, first == start, last == end
    """
    
    start: Position3D
    end: Position3D
    waypoints: Tuple[Position3D, ...]
    
    def __post_init__(self):
        """Validate and normalise waypoints."""
        if not isinstance(self.waypoints, tuple):
            object.__setattr__(self, 'waypoints', tuple(self.waypoints))
        
        if len(self.waypoints) < 2:
            raise ValueError(f"Route needs at least 2 waypoints: {len(self.waypoints)}")
    
    @property
    def num_waypoints(self) -> int:
        return len(self.waypoints)
    
    @property
    def floor_changes(self) -> int:
        """Number of consecutive waypoint pairs on different floors."""
        return sum(
            1 for a, b in zip(self.waypoints, self.waypoints[1:])
            if a.floor != b.floor
        )
    
    def total_length_m(self, floor_penalty_m: float = 0.0) -> float:
        """
        Planar route length, optionally with a per-floor penalty.
        
        Args:
            floor_penalty_m: Meter-equivalent added per floor crossed
        """
        length = 0.0
        for a, b in zip(self.waypoints, self.waypoints[1:]):
            length += a.distance_to(b) + floor_penalty_m * a.floor_difference(b)
        return length
    
    def to_dict(self) -> dict:
        return {
            'start': self.start.to_dict(),
            'end': self.end.to_dict(),
            'waypoints': [w.to_dict() for w in self.waypoints],
        }


class InstructionType(IntEnum):
    """Kind of navigation instruction."""
    
    START = 0
    CONTINUE = 1
    TURN = 2
    FLOOR_CHANGE = 3
    DESTINATION = 4


class TurnDirection(IntEnum):
    """Direction attached to an instruction."""
    
    FORWARD = 0
    LEFT = 1
    RIGHT = 2
    SLIGHT_LEFT = 3
    SLIGHT_RIGHT = 4
    TURN_AROUND = 5
    UP = 6
    DOWN = 7


@dataclass(frozen=True)
class NavigationInstruction:
    """
    One turn-by-turn instruction.
    
    Attributes:
        type: Instruction kind
        direction: Direction to take
        distance_m: Distance covered by this instruction (m)
        waypoint_index: Index into Route.waypoints the instruction applies at
        target_floor: Destination floor for FLOOR_CHANGE
        transition_kind: Name of the transition (e.g. "STAIRS"), if known
    
    Notes:
        - Display text is left to the caller; `describe()` is a plain
          English fallback for logs and the CLI
    """
    
    type: InstructionType
    direction: TurnDirection
    distance_m: float
    waypoint_index: int
    target_floor: Optional[int] = None
    transition_kind: Optional[str] = None
    
    def describe(self) -> str:
        """Plain English rendering (logs/CLI only)."""
        if self.type == InstructionType.START:
            return "Start navigation"
        if self.type == InstructionType.DESTINATION:
            return "You have reached your destination"
        if self.type == InstructionType.CONTINUE:
            return f"Continue for {self.distance_m:.0f} meters"
        if self.type == InstructionType.FLOOR_CHANGE:
            way = "up" if self.direction == TurnDirection.UP else "down"
            via = (self.transition_kind or "stairs").lower()
            return f"Take the {via} {way} to floor {self.target_floor}"
        
        turn_text = {
            TurnDirection.LEFT: "Turn left",
            TurnDirection.RIGHT: "Turn right",
            TurnDirection.SLIGHT_LEFT: "Bear slightly left",
            TurnDirection.SLIGHT_RIGHT: "Bear slightly right",
            TurnDirection.TURN_AROUND: "Make a U-turn",
        }
        return turn_text.get(self.direction, "Continue straight")
