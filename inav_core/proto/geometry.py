"""
Planar and floor-aware position types.

Positions are expressed in a building-local metric frame (meters). Floors are
discrete integer levels; no inter-floor height is modelled here.
"""

from dataclasses import dataclass
from typing import Tuple
import math


@dataclass(frozen=True)
class Position2D:
    """
    2D position in the building frame.
    
    Attributes:
        x: X coordinate (m)
        y: Y coordinate (m)
    """
    
    x: float
    y: float
    
    def __post_init__(self):
        """Validate coordinates."""
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Position must be finite: ({self.x}, {self.y})")
    
    def distance_to(self, other: "Position2D") -> float:
        """Euclidean distance to another position (m)."""
        return math.hypot(self.x - other.x, self.y - other.y)
    
    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)
    
    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y}
    
    @classmethod
    def from_dict(cls, data: dict) -> "Position2D":
        return cls(x=float(data['x']), y=float(data['y']))


@dataclass(frozen=True)
class Position3D(Position2D):
    """
    2D position plus a discrete floor level.
    
    Attributes:
        x: X coordinate (m)
        y: Y coordinate (m)
        floor: Floor level (0 = ground)
    
    Notes:
        - distance_to() stays planar; use floor_difference() for levels
    """
    
    floor: int = 0
    
    def floor_difference(self, other: "Position3D") -> int:
        """Absolute number of floors between two positions."""
        return abs(self.floor - other.floor)
    
    def to_2d(self) -> Position2D:
        """Drop the floor."""
        return Position2D(self.x, self.y)
    
    def with_floor(self, floor: int) -> "Position3D":
        return Position3D(self.x, self.y, floor)
    
    def as_tuple(self) -> Tuple[float, float, int]:
        return (self.x, self.y, self.floor)
    
    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'floor': self.floor}
    
    @classmethod
    def from_dict(cls, data: dict) -> "Position3D":
        return cls(x=float(data['x']), y=float(data['y']), floor=int(data.get('floor', 0)))
    
    @classmethod
    def from_2d(cls, position: Position2D, floor: int) -> "Position3D":
        return cls(position.x, position.y, floor)
