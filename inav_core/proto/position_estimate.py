"""
Position Estimate Output Schema.

Defines the output of one position-fusion cycle. Estimates are immutable:
each cycle produces a new estimate that supersedes the previous one.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional
from enum import IntEnum

from .geometry import Position3D


class FixType(IntEnum):
    """How the position was obtained."""
    
    MULTILATERATION = 1     # Least-squares solve from >= 3 anchors
    WEIGHTED_CENTROID = 2   # Degraded inverse-distance centroid


@dataclass(frozen=True)
class PositionEstimate:
    """
    User position estimate for one fusion cycle.
    
    Attributes:
        position: Estimated position with floor
        accuracy_m: Accuracy bound (m), RMS residual clamped to [1, 10]
        timestamp: Time of the estimate (seconds, caller's clock)
        contributing_anchors: IDs of anchors used in the solution
        fix_type: Solution method
        residual_m: Raw (unclamped) RMS range residual (m)
    """
    
    position: Position3D
    accuracy_m: float
    timestamp: float
    contributing_anchors: FrozenSet[str] = field(default_factory=frozenset)
    fix_type: FixType = FixType.MULTILATERATION
    residual_m: Optional[float] = None
    
    def __post_init__(self):
        """Validate position estimate."""
        if self.accuracy_m < 0:
            raise ValueError(f"Accuracy cannot be negative: {self.accuracy_m}")
        
        if self.residual_m is not None and self.residual_m < 0:
            raise ValueError(f"Residual cannot be negative: {self.residual_m}")
        
        # Accept any iterable of IDs but store a frozenset
        if not isinstance(self.contributing_anchors, frozenset):
            object.__setattr__(
                self, 'contributing_anchors', frozenset(self.contributing_anchors)
            )
    
    @property
    def is_degraded(self) -> bool:
        """True if produced by the centroid fallback."""
        return self.fix_type == FixType.WEIGHTED_CENTROID
    
    @property
    def floor(self) -> int:
        return self.position.floor
    
    @property
    def num_anchors_used(self) -> int:
        return len(self.contributing_anchors)
    
    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'position': self.position.to_dict(),
            'accuracy_m': self.accuracy_m,
            'timestamp': self.timestamp,
            'contributing_anchors': sorted(self.contributing_anchors),
            'fix_type': self.fix_type.name,
            'residual_m': self.residual_m,
        }

