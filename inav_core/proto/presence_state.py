"""
Presence State Schema.

Indoor/outdoor classification emitted by the presence detector, plus the
geographic coordinate type used for GPS fixes and the building reference.
"""

from dataclasses import dataclass
from enum import IntEnum


class PresenceStatus(IntEnum):
    """Indoor/outdoor status."""
    
    OUTSIDE = 0
    TRANSITIONING_IN = 1    # Reserved for callers animating the change
    INSIDE = 2
    TRANSITIONING_OUT = 3   # Reserved for callers animating the change
    
    @property
    def is_inside(self) -> bool:
        return self in (PresenceStatus.INSIDE, PresenceStatus.TRANSITIONING_OUT)


@dataclass(frozen=True)
class PresenceState:
    """
    Presence classification with confidence.
    
    Attributes:
        status: Current status (detector emits OUTSIDE or INSIDE only)
        confidence: Confidence in the status, 0-1
    """
    
    status: PresenceStatus = PresenceStatus.OUTSIDE
    confidence: float = 0.5
    
    def __post_init__(self):
        """Validate presence state."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0,1]: {self.confidence}")
    
    @property
    def is_inside(self) -> bool:
        return self.status.is_inside
    
    def to_dict(self) -> dict:
        return {'status': self.status.name, 'confidence': self.confidence}


@dataclass(frozen=True)
class GeoCoordinate:
    """
    WGS84 geographic coordinate.
    
    Attributes:
        lat: Latitude (degrees)
        lon: Longitude (degrees)
    """
    
    lat: float
    lon: float
    
    def __post_init__(self):
        """Validate coordinate ranges."""
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")
