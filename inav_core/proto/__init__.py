"""
Protocol Module: Value and message schemas.

All schemas are frozen dataclasses validated in __post_init__:
- Positions (2D, floor-aware 3D)
- Signal observations and anchor records
- Position estimates, presence states, routes
"""

from .geometry import Position2D, Position3D
from .signal_observation import (
    SignalObservation,
    Anchor,
    DEFAULT_TX_POWER_DBM,
    DEFAULT_PATH_LOSS_EXPONENT,
    DEFAULT_STALENESS_WINDOW_S,
)
from .position_estimate import (
    PositionEstimate,
    FixType,
)
from .presence_state import (
    PresenceState,
    PresenceStatus,
    GeoCoordinate,
)
from .route import (
    Route,
    NavigationInstruction,
    InstructionType,
    TurnDirection,
)

__all__ = [
    # Geometry
    'Position2D',
    'Position3D',
    # Input feed
    'SignalObservation',
    'Anchor',
    'DEFAULT_TX_POWER_DBM',
    'DEFAULT_PATH_LOSS_EXPONENT',
    'DEFAULT_STALENESS_WINDOW_S',
    # Positioning output
    'PositionEstimate',
    'FixType',
    # Presence
    'PresenceState',
    'PresenceStatus',
    'GeoCoordinate',
    # Navigation
    'Route',
    'NavigationInstruction',
    'InstructionType',
    'TurnDirection',
]
