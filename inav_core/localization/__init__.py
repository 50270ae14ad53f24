"""
Localization Module: RSSI ranging, multilateration, smoothing.

Key classes:
- DistanceEstimator: log-distance path-loss RSSI -> meters
- MultilaterationSolver: linear least-squares 2D solve from >= 3 anchors
- PositionSmoother: scalar Kalman-style jitter filter
- PositioningEngine: one fusion cycle with centroid fallback
- FingerprintEstimator: WiFi k-NN positioning against surveyed references
- haversine_distance_m: GPS fix to building distance
"""

from .errors import (
    LocalizationError,
    InsufficientAnchors,
    SingularGeometry,
    StaleInput,
)
from .distance_estimator import (
    DistanceEstimator,
    DistanceEstimatorConfig,
    estimate_distance,
    MIN_DISTANCE_M,
)
from .multilateration import (
    MultilaterationSolver,
    MultilaterationConfig,
    MultilaterationResult,
    assign_floor,
    weighted_centroid,
    weighted_floor,
)
from .position_smoother import (
    PositionSmoother,
    SmootherConfig,
    SmootherState,
    step as smoother_step,
)
from .positioning_engine import (
    PositioningEngine,
    PositioningConfig,
    estimate_position,
    select_usable,
)
from .fingerprint_estimator import (
    Fingerprint,
    FingerprintConfig,
    FingerprintEstimator,
    signal_distance,
)
from .geo import haversine_distance_m

__all__ = [
    # Errors
    'LocalizationError',
    'InsufficientAnchors',
    'SingularGeometry',
    'StaleInput',
    # Ranging
    'DistanceEstimator',
    'DistanceEstimatorConfig',
    'estimate_distance',
    'MIN_DISTANCE_M',
    # Multilateration
    'MultilaterationSolver',
    'MultilaterationConfig',
    'MultilaterationResult',
    'assign_floor',
    'weighted_centroid',
    'weighted_floor',
    # Smoothing
    'PositionSmoother',
    'SmootherConfig',
    'SmootherState',
    'smoother_step',
    # Fusion cycle
    'PositioningEngine',
    'PositioningConfig',
    'estimate_position',
    'select_usable',
    # Fingerprinting
    'Fingerprint',
    'FingerprintConfig',
    'FingerprintEstimator',
    'signal_distance',
    # Geography
    'haversine_distance_m',
]
