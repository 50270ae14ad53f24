"""
Position Smoother (scalar Kalman-style filter).

Reduces jitter between successive raw position estimates without unbounded
lag. This is a fixed single-state scalar filter shared by both axes, NOT a
multivariate Kalman filter with a velocity state:

    P <- P + q
    K <- P / (P + r)
    x <- x_prev + K (z - x_prev)        (per axis)
    P <- P (1 - K)

Floors are discrete and are never smoothed; the latest measurement's floor
is always used.

The filter scalars live in an explicit immutable SmootherState. step() is a
pure function returning the new state; PositionSmoother owns one state for
callers that prefer an object.
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from inav_core.proto.geometry import Position2D, Position3D
from inav_core.metrics import get_metrics


@dataclass(frozen=True)
class SmootherConfig:
    """
    Configuration for position smoother.

    Attributes:
        process_noise: q, added to the error covariance every update
        measurement_noise: r, measurement variance
        initial_error_covariance: P before the first filtered update
    """

    process_noise: float = 0.01
    measurement_noise: float = 0.5
    initial_error_covariance: float = 1.0

    def __post_init__(self):
        if self.process_noise < 0:
            raise ValueError(f"Process noise cannot be negative: {self.process_noise}")

        if self.measurement_noise <= 0:
            raise ValueError(f"Measurement noise must be positive: {self.measurement_noise}")

        if self.initial_error_covariance < 0:
            raise ValueError(
                f"Error covariance cannot be negative: {self.initial_error_covariance}"
            )


@dataclass(frozen=True)
class SmootherState:
    """
    Persistent filter scalars.

    Attributes:
        error_covariance: P
        kalman_gain: K from the last update
    """

    error_covariance: float = 1.0
    kalman_gain: float = 0.0

    @classmethod
    def initial(cls, config: SmootherConfig) -> "SmootherState":
        return cls(error_covariance=config.initial_error_covariance, kalman_gain=0.0)


def step(
    state: SmootherState,
    previous: Optional[Position2D],
    measurement: Position2D,
    config: SmootherConfig = SmootherConfig(),
) -> Tuple[SmootherState, Position2D]:
    """
    One filter update.

    Args:
        state: Filter scalars before the update
        previous: Previous filtered position (None on the first call)
        measurement: New raw position

    Returns:
        Tuple of (new state, filtered position)

    Notes:
        - With previous=None the measurement passes through unfiltered and
          the state is returned unchanged
    """
    if previous is None:
        return state, measurement

    covariance = state.error_covariance + config.process_noise
    gain = covariance / (covariance + config.measurement_noise)

    filtered_x = previous.x + gain * (measurement.x - previous.x)
    filtered_y = previous.y + gain * (measurement.y - previous.y)

    covariance *= (1.0 - gain)

    new_state = replace(state, error_covariance=covariance, kalman_gain=gain)

    if isinstance(measurement, Position3D):
        # Floor taken verbatim from the latest measurement
        return new_state, Position3D(filtered_x, filtered_y, measurement.floor)

    return new_state, Position2D(filtered_x, filtered_y)


class PositionSmoother:
    """
    Owner of one SmootherState.

    Usage:
        smoother = PositionSmoother()

        filtered = None
        for raw in raw_positions:
            filtered = smoother.update(filtered, raw)

    Notes:
        - Not thread-safe: the owned state is replaced on every update
        - State lives for the smoother's lifetime only
    """

    def __init__(self, config: Optional[SmootherConfig] = None):
        """
        Initialize smoother.

        Args:
            config: Filter configuration (uses defaults if None)
        """
        self.config = config or SmootherConfig()
        self.state = SmootherState.initial(self.config)
        self.metrics = get_metrics()

    @property
    def error_covariance(self) -> float:
        return self.state.error_covariance

    @property
    def kalman_gain(self) -> float:
        return self.state.kalman_gain

    def update(self, previous: Optional[Position2D], measurement: Position2D) -> Position2D:
        """
        Filter a new measurement against the previous filtered position.

        Returns:
            Filtered position (Position3D in, Position3D out)
        """
        self.state, filtered = step(self.state, previous, measurement, self.config)
        self.metrics.increment('smoother_updates')
        return filtered

    def update_3d(self, previous: Optional[Position3D], measurement: Position3D) -> Position3D:
        """update() for floor-aware positions; the floor is never smoothed."""
        filtered = self.update(previous, measurement)
        return Position3D.from_2d(filtered, measurement.floor)

    def reset(self):
        """Reset filter scalars to their initial values."""
        self.state = SmootherState.initial(self.config)
        self.metrics.increment('smoother_resets')
