"""
Indoor/Outdoor Presence Detection.

Fuses a WiFi fingerprint confidence and the GPS distance to the building
into a two-state (OUTSIDE / INSIDE) classification with hysteresis.

Rules, evaluated once per location update:
1. wifi_confidence >= 0.8            -> INSIDE, confidence = wifi_confidence
2. GPS distance available:
   - d <= entry radius (50m)         -> INSIDE
   - d >= exit radius (100m)         -> OUTSIDE
   - entry < d < exit                -> keep previous status
3. Neither                           -> keep status, confidence decays to 0.5

Inside the hysteresis band the confidence falls linearly from the GPS
confidence at the boundary that supports the current status to 0.5 at the
opposite boundary. At most one transition happens per evaluation.
"""

from dataclasses import dataclass
from typing import Optional
import logging
import math

from inav_core.proto.presence_state import GeoCoordinate, PresenceState, PresenceStatus
from inav_core.localization.geo import haversine_distance_m
from inav_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class PresenceConfig:
    """
    Configuration for presence detection.

    Attributes:
        entry_radius_m: Distance at or below which GPS says INSIDE (m)
        exit_radius_m: Distance at or above which GPS says OUTSIDE (m)
        wifi_inside_threshold: WiFi confidence that is authoritative for INSIDE
        gps_confidence: Confidence of a GPS decision outside the band
        neutral_confidence: Confidence of "no idea" (band edge, decay target)
        decay_rate: Fraction of the gap to neutral closed per empty tick
        building_reference: Building reference point for GPS distances
    """

    entry_radius_m: float = 50.0
    exit_radius_m: float = 100.0
    wifi_inside_threshold: float = 0.8
    gps_confidence: float = 0.9
    neutral_confidence: float = 0.5
    decay_rate: float = 0.5
    building_reference: Optional[GeoCoordinate] = None

    def __post_init__(self):
        if self.entry_radius_m <= 0:
            raise ValueError(f"Entry radius must be positive: {self.entry_radius_m}")

        if self.entry_radius_m >= self.exit_radius_m:
            raise ValueError(
                f"Entry radius {self.entry_radius_m} must be below exit radius "
                f"{self.exit_radius_m}"
            )

        if not 0.0 <= self.decay_rate <= 1.0:
            raise ValueError(f"Decay rate must be in [0,1]: {self.decay_rate}")

        for name in ('wifi_inside_threshold', 'gps_confidence', 'neutral_confidence'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0,1]: {value}")


def evaluate(
    state: PresenceState,
    wifi_confidence: float,
    gps_distance_m: Optional[float],
    config: Optional[PresenceConfig] = None,
) -> PresenceState:
    """
    One presence evaluation.

    Args:
        state: Previous presence state
        wifi_confidence: Building WiFi confidence in [0, 1]
        gps_distance_m: Distance from GPS fix to building (m), None if no fix
        config: Radii and thresholds (defaults if None)

    Returns:
        New PresenceState (OUTSIDE or INSIDE)
    """
    if not 0.0 <= wifi_confidence <= 1.0:
        raise ValueError(f"WiFi confidence must be in [0,1]: {wifi_confidence}")

    if gps_distance_m is not None and (math.isnan(gps_distance_m) or gps_distance_m < 0):
        raise ValueError(f"GPS distance must be non-negative: {gps_distance_m}")

    config = config or PresenceConfig()
    status = _stable(state.status)

    # WiFi is authoritative when strong
    if wifi_confidence >= config.wifi_inside_threshold:
        return PresenceState(PresenceStatus.INSIDE, wifi_confidence)

    if gps_distance_m is not None:
        if gps_distance_m <= config.entry_radius_m:
            return PresenceState(PresenceStatus.INSIDE, config.gps_confidence)

        if gps_distance_m >= config.exit_radius_m:
            return PresenceState(PresenceStatus.OUTSIDE, config.gps_confidence)

        # Hysteresis band: keep status
        return PresenceState(status, _band_confidence(status, gps_distance_m, config))

    # No usable input: uncertainty grows
    confidence = state.confidence + (config.neutral_confidence - state.confidence) * config.decay_rate
    return PresenceState(status, confidence)


def _stable(status: PresenceStatus) -> PresenceStatus:
    """Collapse transitional statuses onto the stable state they lead to."""
    if status == PresenceStatus.TRANSITIONING_IN:
        return PresenceStatus.INSIDE
    if status == PresenceStatus.TRANSITIONING_OUT:
        return PresenceStatus.OUTSIDE
    return status


def _band_confidence(status: PresenceStatus, distance_m: float, config: PresenceConfig) -> float:
    """Linear confidence inside the hysteresis band."""
    frac = (distance_m - config.entry_radius_m) / (config.exit_radius_m - config.entry_radius_m)
    span = config.gps_confidence - config.neutral_confidence

    if status == PresenceStatus.INSIDE:
        return config.gps_confidence - span * frac
    return config.neutral_confidence + span * frac


class PresenceDetector:
    """
    Owns one presence state and evaluates it per location update.

    Usage:
        detector = PresenceDetector(PresenceConfig(
            building_reference=GeoCoordinate(3.071421, 101.500136),
        ))

        state = detector.update_with_fix(wifi_confidence, gps_fix)
        if state.is_inside:
            enable_indoor_mode()

    Notes:
        - Evaluated only when new data arrives; there is no timer
        - Not thread-safe: the owned state is replaced on every update
    """

    def __init__(
        self,
        config: Optional[PresenceConfig] = None,
        initial_state: Optional[PresenceState] = None,
    ):
        """
        Initialize presence detector.

        Args:
            config: Detector configuration (uses defaults if None)
            initial_state: Starting state (OUTSIDE, 0.5 if None)
        """
        self.config = config or PresenceConfig()
        self.state = initial_state or PresenceState()
        self.metrics = get_metrics()

    def update(self, wifi_confidence: float, gps_distance_m: Optional[float] = None) -> PresenceState:
        """
        Evaluate one tick from a WiFi confidence and a GPS distance.

        Returns:
            New presence state
        """
        previous = self.state
        self.state = evaluate(previous, wifi_confidence, gps_distance_m, self.config)
        self.metrics.increment('presence_evaluations')

        if self.state.status != _stable(previous.status):
            self.metrics.increment('presence_transitions')
            logger.info(
                f"Presence {previous.status.name} -> {self.state.status.name} "
                f"(confidence {self.state.confidence:.2f}, wifi {wifi_confidence:.2f}, "
                f"gps {_fmt_distance(gps_distance_m)})"
            )
        else:
            logger.debug(
                f"Presence {self.state.status.name} confidence {self.state.confidence:.2f}"
            )

        return self.state

    def update_with_fix(
        self,
        wifi_confidence: float,
        gps_fix: Optional[GeoCoordinate],
    ) -> PresenceState:
        """
        Evaluate one tick from a raw GPS fix.

        Raises:
            ValueError: a fix is given but no building reference is configured
        """
        distance = None
        if gps_fix is not None:
            if self.config.building_reference is None:
                raise ValueError("building_reference must be configured to use GPS fixes")
            distance = haversine_distance_m(gps_fix, self.config.building_reference)

        return self.update(wifi_confidence, distance)

    def reset(self, state: Optional[PresenceState] = None):
        """Reset to the given state (OUTSIDE, 0.5 if None)."""
        self.state = state or PresenceState()


def detect_presence(
    wifi_confidence: float,
    gps_fix: Optional[GeoCoordinate],
    building_reference: GeoCoordinate,
    state: Optional[PresenceState] = None,
    config: Optional[PresenceConfig] = None,
) -> PresenceState:
    """
    Single-call presence evaluation.

    Args:
        wifi_confidence: Building WiFi confidence in [0, 1]
        gps_fix: Current GPS fix, None if unavailable
        building_reference: Building reference coordinate
        state: Previous state carried by the caller (OUTSIDE, 0.5 if None)
        config: Thresholds (defaults if None)

    Returns:
        New PresenceState
    """
    config = config or PresenceConfig()
    distance = None
    if gps_fix is not None:
        distance = haversine_distance_m(gps_fix, building_reference)

    return evaluate(state or PresenceState(), wifi_confidence, distance, config)


def _fmt_distance(distance_m: Optional[float]) -> str:
    return "n/a" if distance_m is None else f"{distance_m:.1f}m"
