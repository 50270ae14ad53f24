"""
Positioning Engine.

One position-fusion cycle:

    observations -> staleness/anchor filtering -> distances
                 -> multilateration (or weighted-centroid fallback)
                 -> optional smoothing -> PositionEstimate

Every failure mode degrades to "no estimate this cycle"; nothing here is
fatal to the caller.

Usage:
    engine = PositioningEngine(anchors)

    estimate = engine.process(observations, t_now)
    if estimate is not None:
        print(f"Position: {estimate.position} +/- {estimate.accuracy_m:.1f}m")
    else:
        print(f"Holding last known: {engine.last_estimate}")
"""

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math
import time

from inav_core.proto.geometry import Position3D
from inav_core.proto.signal_observation import (
    Anchor,
    SignalObservation,
    DEFAULT_STALENESS_WINDOW_S,
)
from inav_core.proto.position_estimate import PositionEstimate, FixType
from inav_core.localization.errors import (
    InsufficientAnchors,
    SingularGeometry,
    StaleInput,
)
from inav_core.localization.distance_estimator import (
    DistanceEstimator,
    DistanceEstimatorConfig,
)
from inav_core.localization.multilateration import (
    MultilaterationSolver,
    MultilaterationConfig,
    assign_floor,
    weighted_centroid,
    weighted_floor,
)
from inav_core.localization.position_smoother import PositionSmoother, SmootherConfig
from inav_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class PositioningConfig:
    """
    Configuration for the positioning engine.

    Attributes:
        staleness_window_s: Max observation age to be usable (s)
        min_centroid_anchors: Minimum anchors for the centroid fallback
            (0 disables the fallback)
        centroid_accuracy_m: Accuracy reported for centroid estimates (m)
        enable_smoothing: Pass estimates through the smoother
        distance_config: DistanceEstimator configuration
        solver_config: MultilaterationSolver configuration
        smoother_config: PositionSmoother configuration
    """

    staleness_window_s: float = DEFAULT_STALENESS_WINDOW_S
    min_centroid_anchors: int = 1
    centroid_accuracy_m: float = 10.0
    enable_smoothing: bool = True
    distance_config: Optional[DistanceEstimatorConfig] = None
    solver_config: Optional[MultilaterationConfig] = None
    smoother_config: Optional[SmootherConfig] = None

    def __post_init__(self):
        if self.staleness_window_s <= 0:
            raise ValueError(f"Staleness window must be positive: {self.staleness_window_s}")

        if self.min_centroid_anchors < 0:
            raise ValueError(
                f"min_centroid_anchors cannot be negative: {self.min_centroid_anchors}"
            )


@dataclass(frozen=True)
class UsableObservation:
    """Observation paired with its anchor and estimated distance."""

    observation: SignalObservation
    anchor: Anchor
    distance_m: float


def select_usable(
    observations: Iterable[SignalObservation],
    anchors: Mapping[str, Anchor],
    t_now: float,
    staleness_window_s: float = DEFAULT_STALENESS_WINDOW_S,
) -> List[SignalObservation]:
    """
    Keep the freshest non-stale observation per known anchor.

    Args:
        observations: Raw scanner feed for this cycle
        anchors: Anchor table
        t_now: Cycle time
        staleness_window_s: Max usable age (s)

    Returns:
        Observations for distinct anchors, in first-seen anchor order

    Raises:
        StaleInput: observations were supplied but every one is stale
    """
    metrics = get_metrics()
    observations = list(observations)
    metrics.increment('observations_in', len(observations))

    fresh = [o for o in observations if not o.is_stale(t_now, staleness_window_s)]
    num_stale = len(observations) - len(fresh)
    if num_stale:
        metrics.increment_drop('stale', num_stale)

    if observations and not fresh:
        raise StaleInput(len(observations), staleness_window_s)

    latest: Dict[str, SignalObservation] = {}
    for obs in fresh:
        if obs.anchor_id not in anchors:
            metrics.increment_drop('unknown_anchor')
            continue

        current = latest.get(obs.anchor_id)
        if current is None:
            latest[obs.anchor_id] = obs
        else:
            metrics.increment_drop('duplicate_anchor')
            if obs.timestamp > current.timestamp:
                latest[obs.anchor_id] = obs

    return list(latest.values())


class PositioningEngine:
    """
    Stateful wrapper around one fusion cycle.

    Holds the configuration, the smoother and the last good estimate. The
    solver and distance estimator are stateless and may be shared.

    Not thread-safe: one engine per tracked device.
    """

    def __init__(
        self,
        anchors: Optional[Mapping[str, Anchor]] = None,
        config: Optional[PositioningConfig] = None,
        smoother: Optional[PositionSmoother] = None,
    ):
        """
        Initialize positioning engine.

        Args:
            anchors: Anchor table (can also be passed per call)
            config: Engine configuration (uses defaults if None)
            smoother: Smoother to use (created from config if None)
        """
        self.anchors: Dict[str, Anchor] = dict(anchors or {})
        self.config = config or PositioningConfig()
        self.metrics = get_metrics()

        self.distance_estimator = DistanceEstimator(
            self.config.distance_config or DistanceEstimatorConfig()
        )
        self.solver = MultilaterationSolver(
            self.config.solver_config or MultilaterationConfig()
        )
        self.smoother = smoother or PositionSmoother(
            self.config.smoother_config or SmootherConfig()
        )

        # Last good estimate, retained across cycles that produce nothing
        self.last_estimate: Optional[PositionEstimate] = None

    def process(
        self,
        observations: Iterable[SignalObservation],
        t_now: Optional[float] = None,
        anchors: Optional[Mapping[str, Anchor]] = None,
    ) -> Optional[PositionEstimate]:
        """
        Run one fusion cycle.

        Args:
            observations: Scanner feed for this cycle
            t_now: Cycle time (defaults to time.time())
            anchors: Anchor table override for this call

        Returns:
            New PositionEstimate, or None when no estimate can be produced
        """
        t_now = time.time() if t_now is None else t_now
        anchor_table = self.anchors if anchors is None else anchors

        self.metrics.increment('fusion_cycles')

        try:
            usable = self._prepare(observations, anchor_table, t_now)
            estimate = self._solve(usable, t_now)
        except StaleInput as e:
            logger.debug(f"No estimate this cycle: {e}")
            self.metrics.increment_drop('no_estimate')
            return None
        except InsufficientAnchors as e:
            logger.debug(f"No estimate this cycle: {e}")
            self.metrics.increment_drop('no_estimate')
            return None

        if self.config.enable_smoothing:
            previous = self.last_estimate.position if self.last_estimate else None
            smoothed = self.smoother.update_3d(previous, estimate.position)
            estimate = PositionEstimate(
                position=smoothed,
                accuracy_m=estimate.accuracy_m,
                timestamp=estimate.timestamp,
                contributing_anchors=estimate.contributing_anchors,
                fix_type=estimate.fix_type,
                residual_m=estimate.residual_m,
            )

        self.last_estimate = estimate
        self.metrics.increment('position_estimates')
        return estimate

    def reset(self):
        """Forget the last estimate and reset the smoother."""
        self.last_estimate = None
        self.smoother.reset()

    def _prepare(
        self,
        observations: Iterable[SignalObservation],
        anchors: Mapping[str, Anchor],
        t_now: float,
    ) -> List[UsableObservation]:
        """Filter observations and convert RSSI to distance."""
        selected = select_usable(
            observations, anchors, t_now, self.config.staleness_window_s
        )

        usable = []
        for obs in selected:
            anchor = anchors[obs.anchor_id]
            distance = self.distance_estimator.distance_for(obs, anchor)

            # Overflow with an unclamped estimator
            if not math.isfinite(distance):
                self.metrics.increment_drop('non_finite_distance')
                logger.debug(f"Dropping {obs.anchor_id}: distance {distance} at {obs.rssi} dBm")
                continue

            usable.append(UsableObservation(obs, anchor, distance))

        return usable

    def _solve(self, usable: List[UsableObservation], t_now: float) -> PositionEstimate:
        """Multilaterate, falling back to the weighted centroid."""
        ranges = [(u.anchor.position, u.distance_m) for u in usable]
        floors = [u.anchor.floor for u in usable]
        distances = [u.distance_m for u in usable]
        anchor_ids = frozenset(u.anchor.id for u in usable)

        try:
            result = self.solver.solve_detailed(ranges)
            floor = assign_floor(floors, distances)

            logger.debug(
                f"Multilateration: ({result.position.x:.2f}, {result.position.y:.2f}) "
                f"floor {floor}, residual {result.raw_residual_m:.2f}m, "
                f"{len(usable)} anchors"
            )

            return PositionEstimate(
                position=Position3D.from_2d(result.position, floor),
                accuracy_m=result.residual_m,
                timestamp=t_now,
                contributing_anchors=anchor_ids,
                fix_type=FixType.MULTILATERATION,
                residual_m=result.raw_residual_m,
            )

        except InsufficientAnchors:
            self.metrics.increment_drop('insufficient_anchors')
        except SingularGeometry as e:
            self.metrics.increment_drop('singular_geometry')
            logger.debug(f"Singular anchor geometry, using centroid: {e}")

        return self._fallback(usable, ranges, floors, distances, anchor_ids, t_now)

    def _fallback(
        self,
        usable: List[UsableObservation],
        ranges: List[Tuple],
        floors: List[int],
        distances: List[float],
        anchor_ids: frozenset,
        t_now: float,
    ) -> PositionEstimate:
        """Degraded inverse-distance centroid estimate."""
        required = self.config.min_centroid_anchors
        if required == 0 or len(usable) < required:
            raise InsufficientAnchors(len(usable), max(required, 1))

        min_weight_distance = self.solver.config.min_weight_distance_m
        position = weighted_centroid(ranges, min_weight_distance)
        floor = weighted_floor(floors, distances, min_weight_distance)

        self.metrics.increment('centroid_fallbacks')
        logger.debug(
            f"Weighted centroid: ({position.x:.2f}, {position.y:.2f}) floor {floor}, "
            f"{len(usable)} anchors"
        )

        return PositionEstimate(
            position=Position3D.from_2d(position, floor),
            accuracy_m=self.config.centroid_accuracy_m,
            timestamp=t_now,
            contributing_anchors=anchor_ids,
            fix_type=FixType.WEIGHTED_CENTROID,
        )


def estimate_position(
    observations: Iterable[SignalObservation],
    anchors: Mapping[str, Anchor],
    t_now: Optional[float] = None,
    config: Optional[PositioningConfig] = None,
    smoother: Optional[PositionSmoother] = None,
    previous: Optional[PositionEstimate] = None,
) -> Optional[PositionEstimate]:
    """
    Single-call fusion cycle.

    Args:
        observations: Scanner feed for this cycle
        anchors: Anchor table (id -> Anchor)
        t_now: Cycle time (defaults to time.time())
        config: Engine configuration; smoothing only applies when a
            smoother is supplied, whatever config.enable_smoothing says
        smoother: Caller-owned smoother carrying filter state across calls
        previous: Previous estimate to smooth against

    Returns:
        PositionEstimate, or None when no estimate can be produced
    """
    config = config or PositioningConfig()
    if smoother is None and config.enable_smoothing:
        config = replace(config, enable_smoothing=False)

    engine = PositioningEngine(anchors, config, smoother)
    engine.last_estimate = previous
    return engine.process(observations, t_now)
