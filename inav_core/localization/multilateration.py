"""
Multilateration Solver (linear least squares).

Solves a 2D position from N >= 3 anchors with known positions and estimated
distances. Using the last anchor as reference, each circle equation

    (x - xi)^2 + (y - yi)^2 = di^2

is differenced against the reference one, giving N-1 linear equations

    2(xi - xn) x + 2(yi - yn) y = xi^2 - xn^2 + yi^2 - yn^2 + dn^2 - di^2

solved by least squares. With N = 3 this is exact; with N > 3 it averages
over inconsistent ranges.

Also provides the degraded inverse-distance weighted centroid and the floor
vote shared by both paths.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import math

import numpy as np

from inav_core.proto.geometry import Position2D
from inav_core.localization.errors import InsufficientAnchors, SingularGeometry
from inav_core.metrics import get_metrics


# (anchor position, estimated distance in meters)
AnchorRange = Tuple[Position2D, float]


@dataclass
class MultilaterationConfig:
    """
    Configuration for multilateration solver.

    Attributes:
        min_anchors: Minimum number of anchors for a solve
        min_residual_m: Lower clamp for reported residual (m)
        max_residual_m: Upper clamp for reported residual (m)
        singular_tolerance: Minimum ratio of smallest to largest singular
            value of the design matrix before the layout counts as singular
        min_weight_distance_m: Distance floor used for centroid weights (m)
    """

    min_anchors: int = 3
    min_residual_m: float = 1.0
    max_residual_m: float = 10.0
    singular_tolerance: float = 1e-9
    min_weight_distance_m: float = 0.1

    def __post_init__(self):
        if self.min_anchors < 3:
            raise ValueError(f"Multilateration needs at least 3 anchors: {self.min_anchors}")

        if not 0 <= self.min_residual_m <= self.max_residual_m:
            raise ValueError(
                f"Invalid residual clamp [{self.min_residual_m}, {self.max_residual_m}]"
            )


@dataclass(frozen=True)
class MultilaterationResult:
    """
    Detailed solver output.

    Attributes:
        position: Solved 2D position
        residual_m: RMS range residual clamped to the configured bounds
        raw_residual_m: Unclamped RMS range residual
        num_anchors: Number of anchors in the solve
    """

    position: Position2D
    residual_m: float
    raw_residual_m: float
    num_anchors: int


class MultilaterationSolver:
    """
    Linear least-squares multilateration.

    Usage:
        solver = MultilaterationSolver()

        anchors = [
            (Position2D(0, 0), 5.0),
            (Position2D(10, 0), 8.06),
            (Position2D(0, 10), 6.71),
        ]

        try:
            position, residual = solver.solve(anchors)
        except SingularGeometry:
            position = weighted_centroid(anchors)

    Stateless and reentrant: concurrent callers can share one instance.
    """

    def __init__(self, config: Optional[MultilaterationConfig] = None):
        """
        Initialize solver.

        Args:
            config: Solver configuration (uses defaults if None)
        """
        self.config = config or MultilaterationConfig()
        self.metrics = get_metrics()

    def solve(self, anchors: Sequence[AnchorRange]) -> Tuple[Position2D, float]:
        """
        Solve 2D position from anchor ranges.

        Args:
            anchors: Sequence of (anchor position, distance) pairs

        Returns:
            Tuple of (position, residual_m) with residual clamped to [1, 10]

        Raises:
            InsufficientAnchors: fewer than 3 anchors
            SingularGeometry: colinear or coincident anchors
        """
        result = self.solve_detailed(anchors)
        return result.position, result.residual_m

    def solve_detailed(self, anchors: Sequence[AnchorRange]) -> MultilaterationResult:
        """Same as solve() but also returns the unclamped residual."""
        self.metrics.increment('multilateration_attempts')

        if len(anchors) < self.config.min_anchors:
            raise InsufficientAnchors(len(anchors), self.config.min_anchors)

        positions = np.array([[p.x, p.y] for p, _ in anchors], dtype=float)
        distances = np.array([d for _, d in anchors], dtype=float)

        if not np.all(np.isfinite(distances)) or np.any(distances < 0):
            raise ValueError(f"Distances must be finite and non-negative: {distances.tolist()}")

        xn, yn = positions[-1]
        dn = distances[-1]

        # Difference each equation against the reference (last) anchor
        A = 2.0 * (positions[:-1] - positions[-1])
        b = (
            positions[:-1, 0] ** 2 - xn ** 2
            + positions[:-1, 1] ** 2 - yn ** 2
            + dn ** 2 - distances[:-1] ** 2
        )

        solution, _, rank, singular_values = np.linalg.lstsq(A, b, rcond=None)

        if rank < 2 or singular_values[-1] < self.config.singular_tolerance * singular_values[0]:
            raise SingularGeometry(
                f"anchor layout is degenerate (rank={rank}, "
                f"singular values={np.round(singular_values, 9).tolist()})"
            )

        position = Position2D(float(solution[0]), float(solution[1]))

        # RMS of measured minus geometric distance over all anchors
        computed = np.hypot(positions[:, 0] - solution[0], positions[:, 1] - solution[1])
        raw_residual = float(np.sqrt(np.mean((distances - computed) ** 2)))
        residual = float(np.clip(
            raw_residual, self.config.min_residual_m, self.config.max_residual_m
        ))

        self.metrics.increment('multilateration_success')
        self.metrics.record_histogram('multilateration_residual_m', raw_residual)

        return MultilaterationResult(
            position=position,
            residual_m=residual,
            raw_residual_m=raw_residual,
            num_anchors=len(anchors),
        )


def assign_floor(floors: Sequence[int], distances: Sequence[float]) -> int:
    """
    Majority vote over anchor floors.

    Args:
        floors: Floor of each contributing anchor
        distances: Estimated distance to each anchor (same order)

    Returns:
        Most common floor; ties go to the floor of the closest anchor
    """
    if not floors:
        raise InsufficientAnchors(0, 1)

    if len(floors) != len(distances):
        raise ValueError(f"floors/distances length mismatch: {len(floors)} != {len(distances)}")

    counts = Counter(floors)
    top = max(counts.values())
    tied = {floor for floor, count in counts.items() if count == top}

    if len(tied) == 1:
        return tied.pop()

    # Tie: closest anchor among the tied floors wins
    _, floor = min(
        (distance, floor) for floor, distance in zip(floors, distances) if floor in tied
    )
    return floor


def inverse_distance_weights(
    distances: Sequence[float],
    min_distance_m: float = 0.1,
) -> List[float]:
    """Weights 1/d with d floored at min_distance_m."""
    return [1.0 / max(d, min_distance_m) for d in distances]


def weighted_centroid(
    anchors: Sequence[AnchorRange],
    min_distance_m: float = 0.1,
) -> Position2D:
    """
    Degraded position estimate: inverse-distance weighted anchor centroid.

    Works with any number of anchors >= 1, including colinear layouts.

    Raises:
        InsufficientAnchors: empty input
    """
    if not anchors:
        raise InsufficientAnchors(0, 1)

    weights = inverse_distance_weights([d for _, d in anchors], min_distance_m)
    total = sum(weights)

    x = sum(p.x * w for (p, _), w in zip(anchors, weights)) / total
    y = sum(p.y * w for (p, _), w in zip(anchors, weights)) / total

    return Position2D(x, y)


def weighted_floor(
    floors: Sequence[int],
    distances: Sequence[float],
    min_distance_m: float = 0.1,
) -> int:
    """Floor with the greatest total inverse-distance weight."""
    if not floors:
        raise InsufficientAnchors(0, 1)

    totals: Dict[int, float] = defaultdict(float)
    for floor, weight in zip(floors, inverse_distance_weights(distances, min_distance_m)):
        totals[floor] += weight

    best = max(totals.values())
    candidates = [floor for floor, total in totals.items() if math.isclose(total, best)]
    return min(candidates, key=lambda f: min(
        d for fl, d in zip(floors, distances) if fl == f
    ))
