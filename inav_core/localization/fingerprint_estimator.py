"""
WiFi Fingerprint Positioning.

k-nearest-neighbour lookup of a live WiFi scan against surveyed reference
fingerprints. Signal distance is the RMS RSSI difference over the access
points both scans share; the k closest references are averaged with
inverse-distance weights. Used as an alternate position source when too few
anchors are heard for multilateration.

Usage:
    estimator = FingerprintEstimator([
        Fingerprint("lobby", Position3D(2.0, 3.0, 0), {"00:11:22:33:44:55": -48}),
        ...
    ])
    position = estimator.estimate({"00:11:22:33:44:55": -52})
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging
import math

from inav_core.proto.geometry import Position3D
from inav_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fingerprint:
    """
    Surveyed RSSI vector at a known position.

    Attributes:
        location_id: Survey point name
        position: Where the survey was taken
        signals: BSSID -> RSSI (dBm); BSSIDs are stored lower-case
    """

    location_id: str
    position: Position3D
    signals: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if not self.signals:
            raise ValueError(f"Fingerprint {self.location_id!r} has no signals")

        object.__setattr__(
            self, 'signals', {bssid.lower(): int(rssi) for bssid, rssi in self.signals.items()}
        )

    @classmethod
    def from_dict(cls, data: Dict) -> 'Fingerprint':
        """Build from {"location_id", "x", "y", "floor", "signals": {bssid: rssi}}."""
        return cls(
            location_id=str(data["location_id"]),
            position=Position3D(float(data["x"]), float(data["y"]), int(data.get("floor", 0))),
            signals=data["signals"],
        )


@dataclass
class FingerprintConfig:
    """
    Configuration for fingerprint matching.

    Attributes:
        k: Number of nearest references averaged
        exact_match_db: Signal distance below which a reference counts as exact
        exact_match_weight: Weight given to an exact match
    """

    k: int = 3
    exact_match_db: float = 0.1
    exact_match_weight: float = 10.0

    def __post_init__(self):
        if self.k < 1:
            raise ValueError(f"k must be at least 1: {self.k}")

        if self.exact_match_db <= 0:
            raise ValueError(f"exact_match_db must be positive: {self.exact_match_db}")

        if self.exact_match_weight <= 0:
            raise ValueError(f"exact_match_weight must be positive: {self.exact_match_weight}")


def signal_distance(scan: Mapping[str, int], reference: Mapping[str, int]) -> Optional[float]:
    """
    RMS RSSI difference over shared BSSIDs (dB).

    Returns:
        Distance, or None when the two share no access point
    """
    shared = [bssid for bssid in scan if bssid in reference]
    if not shared:
        return None

    total = sum((scan[b] - reference[b]) ** 2 for b in shared)
    return math.sqrt(total / len(shared))


ScanInput = Union[Mapping[str, int], Iterable]


def normalize_scan(scan: ScanInput) -> Dict[str, int]:
    """
    Accept either a BSSID -> RSSI mapping or an iterable of records with
    ``bssid`` and ``rssi`` attributes (e.g. WiFiObservation).
    """
    if isinstance(scan, Mapping):
        items = scan.items()
    else:
        items = ((obs.bssid, obs.rssi) for obs in scan)

    return {bssid.lower(): int(rssi) for bssid, rssi in items}


class FingerprintEstimator:
    """
    k-NN position estimator over an in-memory fingerprint table.

    Stateless apart from the table; safe to share once populated.
    """

    def __init__(
        self,
        fingerprints: Optional[Iterable[Fingerprint]] = None,
        config: Optional[FingerprintConfig] = None,
    ):
        self.config = config or FingerprintConfig()
        self.metrics = get_metrics()
        self.fingerprints: List[Fingerprint] = list(fingerprints or [])

    def __len__(self) -> int:
        return len(self.fingerprints)

    def add(self, fingerprint: Fingerprint):
        self.fingerprints.append(fingerprint)

    def nearest(self, scan: ScanInput) -> List[Tuple[Fingerprint, float]]:
        """The k closest references that share at least one BSSID, closest first."""
        signals = normalize_scan(scan)

        scored = []
        for fp in self.fingerprints:
            distance = signal_distance(signals, fp.signals)
            if distance is not None:
                scored.append((fp, distance))

        scored.sort(key=lambda item: item[1])
        return scored[:self.config.k]

    def estimate(self, scan: ScanInput) -> Optional[Position3D]:
        """
        Weighted k-NN position for one scan.

        x/y are the inverse-distance weighted mean of the neighbours; the
        floor is the one with the greatest total weight.

        Returns:
            Position3D, or None when the table is empty or no reference
            shares an access point with the scan
        """
        neighbours = self.nearest(scan)
        if not neighbours:
            self.metrics.increment_drop('no_fingerprint_match')
            logger.debug(f"No fingerprint match among {len(self.fingerprints)} references")
            return None

        sum_x = sum_y = total = 0.0
        floor_weight: Dict[int, float] = {}
        for fp, distance in neighbours:
            if distance < self.config.exact_match_db:
                weight = self.config.exact_match_weight
            else:
                weight = 1.0 / distance

            sum_x += fp.position.x * weight
            sum_y += fp.position.y * weight
            total += weight
            floor_weight[fp.position.floor] = floor_weight.get(fp.position.floor, 0.0) + weight

        floor = max(floor_weight, key=floor_weight.get)
        position = Position3D(sum_x / total, sum_y / total, floor)

        self.metrics.increment('fingerprint_estimates')
        logger.debug(
            f"Fingerprint: ({position.x:.2f}, {position.y:.2f}) floor {floor} from "
            f"{[fp.location_id for fp, _ in neighbours]}"
        )
        return position
