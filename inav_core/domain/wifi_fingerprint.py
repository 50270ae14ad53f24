"""
WiFi Fingerprint Scoring.

Derives the building WiFi confidence used by the presence detector from one
WiFi scan. Building-specific BSSIDs (each with an expected RSSI) are the
strong evidence; campus-wide SSIDs only say the user is somewhere on campus.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional

from inav_core.metrics import get_metrics


@dataclass(frozen=True)
class WiFiObservation:
    """
    One access point seen in a WiFi scan.

    Attributes:
        bssid: Access point MAC address
        ssid: Network name
        rssi: Signal strength (dBm)
    """

    bssid: str
    ssid: str
    rssi: int


@dataclass
class WiFiFingerprintConfig:
    """
    Configuration for fingerprint scoring.

    Attributes:
        known_bssids: BSSID -> expected RSSI at its usual sighting spots
        campus_ssids: Network names shared across campus buildings
        min_rssi_dbm: Campus SSIDs weaker than this are ignored
        strong_rssi_dbm: Campus SSIDs stronger than this count as strong
        bssid_match_tolerance_db: Known BSSID within this of expected is strong
        base_confidence: Starting confidence for a non-empty scan
        empty_scan_confidence: Confidence when nothing was heard
        per_bssid_boost: Added per known BSSID seen
        per_strong_signal_boost: Added per strong signal point
        campus_only_boost: Added when only campus SSIDs were seen
        rssi_weight: Scale for the (average campus RSSI + 100) term
    """

    known_bssids: Dict[str, int] = field(default_factory=dict)
    campus_ssids: FrozenSet[str] = frozenset()
    min_rssi_dbm: int = -80
    strong_rssi_dbm: int = -65
    bssid_match_tolerance_db: int = 15
    base_confidence: float = 0.3
    empty_scan_confidence: float = 0.5
    per_bssid_boost: float = 0.25
    per_strong_signal_boost: float = 0.1
    campus_only_boost: float = 0.1
    rssi_weight: float = 0.003

    def __post_init__(self):
        self.known_bssids = {b.lower(): rssi for b, rssi in self.known_bssids.items()}
        self.campus_ssids = frozenset(self.campus_ssids)


class WiFiFingerprintScorer:
    """
    Score a WiFi scan into a building confidence in [0, 1].

    Usage:
        scorer = WiFiFingerprintScorer(WiFiFingerprintConfig(
            known_bssids={"00:11:22:33:44:55": -60},
            campus_ssids={"Campus_WiFi"},
        ))
        wifi_confidence = scorer.score(scan)

    Scoring:
        - Known BSSID: +0.25 each; within 15 dB of expected RSSI adds 2
          strong-signal points
        - Campus SSID above min RSSI: contributes to the average RSSI;
          above strong RSSI adds 1 strong-signal point
        - +0.1 per strong-signal point, only when a known BSSID was seen
        - +0.1 when campus SSIDs were seen but no known BSSID
        - +0.003 * (average campus RSSI + 100)
    """

    def __init__(self, config: Optional[WiFiFingerprintConfig] = None):
        self.config = config or WiFiFingerprintConfig()
        self.metrics = get_metrics()

    def score(self, scan: Iterable[WiFiObservation]) -> float:
        """
        Building confidence from one scan.

        Args:
            scan: Access points seen in the scan

        Returns:
            Confidence in [0, 1]; empty scan -> empty_scan_confidence
        """
        scan = list(scan)
        self.metrics.increment('wifi_scans_scored')

        if not scan:
            return self.config.empty_scan_confidence

        cfg = self.config
        known_found = 0
        strong_points = 0
        campus_found = False
        campus_rssi = []

        for ap in scan:
            if ap.ssid in cfg.campus_ssids:
                campus_found = True
                if ap.rssi > cfg.min_rssi_dbm:
                    campus_rssi.append(ap.rssi)
                    if ap.rssi > cfg.strong_rssi_dbm:
                        strong_points += 1

            expected = cfg.known_bssids.get(ap.bssid.lower())
            if expected is not None:
                known_found += 1
                if abs(ap.rssi - expected) < cfg.bssid_match_tolerance_db:
                    strong_points += 2

        confidence = cfg.base_confidence

        if known_found > 0:
            confidence += known_found * cfg.per_bssid_boost
            confidence += strong_points * cfg.per_strong_signal_boost
        elif campus_found:
            confidence += cfg.campus_only_boost

        if campus_rssi:
            average = sum(campus_rssi) / len(campus_rssi)
            confidence += (average + 100.0) * cfg.rssi_weight

        return min(1.0, max(0.0, confidence))

    def known_bssids_seen(self, scan: Iterable[WiFiObservation]) -> int:
        """Number of building-specific BSSIDs in the scan."""
        return sum(1 for ap in scan if ap.bssid.lower() in self.config.known_bssids)
