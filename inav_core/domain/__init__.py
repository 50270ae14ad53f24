"""
Domain Module: Building presence logic.

Implements:
- WiFi fingerprint scoring into a building confidence
- Indoor/outdoor presence state machine with GPS hysteresis
"""

from .wifi_fingerprint import (
    WiFiFingerprintScorer,
    WiFiFingerprintConfig,
    WiFiObservation,
)
from .presence_detector import (
    PresenceDetector,
    PresenceConfig,
    detect_presence,
    evaluate as evaluate_presence,
)

__all__ = [
    'WiFiFingerprintScorer',
    'WiFiFingerprintConfig',
    'WiFiObservation',
    'PresenceDetector',
    'PresenceConfig',
    'detect_presence',
    'evaluate_presence',
]
