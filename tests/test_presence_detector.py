"""
Unit tests for indoor/outdoor presence detection.

Tests cover:
- WiFi authority above threshold
- GPS entry/exit thresholds
- Hysteresis band stability (no flicker)
- Confidence in the band and decay without input
- Stateful detector, transition logging and metrics
- Single-call detect_presence() with a GPS fix
"""

import inspect
import logging

import pytest

from inav_core.proto import GeoCoordinate, PresenceState, PresenceStatus
from inav_core.domain import (
    PresenceConfig,
    PresenceDetector,
    detect_presence,
    evaluate_presence,
)
from inav_core.metrics import get_metrics


BUILDING = GeoCoordinate(3.071421, 101.500136)

INSIDE = PresenceState(PresenceStatus.INSIDE, 0.9)
OUTSIDE = PresenceState(PresenceStatus.OUTSIDE, 0.9)


# =============================================================================
# Test Transition Rules
# =============================================================================


class TestWiFiAuthority:
    """Strong WiFi wins regardless of GPS."""

    def test_strong_wifi_is_inside(self):
        state = evaluate_presence(OUTSIDE, 0.85, None)

        assert state.status == PresenceStatus.INSIDE
        assert state.confidence == 0.85

    def test_strong_wifi_overrides_far_gps(self):
        state = evaluate_presence(OUTSIDE, 0.8, 500.0)

        assert state.status == PresenceStatus.INSIDE

    def test_weak_wifi_defers_to_gps(self):
        state = evaluate_presence(INSIDE, 0.79, 500.0)

        assert state.status == PresenceStatus.OUTSIDE


class TestGPSThresholds:
    """Asymmetric entry/exit radii."""

    def test_within_entry_radius_is_inside(self):
        state = evaluate_presence(OUTSIDE, 0.0, 40.0)

        assert state.status == PresenceStatus.INSIDE
        assert state.confidence == 0.9

    def test_entry_radius_is_inclusive(self):
        assert evaluate_presence(OUTSIDE, 0.0, 50.0).status == PresenceStatus.INSIDE

    def test_beyond_exit_radius_from_inside(self):
        state = evaluate_presence(INSIDE, 0.0, 150.0)

        assert state.status == PresenceStatus.OUTSIDE

    def test_beyond_exit_radius_from_outside_stays(self):
        state = evaluate_presence(OUTSIDE, 0.0, 150.0)

        assert state.status == PresenceStatus.OUTSIDE

    def test_exit_radius_is_inclusive(self):
        assert evaluate_presence(INSIDE, 0.0, 100.0).status == PresenceStatus.OUTSIDE


class TestHysteresis:
    """Distances strictly inside the band retain the previous status."""

    @pytest.mark.parametrize("initial", [INSIDE, OUTSIDE])
    def test_oscillation_in_band_does_not_flicker(self, initial):
        """Ten readings alternating 60m / 90m never change status."""
        detector = PresenceDetector(initial_state=initial)

        for i in range(10):
            state = detector.update(0.0, 60.0 if i % 2 == 0 else 90.0)
            assert state.status == initial.status

        assert get_metrics().get_counter('presence_transitions') == 0

    def test_enter_then_drift_into_band_stays_inside(self):
        detector = PresenceDetector()

        detector.update(0.0, 30.0)
        for distance in (55.0, 70.0, 95.0, 99.9):
            assert detector.update(0.0, distance).status == PresenceStatus.INSIDE

        assert detector.update(0.0, 100.0).status == PresenceStatus.OUTSIDE

    def test_transitional_status_collapses(self):
        """A caller-supplied transitional status resolves to its target."""
        state = evaluate_presence(
            PresenceState(PresenceStatus.TRANSITIONING_IN, 0.6), 0.0, 75.0
        )

        assert state.status == PresenceStatus.INSIDE


class TestConfidence:
    """Band confidence and decay toward 0.5."""

    def test_band_midpoint(self):
        assert evaluate_presence(INSIDE, 0.0, 75.0).confidence == pytest.approx(0.7)
        assert evaluate_presence(OUTSIDE, 0.0, 75.0).confidence == pytest.approx(0.7)

    def test_inside_confidence_falls_with_distance(self):
        near = evaluate_presence(INSIDE, 0.0, 60.0).confidence
        far = evaluate_presence(INSIDE, 0.0, 90.0).confidence

        assert near == pytest.approx(0.82)
        assert far == pytest.approx(0.58)

    def test_outside_confidence_rises_with_distance(self):
        near = evaluate_presence(OUTSIDE, 0.0, 60.0).confidence
        far = evaluate_presence(OUTSIDE, 0.0, 90.0).confidence

        assert near == pytest.approx(0.58)
        assert far == pytest.approx(0.82)

    def test_no_input_decays_toward_neutral(self):
        state = INSIDE
        confidences = []
        for _ in range(3):
            state = evaluate_presence(state, 0.0, None)
            confidences.append(state.confidence)

        assert state.status == PresenceStatus.INSIDE
        assert confidences == pytest.approx([0.7, 0.6, 0.55])

    def test_decay_from_below_neutral(self):
        state = evaluate_presence(PresenceState(PresenceStatus.OUTSIDE, 0.1), 0.0, None)

        assert state.confidence == pytest.approx(0.3)


class TestInputValidation:
    """Out-of-range input and configuration."""

    def test_wifi_confidence_out_of_range(self):
        with pytest.raises(ValueError):
            evaluate_presence(OUTSIDE, 1.5, None)

        with pytest.raises(ValueError):
            evaluate_presence(OUTSIDE, -0.1, None)

    def test_negative_distance(self):
        with pytest.raises(ValueError):
            evaluate_presence(OUTSIDE, 0.0, -1.0)

    def test_nan_distance(self):
        with pytest.raises(ValueError):
            evaluate_presence(OUTSIDE, 0.0, float('nan'))

    def test_entry_must_be_below_exit(self):
        with pytest.raises(ValueError):
            PresenceConfig(entry_radius_m=100.0, exit_radius_m=100.0)

    def test_custom_radii(self):
        config = PresenceConfig(entry_radius_m=10.0, exit_radius_m=20.0)

        assert evaluate_presence(OUTSIDE, 0.0, 15.0, config).status == PresenceStatus.OUTSIDE
        assert evaluate_presence(OUTSIDE, 0.0, 9.0, config).status == PresenceStatus.INSIDE

    def test_default_config_not_shared_between_calls(self):
        """A config object is built per call when none is passed."""
        assert inspect.signature(evaluate_presence).parameters['config'].default is None

        assert evaluate_presence(OUTSIDE, 0.0, 49.0, None).status == PresenceStatus.INSIDE
        assert evaluate_presence(INSIDE, 0.0, 99.0, None).status == PresenceStatus.INSIDE


# =============================================================================
# Test Stateful Detector
# =============================================================================


class TestPresenceDetector:
    """Tests for PresenceDetector."""

    def test_initial_state(self):
        detector = PresenceDetector()

        assert detector.state == PresenceState(PresenceStatus.OUTSIDE, 0.5)

    def test_transition_counted_and_logged(self, caplog):
        detector = PresenceDetector()

        with caplog.at_level(logging.INFO, logger='inav_core.domain.presence_detector'):
            detector.update(0.0, 20.0)

        assert detector.state.is_inside
        assert get_metrics().get_counter('presence_transitions') == 1
        assert get_metrics().get_counter('presence_evaluations') == 1
        assert 'OUTSIDE -> INSIDE' in caplog.text

    def test_update_with_fix(self):
        detector = PresenceDetector(PresenceConfig(building_reference=BUILDING))

        # ~33m north of the reference
        state = detector.update_with_fix(0.0, GeoCoordinate(3.071721, 101.500136))

        assert state.status == PresenceStatus.INSIDE

    def test_update_with_fix_needs_reference(self):
        detector = PresenceDetector()

        with pytest.raises(ValueError):
            detector.update_with_fix(0.0, GeoCoordinate(3.0, 101.0))

    def test_update_without_fix_needs_no_reference(self):
        detector = PresenceDetector()

        assert detector.update_with_fix(0.0, None).status == PresenceStatus.OUTSIDE

    def test_reset(self):
        detector = PresenceDetector(initial_state=INSIDE)

        detector.reset()

        assert detector.state.status == PresenceStatus.OUTSIDE


class TestDetectPresence:
    """Single-call detect_presence()."""

    def test_near_fix_is_inside(self):
        state = detect_presence(0.0, GeoCoordinate(3.071621, 101.500236), BUILDING)

        assert state.status == PresenceStatus.INSIDE

    def test_far_fix_is_outside(self):
        state = detect_presence(
            0.0, GeoCoordinate(3.073421, 101.500136), BUILDING, state=INSIDE
        )

        assert state.status == PresenceStatus.OUTSIDE

    def test_no_fix_retains_state(self):
        state = detect_presence(0.3, None, BUILDING, state=INSIDE)

        assert state.status == PresenceStatus.INSIDE
        assert state.confidence == pytest.approx(0.7)

    def test_wifi_only(self):
        state = detect_presence(0.95, None, BUILDING)

        assert state.status == PresenceStatus.INSIDE
        assert state.confidence == 0.95
