"""
iNav core scenario runner.

Replays one scenario (anchors, signal observations, WiFi scan, reference
fingerprints, GPS fix, navigation graph and a route query) through positioning, presence detection
and route planning, then prints the results and the metrics summary.
"""

import sys
import json
import time
import logging
import argparse
from typing import Dict, Optional

import config
from inav_core.proto import (
    Anchor,
    GeoCoordinate,
    Position3D,
    PositionEstimate,
    PresenceState,
    Route,
    SignalObservation,
)
from inav_core.localization import (
    DistanceEstimatorConfig,
    Fingerprint,
    FingerprintConfig,
    FingerprintEstimator,
    PositioningConfig,
    PositionSmoother,
    SmootherConfig,
    estimate_position,
)
from inav_core.domain import (
    PresenceConfig,
    WiFiFingerprintConfig,
    WiFiFingerprintScorer,
    WiFiObservation,
    detect_presence,
)
from inav_core.navigation import (
    InstructionGenerator,
    NavigationGraph,
    PathPlannerConfig,
    RouteMetricsCalculator,
    RouteMetricsConfig,
    plan_route,
)
from inav_core.metrics import get_metrics

# Logging
logging.basicConfig(
    level=getattr(logging, config.LOGGING_CONFIG["level"]),
    format=config.LOGGING_CONFIG["format"]
)
logger = logging.getLogger(__name__)


def build_positioning_config(settings: Dict) -> PositioningConfig:
    return PositioningConfig(
        staleness_window_s=settings["staleness_window_s"],
        min_centroid_anchors=settings["min_centroid_anchors"],
        centroid_accuracy_m=settings["centroid_accuracy_m"],
        enable_smoothing=settings["enable_smoothing"],
        distance_config=DistanceEstimatorConfig(
            default_tx_power=settings["default_tx_power"],
            default_path_loss_exponent=settings["default_path_loss_exponent"],
            max_distance_m=settings["max_distance_m"],
        ),
        smoother_config=SmootherConfig(
            process_noise=settings["process_noise"],
            measurement_noise=settings["measurement_noise"],
        ),
    )


def build_presence_config(settings: Dict) -> PresenceConfig:
    reference = settings["building_reference"]
    return PresenceConfig(
        entry_radius_m=settings["entry_radius_m"],
        exit_radius_m=settings["exit_radius_m"],
        wifi_inside_threshold=settings["wifi_inside_threshold"],
        building_reference=GeoCoordinate(reference["lat"], reference["lon"]),
    )


class ScenarioRunner:
    """Runs one scenario through the three entry points."""

    def __init__(self, scenario: Dict):
        self.scenario = scenario

        self.positioning_config = build_positioning_config(config.POSITIONING_CONFIG)
        self.presence_config = build_presence_config(config.PRESENCE_CONFIG)
        self.planner_config = PathPlannerConfig(
            floor_penalty_m=config.NAVIGATION_CONFIG["floor_penalty_m"],
            min_waypoint_spacing_m=config.NAVIGATION_CONFIG["min_waypoint_spacing_m"],
        )
        self.route_metrics = RouteMetricsCalculator(RouteMetricsConfig(
            walking_speed_mps=config.NAVIGATION_CONFIG["walking_speed_mps"],
            floor_change_seconds=config.NAVIGATION_CONFIG["floor_change_seconds"],
        ))
        self.scorer = WiFiFingerprintScorer(WiFiFingerprintConfig(
            known_bssids=config.PRESENCE_CONFIG["known_bssids"],
            campus_ssids=frozenset(config.PRESENCE_CONFIG["campus_ssids"]),
        ))

        self.smoother = PositionSmoother(self.positioning_config.smoother_config)
        self.fingerprints = FingerprintEstimator(
            [Fingerprint.from_dict(fp) for fp in scenario.get("fingerprints", [])],
            FingerprintConfig(k=config.POSITIONING_CONFIG["fingerprint_k"]),
        )

    def run(self):
        """Run positioning, presence and routing; print each result."""
        logger.info("Scenario replay starting")

        estimate = self.run_positioning()
        self._print_estimate(estimate)

        if len(self.fingerprints):
            self._print_fingerprint(self.run_fingerprint())

        presence = self.run_presence()
        self._print_presence(presence)

        if "graph" in self.scenario and "route" in self.scenario:
            graph = NavigationGraph.from_dict(self.scenario["graph"])
            for problem in graph.validate():
                logger.warning(f"Graph problem: {problem}")

            route = self.run_routing(graph)
            self._print_route(route, graph)

        print()
        print(get_metrics().format_summary())
        logger.info("Scenario replay finished")

    def run_positioning(self) -> Optional[PositionEstimate]:
        anchors = {
            anchor_id: Anchor.from_dict(anchor_id, data)
            for anchor_id, data in self.scenario.get("anchors", {}).items()
        }
        observations = [
            SignalObservation(o["anchor_id"], int(o["rssi"]), float(o["timestamp"]))
            for o in self.scenario.get("observations", [])
        ]
        t_now = self.scenario.get("t_now", time.time())

        smoother = self.smoother if self.positioning_config.enable_smoothing else None
        return estimate_position(
            observations, anchors, t_now, self.positioning_config, smoother
        )

    def _wifi_scan(self):
        return [
            WiFiObservation(ap["bssid"], ap.get("ssid", ""), int(ap["rssi"]))
            for ap in self.scenario.get("wifi_scan", [])
        ]

    def run_fingerprint(self) -> Optional[Position3D]:
        return self.fingerprints.estimate(self._wifi_scan())

    def run_presence(self) -> PresenceState:
        scan = self._wifi_scan()
        if "wifi_confidence" in self.scenario:
            wifi_confidence = float(self.scenario["wifi_confidence"])
        else:
            wifi_confidence = self.scorer.score(scan)

        fix = self.scenario.get("gps_fix")
        gps_fix = GeoCoordinate(fix["lat"], fix["lon"]) if fix else None

        return detect_presence(
            wifi_confidence,
            gps_fix,
            self.presence_config.building_reference,
            config=self.presence_config,
        )

    def run_routing(self, graph: NavigationGraph) -> Optional[Route]:
        query = self.scenario["route"]
        start = Position3D.from_dict(query["start"])
        end = Position3D.from_dict(query["end"])
        return plan_route(graph, start, end, self.planner_config)

    def _print_estimate(self, estimate: Optional[PositionEstimate]):
        print("=" * 60)
        print("POSITION")
        if estimate is None:
            print("  No estimate this cycle")
            return

        p = estimate.position
        print(f"  ({p.x:.2f}, {p.y:.2f}) floor {p.floor} +/- {estimate.accuracy_m:.1f}m")
        print(f"  Fix: {estimate.fix_type.name}, anchors: {sorted(estimate.contributing_anchors)}")

    def _print_fingerprint(self, position: Optional[Position3D]):
        print("=" * 60)
        print("WIFI FINGERPRINT")
        if position is None:
            print("  No fingerprint match")
            return

        print(f"  ({position.x:.2f}, {position.y:.2f}) floor {position.floor}")

    def _print_presence(self, presence: PresenceState):
        print("=" * 60)
        print("PRESENCE")
        print(f"  {presence.status.name} (confidence {presence.confidence:.2f})")

    def _print_route(self, route: Optional[Route], graph: NavigationGraph):
        print("=" * 60)
        print("ROUTE")
        if route is None:
            print("  No route")
            return

        for i, w in enumerate(route.waypoints):
            print(f"  {i:2d}: ({w.x:.1f}, {w.y:.1f}) floor {w.floor}")

        distance = self.route_metrics.total_distance_m(route)
        eta = self.route_metrics.eta_seconds(route)
        print(f"  Distance: {self.route_metrics.format_distance(distance)}, "
              f"ETA: {self.route_metrics.format_eta(eta)}")

        print("  Instructions:")
        for instruction in InstructionGenerator().generate(route, graph):
            print(f"    - {instruction.describe()}")


def load_scenario(path: Optional[str]) -> Dict:
    if path is None:
        return config.DEMO_SCENARIO

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description='iNav core scenario runner')
    parser.add_argument('--scenario', '-s', type=str, default=None,
                        help='Scenario JSON file (built-in demo if omitted)')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='Enable debug logging')

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        scenario = load_scenario(args.scenario)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot load scenario {args.scenario}: {e}")
        return 1

    ScenarioRunner(scenario).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
