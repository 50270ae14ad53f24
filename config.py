"""
iNav core demo configuration.
"""

# Positioning
POSITIONING_CONFIG = {
    "staleness_window_s": 10.0,       # max observation age
    "min_centroid_anchors": 1,        # 0 disables centroid fallback
    "centroid_accuracy_m": 10.0,
    "enable_smoothing": True,
    "default_tx_power": -59,          # RSSI at 1 m (dBm)
    "default_path_loss_exponent": 2.0,
    "max_distance_m": 100.0,
    "process_noise": 0.01,            # smoother q
    "measurement_noise": 0.5,         # smoother r
    "fingerprint_k": 3,               # WiFi k-NN neighbours
}

# Presence detection
PRESENCE_CONFIG = {
    "building_reference": {"lat": 3.071421, "lon": 101.500136},
    "entry_radius_m": 50.0,
    "exit_radius_m": 100.0,
    "wifi_inside_threshold": 0.8,
    "known_bssids": {
        "00:11:22:33:44:55": -60,
        "00:11:22:33:44:66": -65,
        "00:11:22:33:44:77": -70,
    },
    "campus_ssids": ["Campus_WiFi", "eduroam"],
}

# Navigation
NAVIGATION_CONFIG = {
    "floor_penalty_m": 15.0,          # cost per floor crossed
    "min_waypoint_spacing_m": 1.0,
    "walking_speed_mps": 1.4,
    "floor_change_seconds": 20.0,
}

# Logging
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Built-in demo scenario (same layout as a --scenario JSON file)
DEMO_SCENARIO = {
    "t_now": 1000.0,
    "anchors": {
        "AP-0-A": {"x": 0.0, "y": 0.0, "floor": 0},
        "AP-0-B": {"x": 20.0, "y": 0.0, "floor": 0},
        "AP-0-C": {"x": 0.0, "y": 15.0, "floor": 0},
        "AP-0-D": {"x": 20.0, "y": 15.0, "floor": 0, "path_loss_exponent": 2.5},
        "AP-1-A": {"x": 0.0, "y": 0.0, "floor": 1},
    },
    "observations": [
        {"anchor_id": "AP-0-A", "rssi": -73, "timestamp": 999.2},
        {"anchor_id": "AP-0-B", "rssi": -81, "timestamp": 999.5},
        {"anchor_id": "AP-0-C", "rssi": -77, "timestamp": 998.9},
        {"anchor_id": "AP-0-D", "rssi": -88, "timestamp": 999.7},
        {"anchor_id": "AP-1-A", "rssi": -90, "timestamp": 985.0},
    ],
    "wifi_scan": [
        {"bssid": "00:11:22:33:44:55", "ssid": "Campus_WiFi", "rssi": -62},
        {"bssid": "00:11:22:33:44:66", "ssid": "Campus_WiFi", "rssi": -71},
        {"bssid": "aa:bb:cc:dd:ee:ff", "ssid": "Guest", "rssi": -84},
    ],
    "fingerprints": [
        {"location_id": "lobby", "x": 2.0, "y": 5.0, "floor": 0,
         "signals": {"00:11:22:33:44:55": -60, "00:11:22:33:44:66": -72}},
        {"location_id": "lab", "x": 10.0, "y": 14.0, "floor": 0,
         "signals": {"00:11:22:33:44:55": -70, "00:11:22:33:44:66": -62}},
        {"location_id": "office", "x": 10.0, "y": 2.5, "floor": 1,
         "signals": {"00:11:22:33:44:55": -80, "00:11:22:33:44:66": -58, "00:11:22:33:44:77": -65}},
    ],
    "gps_fix": {"lat": 3.071600, "lon": 101.500300},
    "graph": {
        "nodes": [
            {"id": "entrance", "x": 0.0, "y": 5.0, "floor": 0, "kind": "ENTRANCE", "connections": ["c0"]},
            {"id": "c0", "x": 10.0, "y": 5.0, "floor": 0, "kind": "INTERSECTION", "connections": ["entrance", "c1", "lab"]},
            {"id": "c1", "x": 20.0, "y": 5.0, "floor": 0, "kind": "CORRIDOR", "connections": ["c0", "stairs0"]},
            {"id": "lab", "x": 10.0, "y": 14.0, "floor": 0, "kind": "ROOM", "connections": ["c0"]},
            {"id": "stairs0", "x": 20.0, "y": 10.0, "floor": 0, "kind": "STAIRS", "connections": ["c1", "stairs1"]},
            {"id": "stairs1", "x": 20.0, "y": 10.0, "floor": 1, "kind": "STAIRS", "connections": ["stairs0", "d0"]},
            {"id": "d0", "x": 10.0, "y": 10.0, "floor": 1, "kind": "CORRIDOR", "connections": ["stairs1", "office"]},
            {"id": "office", "x": 10.0, "y": 2.0, "floor": 1, "kind": "ROOM", "connections": ["d0"]},
        ]
    },
    "route": {
        "start": {"x": 1.0, "y": 5.5, "floor": 0},
        "end": {"x": 10.0, "y": 2.5, "floor": 1},
    },
}
