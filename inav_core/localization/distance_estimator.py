"""
RSSI to Distance Conversion.

Log-distance path-loss model:

    d = 10 ^ ((tx_power - rssi) / (10 * n))

where tx_power is the reference RSSI at 1m and n the path-loss exponent
(2.0 free space, 2.5-4.0 for obstructed indoor paths).
"""

from dataclasses import dataclass
from typing import Optional
import math

from inav_core.proto.signal_observation import (
    Anchor,
    SignalObservation,
    DEFAULT_PATH_LOSS_EXPONENT,
    DEFAULT_TX_POWER_DBM,
)
from inav_core.metrics import get_metrics


MIN_DISTANCE_M = 0.1


def estimate_distance(
    rssi: int,
    tx_power: int = DEFAULT_TX_POWER_DBM,
    path_loss_exponent: float = DEFAULT_PATH_LOSS_EXPONENT,
) -> float:
    """
    Convert an RSSI reading to an estimated distance.
    
    Args:
        rssi: Received signal strength (dBm)
        tx_power: Reference RSSI at 1m (dBm)
        path_loss_exponent: Environment decay constant
        
    Returns:
        Distance in meters, never below 0.1m
        
    Notes:
        - Never raises: a non-positive or non-finite exponent is replaced
          by the free-space default, non-finite results clamp to 0.1m
    """
    if not (math.isfinite(path_loss_exponent) and path_loss_exponent > 0):
        path_loss_exponent = DEFAULT_PATH_LOSS_EXPONENT
    
    exponent = (tx_power - rssi) / (10.0 * path_loss_exponent)
    
    try:
        distance = 10.0 ** exponent
    except OverflowError:
        distance = math.inf
    
    if math.isnan(distance):
        return MIN_DISTANCE_M
    
    return max(MIN_DISTANCE_M, distance)


@dataclass
class DistanceEstimatorConfig:
    """
    Configuration for per-anchor distance estimation.
    
    Attributes:
        default_tx_power: Used when an anchor has no calibrated tx_power
        default_path_loss_exponent: Used when an anchor has no exponent
        max_distance_m: Upper clamp for a single distance (None = no clamp)
    """
    
    default_tx_power: int = DEFAULT_TX_POWER_DBM
    default_path_loss_exponent: float = DEFAULT_PATH_LOSS_EXPONENT
    max_distance_m: Optional[float] = 100.0
    
    def __post_init__(self):
        if self.default_path_loss_exponent <= 0:
            raise ValueError(
                f"Path loss exponent must be positive: {self.default_path_loss_exponent}"
            )
        
        if self.max_distance_m is not None and self.max_distance_m <= MIN_DISTANCE_M:
            raise ValueError(f"max_distance_m must exceed {MIN_DISTANCE_M}: {self.max_distance_m}")


class DistanceEstimator:
    """
    Apply the path-loss model with per-anchor calibration.
    
    Usage:
        estimator = DistanceEstimator()
        d = estimator.distance_for(observation, anchors[observation.anchor_id])
    """
    
    def __init__(self, config: Optional[DistanceEstimatorConfig] = None):
        self.config = config or DistanceEstimatorConfig()
        self.metrics = get_metrics()
    
    def distance_for(
        self,
        observation: SignalObservation,
        anchor: Optional[Anchor] = None,
    ) -> float:
        """
        Estimated distance from the observation's anchor (m).
        
        Args:
            observation: RSSI reading
            anchor: Anchor record supplying tx_power/exponent (defaults if None)
        """
        if anchor is not None:
            tx_power = anchor.tx_power
            exponent = anchor.path_loss_exponent
        else:
            tx_power = self.config.default_tx_power
            exponent = self.config.default_path_loss_exponent
        
        distance = estimate_distance(observation.rssi, tx_power, exponent)
        
        if self.config.max_distance_m is not None:
            distance = min(distance, self.config.max_distance_m)
        
        self.metrics.increment('distance_estimates')
        return distance
