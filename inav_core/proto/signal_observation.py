"""
Signal Observation and Anchor Schemas.

SignalObservation is what the external radio scanner reports for every
anchor it hears. Anchor is the read-only configuration record describing a
fixed emitter (WiFi access point or BLE beacon).
"""

from dataclasses import dataclass

from .geometry import Position2D


DEFAULT_TX_POWER_DBM = -59
DEFAULT_PATH_LOSS_EXPONENT = 2.0
DEFAULT_STALENESS_WINDOW_S = 10.0


@dataclass(frozen=True)
class SignalObservation:
    """
    Single RSSI reading for one anchor.
    
    Attributes:
        anchor_id: ID of the emitting anchor (BSSID or beacon ID)
        rssi: Received signal strength (dBm, negative)
        timestamp: Time of the reading (seconds, caller's clock)
    
    Notes:
        - Consumed once per fusion cycle
        - Unusable once older than the staleness window (default 10s)
    """
    
    anchor_id: str
    rssi: int
    timestamp: float
    
    def __post_init__(self):
        """Validate observation."""
        if not self.anchor_id:
            raise ValueError("Observation anchor_id cannot be empty")
    
    def age_at(self, t_now: float) -> float:
        """Age of this reading at t_now (seconds)."""
        return t_now - self.timestamp
    
    def is_stale(self, t_now: float, window_s: float = DEFAULT_STALENESS_WINDOW_S) -> bool:
        """True if the reading is older than window_s at t_now."""
        return self.age_at(t_now) > window_s


@dataclass(frozen=True)
class Anchor:
    """
    Fixed-position wireless emitter used as a positioning reference.
    
    Attributes:
        id: Anchor identifier
        position: Anchor position in the building frame (m)
        floor: Floor the anchor is mounted on
        tx_power: Reference RSSI measured at 1m (dBm)
        path_loss_exponent: Environment decay constant (2.0 free space,
            2.5-4.0 for obstructed indoor paths)
    """
    
    id: str
    position: Position2D
    floor: int = 0
    tx_power: int = DEFAULT_TX_POWER_DBM
    path_loss_exponent: float = DEFAULT_PATH_LOSS_EXPONENT
    
    def __post_init__(self):
        """Validate anchor record."""
        if not self.id:
            raise ValueError("Anchor id cannot be empty")
        
        if self.path_loss_exponent <= 0:
            raise ValueError(
                f"Path loss exponent must be positive: {self.path_loss_exponent}"
            )
    
    @classmethod
    def from_dict(cls, anchor_id: str, data: dict) -> "Anchor":
        """
        Build an anchor from a configuration dictionary.
        
        Expected keys: x, y, and optionally floor, tx_power, path_loss_exponent.
        """
        return cls(
            id=anchor_id,
            position=Position2D(float(data['x']), float(data['y'])),
            floor=int(data.get('floor', 0)),
            tx_power=int(data.get('tx_power', DEFAULT_TX_POWER_DBM)),
            path_loss_exponent=float(
                data.get('path_loss_exponent', DEFAULT_PATH_LOSS_EXPONENT)
            ),
        )
