"""
Localization error taxonomy.

Every error here is recoverable: callers fall back to a weighted-centroid
estimate, hold the last known position, or simply skip the cycle.
"""


class LocalizationError(Exception):
    """Base class for recoverable positioning failures."""


class InsufficientAnchors(LocalizationError):
    """Fewer usable anchors than the solver requires."""
    
    def __init__(self, found: int, required: int = 3):
        self.found = found
        self.required = required
        super().__init__(f"need at least {required} anchors, got {found}")


class SingularGeometry(LocalizationError):
    """Anchor layout yields a rank-deficient system (colinear/coincident)."""


class StaleInput(LocalizationError):
    """Every supplied observation is older than the staleness window."""
    
    def __init__(self, count: int, window_s: float):
        self.count = count
        self.window_s = window_s
        super().__init__(f"all {count} observations older than {window_s:.1f}s")
