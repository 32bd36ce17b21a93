"""Scorers: pure functions from a repository snapshot (and clone) to [0, 1]."""

from netscore.metrics.bus_factor import bus_factor
from netscore.metrics.correctness import correctness
from netscore.metrics.license import license_compatibility
from netscore.metrics.ramp_up import ramp_up_time
from netscore.metrics.responsiveness import responsiveness

__all__ = [
    "bus_factor",
    "correctness",
    "license_compatibility",
    "ramp_up_time",
    "responsiveness",
]
