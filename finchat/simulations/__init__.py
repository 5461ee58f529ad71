"""
Numeric simulators.

Pure, deterministic functions with a hard iteration cap; safe to call
from async handlers without offloading.
"""

from finchat.simulations.amortization import (
    HORIZON_CAP,
    simulate_amortization,
    simulate_position,
)
from finchat.simulations.growth import project_growth, project_growth_detail
from finchat.simulations.milestone import solve_milestone

__all__ = [
    "HORIZON_CAP",
    "project_growth",
    "project_growth_detail",
    "simulate_amortization",
    "simulate_position",
    "solve_milestone",
]
