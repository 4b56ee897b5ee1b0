"""
Simulation engine — deterministic daily projection math + the simulate pipeline.
"""

from .projection import project, ramp_factors, summarize
from .simulator import SimulationEngine, SimulationResult, simulate

__all__ = [
    "project",
    "ramp_factors",
    "summarize",
    "SimulationEngine",
    "SimulationResult",
    "simulate",
]
