"""Connectivity modulation and simulation orchestration.

:mod:`plasticity_lab.simulation.modulation` perturbs the weights of a
request-scoped region graph, :mod:`~plasticity_lab.simulation.profiles` turns
intervention/setting/duration tags into perturbation profiles, and
:mod:`~plasticity_lab.simulation.engine` runs the whole pipeline for a batch
of documents.
"""

from .engine import (
    EngineRequest,
    EngineResult,
    SimulationEngine,
    SimulationStatus,
)
from .modulation import ConnectivityModulator, PerturbationProfile
from .profiles import ModifierLibrary, UnknownProfileError

__all__ = [
    "ConnectivityModulator",
    "EngineRequest",
    "EngineResult",
    "ModifierLibrary",
    "PerturbationProfile",
    "SimulationEngine",
    "SimulationStatus",
    "UnknownProfileError",
]
