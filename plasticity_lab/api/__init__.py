"""API package exposing the serialisable request and result schemas."""

from .schemas import SimulationPayload, SimulationRequest

__all__ = ["SimulationPayload", "SimulationRequest"]
