"""Exposure simulation driver."""

from ccrfast.engine.exposure import ExposureProfile, ScenarioHook, simulate_exposure

__all__ = [
    "ExposureProfile",
    "ScenarioHook",
    "simulate_exposure",
]
