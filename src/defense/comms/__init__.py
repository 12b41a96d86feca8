"""Internal messaging between the simulation and its collaborators."""

from .event_bus import EventBus

__all__ = ["EventBus"]
