"""Protocol definitions for pluggable collaborators."""

from .directory import RoomDirectory, UserDirectory
from .pipeline import CommandPipeline, EventBus, FrameSender

__all__ = [
    "CommandPipeline",
    "EventBus",
    "FrameSender",
    "RoomDirectory",
    "UserDirectory",
]
