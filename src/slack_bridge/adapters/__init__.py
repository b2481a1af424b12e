"""Concrete implementations of the collaborator interfaces."""

from .memory import (
    InMemoryEventBus,
    InMemoryRoomDirectory,
    InMemoryUserDirectory,
    LoggingPipeline,
)
from .slack import SlackAdapter, SlackApi, SlackApiError

__all__ = [
    "InMemoryEventBus",
    "InMemoryRoomDirectory",
    "InMemoryUserDirectory",
    "LoggingPipeline",
    "SlackAdapter",
    "SlackApi",
    "SlackApiError",
]
