"""Data models and transfer objects."""

from .event import EventEnvelope, EventKind
from .message import NormalizedMessage, ReactionPayload
from .team import BotIdentity, SlackChannel, SlackIM, SlackUser, TeamData

__all__ = [
    # Inbound events
    "EventEnvelope",
    "EventKind",
    # Workspace records
    "BotIdentity",
    "SlackChannel",
    "SlackIM",
    "SlackUser",
    "TeamData",
    # Outputs
    "NormalizedMessage",
    "ReactionPayload",
]
