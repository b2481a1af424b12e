"""Inbound event envelope models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any


class EventKind(StrEnum):
    """Event types the classifier knows how to handle."""

    HELLO = "hello"
    MESSAGE = "message"
    REACTION_ADDED = "reaction_added"
    REACTION_REMOVED = "reaction_removed"
    USER_CHANGE = "user_change"
    TEAM_JOIN = "team_join"
    BOT_ADDED = "bot_added"
    BOT_CHANGED = "bot_changed"
    CHANNEL_CREATED = "channel_created"
    CHANNEL_RENAME = "channel_rename"
    GROUP_RENAME = "group_rename"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, event_type: str | None) -> EventKind:
        """Map a raw ``type`` string onto a kind, UNKNOWN for anything else."""
        if not event_type or event_type == cls.UNKNOWN.value:
            return cls.UNKNOWN
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class EventEnvelope:
    """A single inbound event frame.

    ``fields`` holds the whole decoded payload (including ``type``) behind a
    read-only view.
    """

    type: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> EventEnvelope:
        event_type = payload.get("type")
        return cls(type=event_type if isinstance(event_type, str) else "", fields=payload)

    @property
    def kind(self) -> EventKind:
        return EventKind.parse(self.type)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)
