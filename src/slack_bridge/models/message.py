"""Normalized outputs handed to the pipeline and the event bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .team import SlackChannel, SlackUser


@dataclass(frozen=True)
class NormalizedMessage:
    """A chat message ready for the command pipeline."""

    body: str
    user: SlackUser
    source_room_id: str | None
    is_private: bool
    is_command: bool
    event_timestamp: str | None
    room: SlackChannel | None = None  # None when the channel is not in the directory

    # Platform-specific metadata, e.g. {"slack": {"timestamp": "..."}}
    extensions: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def source_user_id(self) -> str:
        return self.user.id


@dataclass(frozen=True)
class ReactionPayload:
    """Payload of the ``slack_reaction_added`` / ``slack_reaction_removed`` signals."""

    user: SlackUser
    name: str
    item_user: SlackUser | None
    item: dict[str, Any]
    event_ts: str | None

    def as_dict(self) -> dict[str, Any]:
        return {
            "user": self.user,
            "name": self.name,
            "item_user": self.item_user,
            "item": self.item,
            "event_ts": self.event_ts,
        }
