"""Workspace records: users, channels, IMs and the bot's own identity."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SlackUser:
    """A workspace member (humans and bots alike)."""

    id: str
    name: str
    real_name: str = ""
    email: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def mention_name(self) -> str:
        return self.name

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> SlackUser:
        """Build a user from a ``users.list`` entry or an event's embedded user.

        Args:
            data: Raw user object; must carry ``id``.

        Returns:
            SlackUser with ``name`` falling back to the id.
        """
        user_id = str(data["id"])
        profile = data.get("profile")
        if not isinstance(profile, Mapping):
            profile = {}
        name = data.get("name") or user_id
        return cls(
            id=user_id,
            name=name,
            real_name=data.get("real_name") or profile.get("real_name") or name,
            email=profile.get("email"),
            metadata=dict(data),
        )

    @classmethod
    def from_data_array(cls, data: Iterable[Mapping[str, Any]]) -> list[SlackUser]:
        return [cls.from_data(item) for item in data]

    @classmethod
    def placeholder(cls, user_id: str) -> SlackUser:
        """A user known only by id (author of an event we have no record of)."""
        return cls(id=user_id, name=user_id, real_name=user_id)


@dataclass(frozen=True)
class SlackChannel:
    """A public channel, private group or multi-party IM."""

    id: str
    name: str
    created: int | None = None
    creator: str | None = None
    topic: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> SlackChannel:
        topic = data.get("topic")
        if isinstance(topic, Mapping):
            topic = topic.get("value")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            created=data.get("created"),
            creator=data.get("creator"),
            topic=topic,
            raw=dict(data),
        )

    @classmethod
    def from_data_array(cls, data: Iterable[Mapping[str, Any]]) -> list[SlackChannel]:
        return [cls.from_data(item) for item in data]


@dataclass(frozen=True)
class SlackIM:
    """A direct-message channel with a single user."""

    id: str
    user_id: str

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> SlackIM:
        return cls(id=str(data["id"]), user_id=str(data["user"]))

    @classmethod
    def from_data_array(cls, data: Iterable[Mapping[str, Any]]) -> list[SlackIM]:
        return [cls.from_data(item) for item in data]


@dataclass(frozen=True)
class BotIdentity:
    """The bot's own user id and the name people address it by."""

    id: str
    mention_name: str | None
    name: str | None = None

    @classmethod
    def from_user(cls, user: SlackUser) -> BotIdentity:
        return cls(id=user.id, mention_name=user.mention_name, name=user.real_name)


@dataclass(frozen=True)
class TeamData:
    """Result of connection negotiation.

    Directory lists are always empty here; they are filled later by events or
    by explicit listing calls.
    """

    ims: list[SlackIM]
    identity: BotIdentity
    users: list[SlackUser]
    channels: list[SlackChannel]
    websocket_url: str
