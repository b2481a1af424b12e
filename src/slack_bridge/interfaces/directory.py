"""Lookup/upsert interfaces for the user and room directories."""

from typing import Protocol

from ..models.team import SlackChannel, SlackUser


class UserDirectory(Protocol):
    """
    Users known to the bot, keyed by Slack user id.

    Lookups never create entries. ``create`` and ``upsert`` are the only
    mutation paths and are called explicitly by the event classifier.
    """

    def find_by_id(self, user_id: str) -> SlackUser | None:
        """
        Return the user with the given id, or None if unknown.
        """
        ...

    def create(self, user_id: str) -> SlackUser:
        """
        Record a placeholder for a user known only by id.

        Args:
            user_id: Slack user id

        Returns:
            The stored user
        """
        ...

    def upsert(self, user: SlackUser) -> SlackUser:
        """
        Insert or replace a user record (last write wins).

        Args:
            user: Full user record from an event or a listing call

        Returns:
            The stored user
        """
        ...


class RoomDirectory(Protocol):
    """
    Rooms known to the bot, keyed by Slack channel id.
    """

    def find_by_id(self, room_id: str) -> SlackChannel | None:
        """
        Return the room with the given id, or None if unknown.
        """
        ...

    def upsert(self, room: SlackChannel) -> SlackChannel:
        """
        Insert or replace a room record (last write wins).
        """
        ...
