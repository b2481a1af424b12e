"""Builds normalized messages from message events and hands them off."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from slack_bridge.core.markup import MarkupResolver
from slack_bridge.core.mention import is_addressed
from slack_bridge.models.message import NormalizedMessage
from slack_bridge.utils.logging import LogEventNames

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from slack_bridge.interfaces.directory import RoomDirectory, UserDirectory
    from slack_bridge.interfaces.pipeline import CommandPipeline
    from slack_bridge.models.event import EventEnvelope
    from slack_bridge.models.team import BotIdentity, SlackUser

log = structlog.get_logger()

# Direct-message channel ids start with this character.
DIRECT_MESSAGE_PREFIX = "D"


class MessageDispatcher:
    """Turns a classified message event into a NormalizedMessage.

    A message is a command when it arrives in a direct-message channel or
    addresses the bot by mention.

    Example:
        dispatcher = MessageDispatcher(identity, users, rooms, pipeline)
        message = await dispatcher.dispatch(author, envelope)
    """

    def __init__(
        self,
        identity: BotIdentity,
        users: UserDirectory,
        rooms: RoomDirectory,
        pipeline: CommandPipeline,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            identity: The bot's own identity from negotiation
            users: User directory (read-only here)
            rooms: Room directory (read-only here)
            pipeline: Receiver of normalized messages
            logger: Logger, defaults to the module logger
        """
        self._identity = identity
        self._rooms = rooms
        self._pipeline = pipeline
        self._resolver = MarkupResolver(users, rooms)
        self._log = logger or log

    def build(self, author: SlackUser, envelope: EventEnvelope) -> NormalizedMessage:
        """Build the normalized message without forwarding it."""
        channel = envelope.get("channel")
        channel_id = channel if isinstance(channel, str) else None
        room = self._rooms.find_by_id(channel_id) if channel_id else None

        text = envelope.get("text")
        raw_text = text if isinstance(text, str) else None
        attachments = envelope.get("attachments")
        if not isinstance(attachments, list):
            attachments = None
        is_private = bool(channel_id) and channel_id.startswith(DIRECT_MESSAGE_PREFIX)
        mentioned = is_addressed(
            raw_text,
            self._identity.id,
            self._identity.mention_name,
            logger=self._log,
        )
        timestamp = envelope.get("ts")

        return NormalizedMessage(
            body=self._resolver.normalize_body(
                raw_text,
                attachments,
                identity=self._identity,
            ),
            user=author,
            source_room_id=room.id if room else channel_id,
            room=room,
            is_private=is_private,
            is_command=is_private or mentioned,
            event_timestamp=timestamp,
            extensions={"slack": {"timestamp": timestamp}},
        )

    async def dispatch(self, author: SlackUser, envelope: EventEnvelope) -> NormalizedMessage:
        """Build the normalized message and forward it to the pipeline.

        Args:
            author: Resolved author of the message
            envelope: The "message" event

        Returns:
            The message that was forwarded
        """
        message = self.build(author, envelope)

        self._log.debug(
            LogEventNames.MESSAGE_DISPATCHED,
            user_id=author.id,
            room_id=message.source_room_id,
            private=message.is_private,
            command=message.is_command,
            body=message.body,
        )

        await self._pipeline.receive(message)
        return message
