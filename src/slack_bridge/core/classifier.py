"""Classification and handling of inbound Slack events.

Every frame read from the stream is wrapped in an EventEnvelope and passed
to :meth:`EventClassifier.handle`, which dispatches on its kind:

- hello: connection signal (plus presence activation in Socket Mode)
- message: normalized and forwarded to the command pipeline
- reaction_added / reaction_removed: re-emitted as bus signals
- user_change, team_join, bot_added, bot_changed: user directory upserts
- channel_created, channel_rename, group_rename: room directory upserts
- error: logged
- anything else: ignored

Unknown or malformed events are never an error.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from slack_bridge.core.dispatcher import MessageDispatcher
from slack_bridge.models.event import EventEnvelope, EventKind
from slack_bridge.models.message import ReactionPayload
from slack_bridge.models.team import SlackChannel, SlackUser
from slack_bridge.utils.logging import LogEventNames

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from slack_bridge.config.schema import SlackConfig
    from slack_bridge.interfaces.directory import RoomDirectory, UserDirectory
    from slack_bridge.interfaces.pipeline import CommandPipeline, EventBus, FrameSender
    from slack_bridge.models.team import BotIdentity

log = structlog.get_logger()

# Slackbot's reserved user id; its messages are never dispatched.
SLACKBOT_USER_ID = "USLACKBOT"

PRESENCE_FRAME = {"type": "presence_sub", "presence": "active"}


class EventAction(StrEnum):
    """Outcome of handling one envelope."""

    CONNECTED = "connected"
    DISPATCHED = "dispatched"
    SIGNALED = "signaled"
    DIRECTORY_UPDATED = "directory_updated"
    ERROR_LOGGED = "error_logged"
    IGNORED = "ignored"


class EventClassifier:
    """Routes event envelopes to their handlers.

    Example:
        classifier = EventClassifier(identity, config, users, rooms, pipeline, bus)
        action = await classifier.handle(EventEnvelope.from_payload(frame))
    """

    def __init__(
        self,
        identity: BotIdentity,
        config: SlackConfig,
        users: UserDirectory,
        rooms: RoomDirectory,
        pipeline: CommandPipeline,
        bus: EventBus,
        frame_sender: FrameSender | None = None,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            identity: The bot's own identity
            config: Slack configuration (supported message subtypes)
            users: User directory
            rooms: Room directory
            pipeline: Receiver of normalized messages
            bus: Receiver of signals
            frame_sender: Socket to send control frames on; only set in Socket Mode
            logger: Logger, defaults to the module logger
        """
        self._identity = identity
        self._subtypes = config.message_subtypes
        self._users = users
        self._rooms = rooms
        self._bus = bus
        self._frame_sender = frame_sender
        self._log = logger or log
        self._dispatcher = MessageDispatcher(identity, users, rooms, pipeline, logger=self._log)

        self._handlers: dict[EventKind, Callable[[EventEnvelope], Awaitable[EventAction]]] = {
            EventKind.HELLO: self._handle_hello,
            EventKind.MESSAGE: self._handle_message,
            EventKind.REACTION_ADDED: self._handle_reaction,
            EventKind.REACTION_REMOVED: self._handle_reaction,
            EventKind.USER_CHANGE: self._handle_user_change,
            EventKind.TEAM_JOIN: self._handle_user_change,
            EventKind.BOT_ADDED: self._handle_bot_change,
            EventKind.BOT_CHANGED: self._handle_bot_change,
            EventKind.CHANNEL_CREATED: self._handle_channel_change,
            EventKind.CHANNEL_RENAME: self._handle_channel_change,
            EventKind.GROUP_RENAME: self._handle_channel_change,
            EventKind.ERROR: self._handle_error,
        }

    async def handle(self, envelope: EventEnvelope) -> EventAction:
        """Handle a single envelope.

        Args:
            envelope: The inbound event

        Returns:
            What was done with it
        """
        handler = self._handlers.get(envelope.kind, self._handle_unknown)
        return await handler(envelope)

    def _from_self(self, user: SlackUser) -> bool:
        return user.id == self._identity.id

    def _find_or_create_user(self, user_id: str) -> SlackUser:
        return self._users.find_by_id(user_id) or self._users.create(user_id)

    async def _handle_hello(self, envelope: EventEnvelope) -> EventAction:
        self._log.info(LogEventNames.SLACK_CONNECTED)
        if self._frame_sender is not None:
            await self._frame_sender.send(dict(PRESENCE_FRAME))
        await self._bus.trigger("connected")
        return EventAction.CONNECTED

    def _supported_subtype(self, envelope: EventEnvelope) -> bool:
        subtype = envelope.get("subtype")
        if not subtype:
            return True
        return isinstance(subtype, str) and subtype in self._subtypes

    async def _handle_message(self, envelope: EventEnvelope) -> EventAction:
        self._log.debug(LogEventNames.EVENT_RECEIVED, event_type=envelope.type)

        if not self._supported_subtype(envelope):
            return EventAction.IGNORED

        author_id = envelope.get("user")
        if author_id == SLACKBOT_USER_ID:
            return EventAction.IGNORED
        if not isinstance(author_id, str) or not author_id:
            self._log.debug(
                LogEventNames.EVENT_IGNORED, event_type=envelope.type, reason="no_author"
            )
            return EventAction.IGNORED

        author = self._find_or_create_user(author_id)
        if self._from_self(author):
            return EventAction.IGNORED

        await self._dispatcher.dispatch(author, envelope)
        return EventAction.DISPATCHED

    async def _handle_reaction(self, envelope: EventEnvelope) -> EventAction:
        self._log.debug(LogEventNames.EVENT_RECEIVED, event_type=envelope.type)

        actor_id = envelope.get("user")
        if not isinstance(actor_id, str) or not actor_id:
            return EventAction.IGNORED

        user = self._find_or_create_user(actor_id)
        if self._from_self(user):
            return EventAction.IGNORED

        item_user_id = envelope.get("item_user")
        if isinstance(item_user_id, str) and item_user_id:
            item_user = self._find_or_create_user(item_user_id)
        else:
            item_user = None

        item = envelope.get("item")
        payload = ReactionPayload(
            user=user,
            name=envelope.get("reaction"),
            item_user=item_user,
            item=dict(item) if isinstance(item, Mapping) else {},
            event_ts=envelope.get("event_ts"),
        )

        signal = f"slack_{envelope.type}"
        self._log.debug(LogEventNames.REACTION_TRIGGERED, signal=signal, reaction=payload.name)
        await self._bus.trigger(signal, payload.as_dict())
        return EventAction.SIGNALED

    async def _handle_user_change(self, envelope: EventEnvelope) -> EventAction:
        return self._upsert_user(envelope, "user")

    async def _handle_bot_change(self, envelope: EventEnvelope) -> EventAction:
        return self._upsert_user(envelope, "bot")

    def _upsert_user(self, envelope: EventEnvelope, key: str) -> EventAction:
        data = envelope.get(key)
        if not isinstance(data, Mapping) or "id" not in data:
            self._log.debug(
                LogEventNames.EVENT_IGNORED, event_type=envelope.type, reason="malformed"
            )
            return EventAction.IGNORED

        user = self._users.upsert(SlackUser.from_data(data))
        self._log.debug(LogEventNames.DIRECTORY_UPDATED, directory="users", id=user.id)
        return EventAction.DIRECTORY_UPDATED

    async def _handle_channel_change(self, envelope: EventEnvelope) -> EventAction:
        data = envelope.get("channel")
        if not isinstance(data, Mapping) or "id" not in data:
            self._log.debug(
                LogEventNames.EVENT_IGNORED, event_type=envelope.type, reason="malformed"
            )
            return EventAction.IGNORED

        room = self._rooms.upsert(SlackChannel.from_data(data))
        self._log.debug(LogEventNames.DIRECTORY_UPDATED, directory="rooms", id=room.id)
        return EventAction.DIRECTORY_UPDATED

    async def _handle_error(self, envelope: EventEnvelope) -> EventAction:
        error = envelope.get("error")
        if not isinstance(error, Mapping):
            error = {}
        self._log.error(
            LogEventNames.SLACK_ERROR_EVENT,
            code=error.get("code"),
            message=error.get("msg"),
        )
        return EventAction.ERROR_LOGGED

    async def _handle_unknown(self, envelope: EventEnvelope) -> EventAction:
        # Replies to our own frames carry reply_to and are expected noise
        if envelope.get("reply_to") is None:
            self._log.debug(LogEventNames.EVENT_IGNORED, event_type=envelope.type)
        return EventAction.IGNORED
