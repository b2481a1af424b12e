"""In-memory implementations of the directory and pipeline interfaces.

Used by the CLI and the tests. Directories are plain dicts keyed by id;
writes are last-write-wins.
"""

from __future__ import annotations

import inspect
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog

from ..models.message import NormalizedMessage
from ..models.team import SlackChannel, SlackUser
from ..utils.logging import LogEventNames

log = structlog.get_logger()

SignalHandler = Callable[[dict[str, Any] | None], Awaitable[None] | None]

# How many recent signals and messages are kept for inspection.
DEFAULT_HISTORY = 100


class InMemoryUserDirectory:
    """User directory backed by a dict."""

    def __init__(self, users: Iterable[SlackUser] = ()) -> None:
        self._users: dict[str, SlackUser] = {user.id: user for user in users}

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._users

    def find_by_id(self, user_id: str) -> SlackUser | None:
        return self._users.get(user_id)

    def create(self, user_id: str) -> SlackUser:
        user = SlackUser.placeholder(user_id)
        self._users[user_id] = user
        return user

    def upsert(self, user: SlackUser) -> SlackUser:
        self._users[user.id] = user
        return user


class InMemoryRoomDirectory:
    """Room directory backed by a dict."""

    def __init__(self, rooms: Iterable[SlackChannel] = ()) -> None:
        self._rooms: dict[str, SlackChannel] = {room.id: room for room in rooms}

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def find_by_id(self, room_id: str) -> SlackChannel | None:
        return self._rooms.get(room_id)

    def upsert(self, room: SlackChannel) -> SlackChannel:
        self._rooms[room.id] = room
        return room


class InMemoryEventBus:
    """Event bus that calls subscribed handlers in order.

    The last ``history`` signals are kept in ``triggered``.
    """

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        self._subscribers: defaultdict[str, list[SignalHandler]] = defaultdict(list)
        self.triggered: deque[tuple[str, dict[str, Any] | None]] = deque(maxlen=history)

    def subscribe(self, name: str, handler: SignalHandler) -> None:
        """Register a handler (sync or async) for a signal name."""
        self._subscribers[name].append(handler)

    async def trigger(self, name: str, payload: dict[str, Any] | None = None) -> None:
        self.triggered.append((name, payload))
        handlers = self._subscribers.get(name, [])
        log.debug(LogEventNames.SIGNAL_TRIGGERED, signal=name, subscribers=len(handlers))
        for handler in handlers:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result


class LoggingPipeline:
    """Command pipeline that logs every message and keeps the last ``history``."""

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        self.received: deque[NormalizedMessage] = deque(maxlen=history)

    async def receive(self, message: NormalizedMessage) -> None:
        self.received.append(message)
        log.info(
            LogEventNames.MESSAGE_RECEIVED,
            user_id=message.source_user_id,
            room_id=message.source_room_id,
            command=message.is_command,
            body=message.body,
        )
