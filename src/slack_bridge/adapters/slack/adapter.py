"""Slack adapter: negotiation, event stream and outbound messages.

Wires SlackApi, StreamSession and EventClassifier together:

1. Negotiate (Socket Mode or RTM) to learn the stream URL and bot identity
2. Optionally hydrate the directories with the listing calls
3. Read the stream, handling each event before the next one

Outbound helpers delegate to the Web API client.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ...core.classifier import EventClassifier
from ...models.team import SlackChannel, SlackIM, SlackUser, TeamData
from ...utils.logging import LogEventNames
from ..memory import InMemoryRoomDirectory, InMemoryUserDirectory
from .api import SlackAdapterError, SlackApi
from .session import StreamSession

if TYPE_CHECKING:
    from ...config.schema import SlackConfig
    from ...interfaces.directory import RoomDirectory, UserDirectory
    from ...interfaces.pipeline import CommandPipeline, EventBus

log = structlog.get_logger()


class SlackAdapter:
    """Connects a bot to Slack and feeds its events into a pipeline.

    Example:
        adapter = SlackAdapter(config, pipeline=pipeline, bus=bus)
        try:
            await adapter.run()
        finally:
            await adapter.aclose()
    """

    def __init__(
        self,
        config: SlackConfig,
        pipeline: CommandPipeline,
        bus: EventBus,
        users: UserDirectory | None = None,
        rooms: RoomDirectory | None = None,
        api: SlackApi | None = None,
        session_factory: Callable[..., StreamSession] = StreamSession,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Slack-specific configuration
            pipeline: Receiver of normalized messages
            bus: Receiver of signals
            users: User directory (in-memory if omitted)
            rooms: Room directory (in-memory if omitted)
            api: Web API client (built from config if omitted)
            session_factory: Builds the stream session, replaced in tests
            transport: httpx transport for the default client
            timeout: Web API request timeout in seconds
        """
        self._config = config
        self._pipeline = pipeline
        self._bus = bus
        self.users: UserDirectory = users if users is not None else InMemoryUserDirectory()
        self.rooms: RoomDirectory = rooms if rooms is not None else InMemoryRoomDirectory()
        self._api = api or SlackApi(config, transport=transport, timeout=timeout)
        self._session_factory = session_factory
        self._team: TeamData | None = None
        self._session: StreamSession | None = None

    @property
    def api(self) -> SlackApi:
        return self._api

    @property
    def team(self) -> TeamData | None:
        """Negotiation result, None before :meth:`connect`."""
        return self._team

    async def connect(self) -> TeamData:
        """Negotiate the connection.

        Raises:
            SlackApiError: If either handshake call fails
        """
        self._team = await self._api.negotiate()
        return self._team

    def build_classifier(self, session: StreamSession | None = None) -> EventClassifier:
        """Build the classifier for the negotiated identity.

        The presence frame is only sent in Socket Mode, so the session is
        only attached as a frame sender there.
        """
        if self._team is None:
            raise SlackAdapterError("Not connected. Call connect() first.")

        return EventClassifier(
            identity=self._team.identity,
            config=self._config,
            users=self.users,
            rooms=self.rooms,
            pipeline=self._pipeline,
            bus=self._bus,
            frame_sender=session if self._config.socket_mode else None,
        )

    async def run(self, refresh_directories: bool = False) -> None:
        """Negotiate, then process the stream until it closes.

        Args:
            refresh_directories: Load users and channels before streaming
        """
        team = await self.connect()

        if refresh_directories:
            await self.refresh_directories()

        self._session = self._session_factory(
            team.websocket_url,
            socket_mode=self._config.socket_mode,
            proxy=self._config.proxy,
        )
        classifier = self.build_classifier(self._session)

        try:
            await self._session.run(classifier.handle)
        finally:
            self._session = None

    async def refresh_directories(self) -> tuple[int, int]:
        """Upsert every user and channel returned by the listing calls.

        Returns:
            (number of users, number of channels/groups) loaded
        """
        users_data = await self._api.users_list()
        users = SlackUser.from_data_array(_records(users_data.get("members")))
        for user in users:
            self.users.upsert(user)

        channels: list[SlackChannel] = []
        channels_data = await self._api.channels_list()
        channels.extend(SlackChannel.from_data_array(_records(channels_data.get("channels"))))
        groups_data = await self._api.groups_list()
        channels.extend(SlackChannel.from_data_array(_records(groups_data.get("groups"))))
        for channel in channels:
            self.rooms.upsert(channel)

        log.info(
            LogEventNames.DIRECTORY_UPDATED,
            users=len(users),
            rooms=len(channels),
        )
        return len(users), len(channels)

    async def send_messages(self, channel_id: str, messages: Iterable[str]) -> dict[str, Any]:
        return await self._api.send_messages(channel_id, messages)

    async def send_attachments(
        self, channel_id: str, attachments: Sequence[Mapping[str, Any]]
    ) -> dict[str, Any]:
        return await self._api.send_attachments(channel_id, attachments)

    async def set_topic(self, channel_id: str, topic: str) -> dict[str, Any]:
        return await self._api.set_topic(channel_id, topic)

    async def open_im(self, user_id: str) -> SlackIM:
        return await self._api.open_im(user_id)

    async def aclose(self) -> None:
        await self._api.aclose()


def _records(value: Any) -> list[Mapping[str, Any]]:
    """Keep only the mapping entries (with an id) of a listing response."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping) and "id" in item]
