"""Tests for SlackAdapter wiring."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from slack_bridge.adapters.memory import (
    InMemoryEventBus,
    InMemoryRoomDirectory,
    InMemoryUserDirectory,
    LoggingPipeline,
)
from slack_bridge.adapters.slack.adapter import SlackAdapter
from slack_bridge.adapters.slack.api import SlackAdapterError, SlackApi, SlackApiError
from slack_bridge.config.schema import SlackConfig
from slack_bridge.models.event import EventEnvelope
from slack_bridge.models.team import BotIdentity, SlackIM, TeamData


@pytest.fixture
def team() -> TeamData:
    return TeamData(
        ims=[],
        identity=BotIdentity(id="UBOT1", mention_name="lita"),
        users=[],
        channels=[],
        websocket_url="wss://example/ws",
    )


@pytest.fixture
def mock_api(team: TeamData) -> MagicMock:
    """Create a mock Web API client."""
    api = MagicMock(spec=SlackApi)
    api.negotiate = AsyncMock(return_value=team)
    api.users_list = AsyncMock(
        return_value={"members": [{"id": "U1", "name": "alice"}, {"id": "U2", "name": "bob"}]}
    )
    api.channels_list = AsyncMock(return_value={"channels": [{"id": "C1", "name": "general"}]})
    api.groups_list = AsyncMock(return_value={"groups": [{"id": "G1", "name": "secret"}, "junk"]})
    api.aclose = AsyncMock()
    return api


class FakeSession:
    """Session that replays envelopes through the handler."""

    instances: list[FakeSession] = []

    def __init__(self, url: str, socket_mode: bool, proxy: str | None = None) -> None:
        self.url = url
        self.socket_mode = socket_mode
        self.proxy = proxy
        self.payloads: list[dict[str, Any]] = [
            {"type": "hello"},
            {"type": "message", "channel": "C1", "user": "U1", "text": "hi", "ts": "1.0"},
        ]
        self.sent: list[dict[str, Any]] = []
        FakeSession.instances.append(self)

    async def send(self, data: dict[str, Any]) -> None:
        self.sent.append(data)

    async def run(self, handler: Any) -> None:
        for payload in self.payloads:
            await handler(EventEnvelope.from_payload(payload))


@pytest.fixture(autouse=True)
def reset_sessions() -> None:
    FakeSession.instances.clear()


def make_adapter(config: SlackConfig, api: MagicMock) -> tuple[SlackAdapter, LoggingPipeline]:
    pipeline = LoggingPipeline()
    adapter = SlackAdapter(
        config,
        pipeline=pipeline,
        bus=InMemoryEventBus(),
        api=api,
        session_factory=FakeSession,
    )
    return adapter, pipeline


class TestRun:
    """Test the connect-and-stream loop."""

    async def test_run_rtm(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        adapter, pipeline = make_adapter(slack_config, mock_api)

        await adapter.run()

        (session,) = FakeSession.instances
        assert session.url == "wss://example/ws"
        assert session.socket_mode is False
        assert session.sent == []
        assert [m.body for m in pipeline.received] == ["hi"]
        mock_api.users_list.assert_not_awaited()

    async def test_run_socket_mode_sends_presence(
        self, socket_config: SlackConfig, mock_api: MagicMock
    ) -> None:
        adapter, _ = make_adapter(socket_config, mock_api)

        await adapter.run()

        (session,) = FakeSession.instances
        assert session.socket_mode is True
        assert session.sent == [{"type": "presence_sub", "presence": "active"}]

    async def test_run_with_refresh(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        adapter, pipeline = make_adapter(slack_config, mock_api)

        await adapter.run(refresh_directories=True)

        assert adapter.users.find_by_id("U2") is not None
        assert pipeline.received[0].room is not None
        assert pipeline.received[0].room.name == "general"

    async def test_negotiation_failure_aborts(
        self, slack_config: SlackConfig, mock_api: MagicMock
    ) -> None:
        mock_api.negotiate.side_effect = SlackApiError("rtm.connect", "invalid_auth", "bad")
        adapter, _ = make_adapter(slack_config, mock_api)

        with pytest.raises(SlackApiError):
            await adapter.run()

        assert FakeSession.instances == []
        assert adapter.team is None


class TestDirectories:
    """Test directory hydration."""

    async def test_refresh_counts(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        adapter, _ = make_adapter(slack_config, mock_api)

        assert await adapter.refresh_directories() == (2, 2)
        assert isinstance(adapter.users, InMemoryUserDirectory)
        assert isinstance(adapter.rooms, InMemoryRoomDirectory)
        room = adapter.rooms.find_by_id("G1")
        assert room is not None
        assert room.name == "secret"

    async def test_refresh_tolerates_missing_lists(
        self, slack_config: SlackConfig, mock_api: MagicMock
    ) -> None:
        mock_api.users_list.return_value = {"ok": True}
        mock_api.channels_list.return_value = {"channels": None}
        mock_api.groups_list.return_value = {}
        adapter, _ = make_adapter(slack_config, mock_api)

        assert await adapter.refresh_directories() == (0, 0)


class TestBuildClassifier:
    """Test classifier construction."""

    def test_requires_connection(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        adapter, _ = make_adapter(slack_config, mock_api)
        with pytest.raises(SlackAdapterError, match="Not connected"):
            adapter.build_classifier()

    async def test_connect_stores_team(
        self, slack_config: SlackConfig, mock_api: MagicMock, team: TeamData
    ) -> None:
        adapter, _ = make_adapter(slack_config, mock_api)

        assert await adapter.connect() is team
        assert adapter.team is team
        assert adapter.build_classifier() is not None


class TestOutbound:
    """Test delegation of outbound calls."""

    async def test_send_messages(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        mock_api.send_messages = AsyncMock(return_value={"ok": True})
        adapter, _ = make_adapter(slack_config, mock_api)

        await adapter.send_messages("C1", ["a", "b"])

        mock_api.send_messages.assert_awaited_once_with("C1", ["a", "b"])

    async def test_open_im(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        mock_api.open_im = AsyncMock(return_value=SlackIM(id="D1", user_id="U1"))
        adapter, _ = make_adapter(slack_config, mock_api)

        im = await adapter.open_im("U1")

        assert im.id == "D1"

    async def test_aclose(self, slack_config: SlackConfig, mock_api: MagicMock) -> None:
        adapter, _ = make_adapter(slack_config, mock_api)
        await adapter.aclose()
        mock_api.aclose.assert_awaited_once()
