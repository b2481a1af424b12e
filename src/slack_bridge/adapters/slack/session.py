"""Streaming session over the negotiated websocket URL.

Frames are read one at a time and each resulting event is fully handled
before the next frame is read, so side effects happen in stream order.

In Socket Mode events arrive wrapped in envelopes that must be acknowledged
with their ``envelope_id``; RTM frames are the events themselves.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

import structlog
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import WebSocketException

from ...models.event import EventEnvelope
from ...utils.logging import LogEventNames, bind_context, unbind_context
from .api import SlackAdapterError

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

log = structlog.get_logger()

EventHandler = Callable[[EventEnvelope], Awaitable[Any]]

# Socket Mode envelope types
EVENTS_API = "events_api"
DISCONNECT = "disconnect"
HELLO = "hello"


class StreamSession:
    """Reads events from the platform stream and feeds them to a handler.

    Example:
        session = StreamSession(team.websocket_url, socket_mode=True)
        classifier = EventClassifier(..., frame_sender=session)
        await session.run(classifier.handle)
    """

    def __init__(
        self,
        url: str,
        socket_mode: bool,
        proxy: str | None = None,
        connect: Callable[..., Any] = ws_connect,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            url: Websocket URL from negotiation
            socket_mode: Whether frames are Socket Mode envelopes
            proxy: Outbound proxy for the websocket connection
            connect: Websocket connect function, replaced in tests
            logger: Logger, defaults to the module logger
        """
        self._url = url
        self._socket_mode = socket_mode
        self._proxy = proxy
        self._connect = connect
        self._log = logger or log
        self._websocket: Any = None

    @property
    def connected(self) -> bool:
        return self._websocket is not None

    async def send(self, data: dict[str, Any]) -> None:
        """Send a JSON control frame on the open socket.

        Raises:
            SlackAdapterError: If the session is not connected
        """
        if self._websocket is None:
            raise SlackAdapterError("Not connected. Call run() first.")
        await self._websocket.send(json.dumps(data))

    async def run(self, handler: EventHandler) -> None:
        """Connect and process frames until the socket closes or Slack asks
        us to disconnect.

        Args:
            handler: Coroutine called with each event envelope, in order
        """
        options: dict[str, Any] = {}
        if self._proxy is not None:
            options["proxy"] = self._proxy

        try:
            async with self._connect(self._url, **options) as websocket:
                self._websocket = websocket
                try:
                    async for frame in websocket:
                        if not await self._process_frame(frame, handler):
                            break
                finally:
                    self._websocket = None
        except (OSError, WebSocketException) as e:
            self._log.error(LogEventNames.SLACK_CONNECTION_FAILED, error=str(e))
            raise SlackAdapterError(f"Slack stream connection failed: {e}") from e

        self._log.info(LogEventNames.SLACK_DISCONNECTED)

    async def _process_frame(self, frame: str | bytes, handler: EventHandler) -> bool:
        """Handle one raw frame; returns False when the session should end."""
        try:
            payload = json.loads(frame)
        except ValueError:
            self._log.warning(LogEventNames.FRAME_UNDECODABLE, size=len(frame))
            return True

        if not isinstance(payload, Mapping):
            self._log.warning(LogEventNames.FRAME_UNDECODABLE, size=len(frame))
            return True

        if self._socket_mode:
            envelope_id = payload.get("envelope_id")
            if envelope_id:
                await self.send({"envelope_id": envelope_id})

            frame_type = payload.get("type")
            if frame_type == DISCONNECT:
                self._log.info(LogEventNames.SLACK_DISCONNECTED, reason=payload.get("reason"))
                return False
            if frame_type == EVENTS_API:
                inner = payload.get("payload")
                event = inner.get("event") if isinstance(inner, Mapping) else None
                if not isinstance(event, Mapping):
                    return True
                payload = event
            elif frame_type != HELLO:
                self._log.debug(LogEventNames.EVENT_IGNORED, event_type=frame_type)
                return True

        envelope = EventEnvelope.from_payload(payload)
        bind_context(event_type=envelope.type)
        try:
            await handler(envelope)
        except Exception as e:
            # One bad event must not end the stream
            self._log.exception(LogEventNames.EVENT_HANDLER_FAILED, error=str(e))
        finally:
            unbind_context("event_type")
