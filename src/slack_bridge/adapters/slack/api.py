"""Slack Web API client and connection negotiation.

All calls are form-encoded POSTs to ``<api_url>/<method>``. The bot token
is sent as a ``token`` body field, except for ``apps.connections.open``
with an app-level token, which goes in an ``Authorization: Bearer`` header
and sends no body at all.

Failures are raised as a single SlackApiError and are never retried.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from ...models.team import BotIdentity, SlackIM, SlackUser, TeamData
from ...utils.logging import LogEventNames
from ...utils.security import mask_token

if TYPE_CHECKING:
    from types import TracebackType

    from structlog.typing import FilteringBoundLogger

    from ...config.schema import SlackConfig

log = structlog.get_logger()

APPS_CONNECTIONS_OPEN = "apps.connections.open"
AUTH_TEST = "auth.test"
RTM_CONNECT = "rtm.connect"

MISSING_SCOPE = "missing_scope"


class SlackAdapterError(Exception):
    """Base exception for Slack adapter errors."""


class SlackApiError(SlackAdapterError):
    """A Web API call failed.

    Attributes:
        method: API method that was called
        code: Slack error code, or ``http_error`` / ``transport_error`` /
            ``invalid_response`` for failures below the API level
        message: Description of the failure
        remediation: Hint on how to fix it, if one is known
        status: HTTP status for ``http_error`` failures
    """

    def __init__(
        self,
        method: str,
        code: str,
        message: str,
        remediation: str | None = None,
        status: int | None = None,
    ) -> None:
        self.method = method
        self.code = code
        self.message = message
        self.remediation = remediation
        self.status = status
        super().__init__(self.description)

    @property
    def description(self) -> str:
        if self.remediation:
            return f"{self.message} {self.remediation}"
        return self.message


def missing_scope_remediation(method: str, needed: str | None) -> str:
    """Hint for a ``missing_scope`` error, naming the scope when Slack does."""
    if needed:
        return (
            f"Required scope: {needed}. Please add this scope in your Slack app's "
            "OAuth & Permissions settings and reinstall the app."
        )
    return (
        f"For {method}, you likely need the 'chat:write' scope. Please add it in your "
        "Slack app's OAuth & Permissions settings and reinstall the app."
    )


class SlackApi:
    """Authenticated client for the Slack Web API.

    Example:
        async with SlackApi(config) as api:
            team = await api.negotiate()
            await api.send_messages("C123", ["hello"])
    """

    def __init__(
        self,
        config: SlackConfig,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Slack configuration (tokens, proxy, postMessage options)
            transport: httpx transport override, used in tests
            timeout: Request timeout in seconds
            logger: Logger, defaults to the module logger
        """
        self._config = config
        self._log = logger or log

        client_options: dict[str, Any] = {"timeout": timeout}
        if transport is not None:
            client_options["transport"] = transport
        elif config.proxy is not None:
            client_options["proxy"] = config.proxy
        self._client = httpx.AsyncClient(**client_options)

        self._post_message_config: dict[str, Any] = {}
        if config.parse is not None:
            self._post_message_config["parse"] = config.parse
        if config.link_names is not None:
            self._post_message_config["link_names"] = 1 if config.link_names else 0
        if config.unfurl_links is not None:
            self._post_message_config["unfurl_links"] = config.unfurl_links
        if config.unfurl_media is not None:
            self._post_message_config["unfurl_media"] = config.unfurl_media

    @property
    def post_message_config(self) -> dict[str, Any]:
        return dict(self._post_message_config)

    async def __aenter__(self) -> SlackApi:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(
        self,
        method: str,
        params: Mapping[str, Any] | None = None,
        token_override: str | None = None,
    ) -> dict[str, Any]:
        """Call a Web API method.

        Args:
            method: API method name, e.g. "chat.postMessage"
            params: Form parameters
            token_override: Token to use instead of the configured bot token

        Returns:
            The decoded response

        Raises:
            SlackApiError: On transport failure, non-2xx status, an
                undecodable body, or an ``error`` in the response
        """
        token = token_override or self._config.token
        url = f"{self._config.api_url}/{method}"

        self._log.debug(LogEventNames.API_CALL, method=method)

        try:
            if method == APPS_CONNECTIONS_OPEN and token_override:
                response = await self._client.post(
                    url, headers={"Authorization": f"Bearer {token}"}
                )
            else:
                data = {"token": token, **(params or {})}
                response = await self._client.post(
                    url, data={k: v for k, v in data.items() if v is not None}
                )
        except httpx.HTTPError as e:
            self._log.error(LogEventNames.API_ERROR, method=method, error=str(e))
            raise SlackApiError(
                method, "transport_error", f"Slack API call to {method} failed: {e}"
            ) from e

        data = self._parse_response(response, method)

        error = data.get("error")
        if error:
            remediation = None
            if error == MISSING_SCOPE:
                remediation = missing_scope_remediation(method, data.get("needed"))
            self._log.error(LogEventNames.API_ERROR, method=method, code=error)
            raise SlackApiError(
                method,
                str(error),
                f"Slack API call to {method} returned an error: {error}.",
                remediation=remediation,
            )

        return data

    def _parse_response(self, response: httpx.Response, method: str) -> dict[str, Any]:
        if not response.is_success:
            self._log.error(LogEventNames.API_ERROR, method=method, status=response.status_code)
            raise SlackApiError(
                method,
                "http_error",
                f"Slack API call to {method} failed with status code "
                f"{response.status_code}: '{response.text}'",
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SlackApiError(
                method, "invalid_response", f"Slack API call to {method} returned invalid JSON"
            ) from e

        if not isinstance(data, dict):
            raise SlackApiError(
                method, "invalid_response", f"Slack API call to {method} returned a non-object"
            )
        return data

    async def negotiate(self) -> TeamData:
        """Perform the startup handshake.

        With an app-level token this opens a Socket Mode connection and asks
        ``auth.test`` who the bot is; otherwise it uses ``rtm.connect``,
        whose response embeds the bot's identity.

        Returns:
            TeamData with the stream URL and the bot identity; IM, user and
            channel lists are empty.

        Raises:
            SlackApiError: If any sub-call fails or its response lacks the
                expected fields
        """
        if self._config.app_token:
            self._log.info(
                LogEventNames.NEGOTIATION_START,
                mode="socket",
                token=mask_token(self._config.app_token),
            )
            socket_response = await self.call(APPS_CONNECTIONS_OPEN, {}, self._config.app_token)
            try:
                url = socket_response["url"]
            except KeyError as e:
                raise SlackApiError(
                    APPS_CONNECTIONS_OPEN,
                    "invalid_response",
                    f"apps.connections.open response missing field {e}",
                ) from e

            bot_info = await self.call(AUTH_TEST)
            try:
                self_user = SlackUser.from_data(
                    {
                        "id": bot_info["user_id"],
                        "name": bot_info["user"],
                        "real_name": bot_info["user"],
                    }
                )
            except KeyError as e:
                raise SlackApiError(
                    AUTH_TEST, "invalid_response", f"auth.test response missing field {e}"
                ) from e
        else:
            self._log.info(
                LogEventNames.NEGOTIATION_START, mode="rtm", token=mask_token(self._config.token)
            )
            response_data = await self.call(RTM_CONNECT)

            try:
                self_user = SlackUser.from_data(response_data["self"])
                url = response_data["url"]
            except KeyError as e:
                raise SlackApiError(
                    RTM_CONNECT, "invalid_response", f"rtm.connect response missing field {e}"
                ) from e

        identity = BotIdentity.from_user(self_user)
        self._log.info(
            LogEventNames.NEGOTIATION_COMPLETE,
            bot_id=identity.id,
            mention_name=identity.mention_name,
        )

        return TeamData(
            ims=[],
            identity=identity,
            users=[],
            channels=[],
            websocket_url=url,
        )

    async def open_im(self, user_id: str) -> SlackIM:
        """Open (or reuse) a direct-message channel with a user."""
        response_data = await self.call("conversations.open", {"users": user_id})
        return SlackIM(id=response_data["channel"]["id"], user_id=user_id)

    async def channels_info(self, channel_id: str) -> dict[str, Any]:
        return await self.call("channels.info", {"channel": channel_id})

    async def channels_list(self) -> dict[str, Any]:
        return await self.call("channels.list")

    async def groups_list(self) -> dict[str, Any]:
        return await self.call("groups.list")

    async def mpim_list(self) -> dict[str, Any]:
        return await self.call("mpim.list")

    async def im_list(self) -> dict[str, Any]:
        return await self.call("im.list")

    async def users_list(self) -> dict[str, Any]:
        return await self.call("users.list")

    async def send_attachments(
        self,
        channel_id: str,
        attachments: Sequence[Mapping[str, Any]],
    ) -> dict[str, Any]:
        """Post a message made of attachments.

        Args:
            channel_id: Target channel or IM id
            attachments: Attachment objects, sent JSON-encoded
        """
        return await self.call(
            "chat.postMessage",
            {
                "channel": channel_id,
                "attachments": json.dumps([dict(a) for a in attachments]),
            },
        )

    async def send_messages(self, channel_id: str, messages: Iterable[str]) -> dict[str, Any]:
        """Post plain-text lines as one message.

        The configured ``parse``, ``link_names``, ``unfurl_links`` and
        ``unfurl_media`` options are included.

        Args:
            channel_id: Target channel or IM id
            messages: Lines, joined with newlines
        """
        return await self.call(
            "chat.postMessage",
            {
                **self._post_message_config,
                "channel": channel_id,
                "text": "\n".join(messages),
            },
        )

    async def set_topic(self, channel_id: str, topic: str) -> dict[str, Any]:
        return await self.call("channels.setTopic", {"channel": channel_id, "topic": topic})
