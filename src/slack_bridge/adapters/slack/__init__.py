"""Slack Web API client, stream session and adapter facade."""

from .adapter import SlackAdapter
from .api import SlackAdapterError, SlackApi, SlackApiError
from .session import StreamSession

__all__ = [
    "SlackAdapter",
    "SlackAdapterError",
    "SlackApi",
    "SlackApiError",
    "StreamSession",
]
