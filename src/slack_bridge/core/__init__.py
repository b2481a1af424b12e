"""Core event-normalization components.

- MarkupResolver: Slack markup to plain text
- is_addressed: Detects messages addressed to the bot
- MessageDispatcher: Builds and forwards normalized messages
- EventClassifier: Routes inbound events to their handlers
"""

from slack_bridge.core.classifier import EventAction, EventClassifier
from slack_bridge.core.dispatcher import MessageDispatcher
from slack_bridge.core.markup import MarkupKind, MarkupResolver, MarkupToken, resolve
from slack_bridge.core.mention import MentionStrategy, is_addressed, match_mention

__all__ = [
    "EventAction",
    "EventClassifier",
    "MarkupKind",
    "MarkupResolver",
    "MarkupToken",
    "MentionStrategy",
    "MessageDispatcher",
    "is_addressed",
    "match_mention",
    "resolve",
]
