"""Detection of messages addressed to the bot.

People address a bot in three ways: Slack's auto-linked mention
(``<@U123>``), a typed ``@name`` and the bare name ("lita, do this").
Each is checked in that order and the first hit wins.
"""

from __future__ import annotations

import re
from enum import StrEnum

import structlog
from structlog.typing import FilteringBoundLogger

from slack_bridge.utils.logging import LogEventNames

log = structlog.get_logger()


class MentionStrategy(StrEnum):
    """Which check matched."""

    PLATFORM_TOKEN = "platform_token"
    AT_NAME = "at_name"
    BARE_NAME = "bare_name"


def match_mention(
    raw_text: str | None,
    bot_id: str,
    bot_mention_name: str | None,
) -> MentionStrategy | None:
    """Return the first strategy that finds the bot addressed, or None.

    Args:
        raw_text: Message text before markup resolution.
        bot_id: The bot's Slack user id.
        bot_mention_name: The bot's mention name; without it only the
            platform token is checked.
    """
    if not isinstance(raw_text, str) or not raw_text:
        return None

    if f"<@{bot_id}>" in raw_text:
        return MentionStrategy.PLATFORM_TOKEN

    if not bot_mention_name:
        return None

    mention_name = bot_mention_name.lower()
    if f"@{mention_name}" in raw_text.lower():
        return MentionStrategy.AT_NAME

    if re.search(rf"\b{re.escape(mention_name)}\b", raw_text, re.IGNORECASE):
        return MentionStrategy.BARE_NAME

    return None


def is_addressed(
    raw_text: str | None,
    bot_id: str,
    bot_mention_name: str | None,
    logger: FilteringBoundLogger | None = None,
) -> bool:
    """Decide whether a message is addressed to the bot.

    Args:
        raw_text: Message text before markup resolution.
        bot_id: The bot's Slack user id.
        bot_mention_name: The bot's mention name.
        logger: Logger to report the match on (module logger by default).

    Returns:
        True if any mention strategy matches.
    """
    strategy = match_mention(raw_text, bot_id, bot_mention_name)
    if strategy is None:
        return False

    (logger or log).debug(LogEventNames.MENTION_DETECTED, strategy=strategy.value, bot_id=bot_id)
    return True
