"""Resolution of Slack message markup into plain text.

Slack encodes mentions and links as bracket tokens:

- ``<@U123>`` / ``<@U123|alice>``  user mention
- ``<#C123>`` / ``<#C123|general>`` channel reference
- ``<!channel>``, ``<!here>``       special mention
- ``<http://x.com|label>``           link, optionally labelled

and escapes ``<``, ``>`` and ``&`` as HTML entities. The resolver turns all
of that into what a human would have typed. Directory lookups are read-only.

See https://api.slack.com/reference/surfaces/formatting for the format.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from slack_bridge.interfaces.directory import RoomDirectory, UserDirectory
    from slack_bridge.models.team import BotIdentity

# Only these ``<!...>`` tokens survive resolution; any other resolves to "".
SPECIAL_MENTIONS = frozenset({"channel", "group", "everyone"})

# Applied in this order, after token resolution.
HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
)


class MarkupKind(StrEnum):
    """What a bracket token refers to, keyed by its sigil."""

    USER = "@"
    ROOM = "#"
    SPECIAL = "!"
    LINK = ""


@dataclass(frozen=True)
class MarkupToken:
    """A single ``<sigil?link|label?>`` token found in message text."""

    kind: MarkupKind
    link: str
    label: str | None
    start: int
    end: int


class MarkupResolver:
    """Converts raw Slack text into plain text.

    Example:
        resolver = MarkupResolver(users, rooms)
        resolver.resolve("hi <@U123>, see <#C1|general>")  # "hi @alice, see general"
    """

    TOKEN_PATTERN = re.compile(
        r"""
        <                      # opening angle bracket
        (?P<sigil>[@\#!])?     # token kind
        (?P<link>[^>|]+)       # link body
        (?:\|                  # optional |label
            (?P<label>[^>]+)
        )?
        >                      # closing angle bracket
        """,
        re.IGNORECASE | re.VERBOSE,
    )
    MAILTO_PREFIX = re.compile(r"^mailto:")

    def __init__(self, users: UserDirectory, rooms: RoomDirectory) -> None:
        self._users = users
        self._rooms = rooms

    @classmethod
    def tokenize(cls, text: str) -> Iterator[MarkupToken]:
        """Yield every bracket token in ``text`` in order of appearance."""
        for match in cls.TOKEN_PATTERN.finditer(text):
            yield MarkupToken(
                kind=MarkupKind(match.group("sigil") or ""),
                link=match.group("link"),
                label=match.group("label"),
                start=match.start(),
                end=match.end(),
            )

    def render(self, token: MarkupToken) -> str:
        """Render a single token as plain text.

        Args:
            token: Token produced by :meth:`tokenize`.

        Returns:
            Replacement text; empty for special mentions outside the allowed set.
        """
        link, label = token.link, token.label

        if token.kind is MarkupKind.USER:
            if label:
                return label
            user = self._users.find_by_id(link)
            return f"@{user.mention_name}" if user else f"@{link}"

        if token.kind is MarkupKind.ROOM:
            if label:
                return label
            room = self._rooms.find_by_id(link)
            return f"#{room.name}" if room else f"#{link}"

        if token.kind is MarkupKind.SPECIAL:
            return f"@{link}" if link in SPECIAL_MENTIONS else ""

        link = self.MAILTO_PREFIX.sub("", link)
        if label and label not in link:
            return f"{label} ({link})"
        return link if label is None else label

    def resolve(self, raw_text: str) -> str:
        """Resolve all tokens, then unescape HTML entities.

        Args:
            raw_text: Message text as delivered by Slack.

        Returns:
            Plain text. Text without tokens only has its entities unescaped.
        """
        parts: list[str] = []
        position = 0
        for token in self.tokenize(raw_text):
            parts.append(raw_text[position : token.start])
            parts.append(self.render(token))
            position = token.end
        parts.append(raw_text[position:])

        return unescape_entities("".join(parts))

    def normalize_body(
        self,
        text: str | None,
        attachments: Sequence[Mapping[str, Any]] | None = None,
        identity: BotIdentity | None = None,
    ) -> str:
        """Build the full message body from text and attachments.

        Mentions of the bot's own id are rewritten to its mention name before
        resolution. Each attachment contributes its ``text``, or its
        ``fallback`` when there is no ``text``, on a line of its own.

        Args:
            text: Raw message text, may be None.
            attachments: Raw attachment records.
            identity: The bot's identity, if known.

        Returns:
            Lines joined with newlines.
        """
        lines: list[str] = []

        if text is not None:
            if identity is not None and identity.mention_name:
                text = text.replace(f"<@{identity.id}>", f"@{identity.mention_name}")
            lines.append(self.resolve(text))

        for attachment in attachments or ():
            if not isinstance(attachment, Mapping):
                continue
            summary = attachment.get("text")
            if summary is None:
                summary = attachment.get("fallback")
            if summary is not None:
                lines.append(str(summary))

        return "\n".join(lines)


def unescape_entities(text: str) -> str:
    """Unescape ``&lt;``, ``&gt;`` and ``&amp;`` (in that order)."""
    for entity, char in HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def resolve(raw_text: str, users: UserDirectory, rooms: RoomDirectory) -> str:
    """Shorthand for ``MarkupResolver(users, rooms).resolve(raw_text)``."""
    return MarkupResolver(users, rooms).resolve(raw_text)
