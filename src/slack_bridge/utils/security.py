"""Secret redaction for Slack credentials.

Bot, user and app-level tokens pass through the Web API client and can end
up in log entries (request params, error bodies, raw event dumps). Everything
that is logged goes through :class:`SecretRedactor` first.

Redaction is fail-closed: a pattern that fails to compile or match raises
:class:`RedactionError` instead of letting the text through.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


class SecretRedactor:
    """Detects and redacts Slack secrets from text.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact("token=xoxb-123-456")

    Attributes:
        patterns: List of compiled regex patterns to detect secrets.
        placeholder: The string to replace secrets with (default: "[REDACTED]").
    """

    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        # Bot, user, workspace and refresh tokens
        (r"xox[baprse]-[\w-]+", "Slack token"),
        # App-level tokens used for Socket Mode
        (r"xapp-[\w-]+", "Slack app token"),
        # Incoming webhooks embed their secret in the path
        (r"https://hooks\.slack\.com/services/[\w/]+", "Slack webhook URL"),
        # Socket Mode websocket URLs carry a ticket query parameter
        (r"(?i)ticket=[\w-]+", "Socket Mode ticket"),
        (r"(?i)bearer\s+[\w.-]{8,}", "Bearer credential"),
        (
            r"(?i)(client[_-]?secret|signing[_-]?secret|password)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._pattern_names: dict[re.Pattern[str], str] = {}

        all_patterns = list(self.DEFAULT_PATTERNS)
        if custom_patterns:
            all_patterns.extend(custom_patterns)

        try:
            for pattern_str, name in all_patterns:
                compiled = re.compile(pattern_str)
                self._pattern_names[compiled] = name
        except re.error as e:
            msg = f"Failed to compile secret pattern '{pattern_str}': {e}"
            log.error("pattern_compilation_failed", pattern=pattern_str, error=str(e))
            raise RedactionError(msg) from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Return the list of compiled patterns."""
        return list(self._pattern_names.keys())

    def redact(self, text: str) -> str:
        """Redact all secrets from the given text.

        Args:
            text: The text to scan and redact secrets from.

        Returns:
            The text with all detected secrets replaced with placeholder.

        Raises:
            RedactionError: If redaction fails for any reason.
        """
        if not text:
            return text

        try:
            result = text
            for pattern in self._pattern_names:
                result = pattern.sub(self.placeholder, result)
            return result
        except Exception as e:
            raise RedactionError(f"Redaction failed: {e}") from e


def mask_token(token: str | None) -> str:
    """Mask a credential for display, keeping its type prefix.

    Args:
        token: Slack token, may be None.

    Returns:
        e.g. ``xoxb-...a1b2`` or ``***`` for short values.
    """
    if not token:
        return "<none>"
    if len(token) > 12:
        prefix = token.split("-", 1)[0]
        return f"{prefix}-...{token[-4:]}"
    return "***"
