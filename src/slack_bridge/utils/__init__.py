"""Utility functions and helpers.

- logging: Structured logging with Slack token sanitization
- security: Secret redaction
"""

from slack_bridge.utils.logging import (
    LogEventNames,
    LogFormat,
    LogLevel,
    bind_context,
    clear_context,
    configure_logging,
    unbind_context,
)
from slack_bridge.utils.security import (
    RedactionError,
    SecretRedactor,
    SecurityError,
    mask_token,
)

__all__ = [
    # Logging
    "LogEventNames",
    "LogFormat",
    "LogLevel",
    # Security
    "RedactionError",
    "SecretRedactor",
    "SecurityError",
    "bind_context",
    "clear_context",
    "configure_logging",
    "mask_token",
    "unbind_context",
]
