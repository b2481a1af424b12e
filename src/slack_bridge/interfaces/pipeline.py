"""Interfaces for the downstream consumers of normalized events."""

from typing import Any, Protocol

from ..models.message import NormalizedMessage


class CommandPipeline(Protocol):
    """
    The bot-command pipeline that receives normalized messages.

    Delivery is fire-and-forget: the bridge does not inspect the outcome.
    """

    async def receive(self, message: NormalizedMessage) -> None:
        """
        Accept a normalized message for routing to command/chat handlers.

        Args:
            message: The normalized message
        """
        ...


class EventBus(Protocol):
    """
    Signal bus for non-message events (``connected``, reactions).
    """

    async def trigger(self, name: str, payload: dict[str, Any] | None = None) -> None:
        """
        Emit a named signal.

        Args:
            name: Signal name, e.g. "slack_reaction_added"
            payload: Signal payload, if any
        """
        ...


class FrameSender(Protocol):
    """
    Outbound side of the streaming socket, used for control frames.
    """

    async def send(self, data: dict[str, Any]) -> None:
        """
        Serialize and send a control frame.

        Args:
            data: JSON-serializable frame
        """
        ...
