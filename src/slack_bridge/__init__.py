"""Slack event ingestion and normalization for bot-command pipelines."""

from slack_bridge._version import __version__

__all__ = ["__version__"]
