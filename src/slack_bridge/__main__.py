"""Entry point for running slack-bridge.

This module provides the main entry point. It handles:
- Configuration loading
- Logging setup with token sanitization
- Adapter instantiation with in-memory collaborators
- Running the event stream until it closes or is interrupted
"""

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from slack_bridge._version import __version__

log = structlog.get_logger()


def setup_logging(debug: bool = False, log_format: str = "console") -> None:
    """Configure structured logging with token sanitization.

    Args:
        debug: Enable debug logging if True
        log_format: Output format ("json" or "console")
    """
    from slack_bridge.utils.logging import LogFormat, LogLevel, configure_logging

    level = LogLevel.DEBUG if debug else LogLevel.INFO
    configure_logging(level=level, log_format=LogFormat(log_format.lower()))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument namespace
    """
    parser = argparse.ArgumentParser(
        prog="slack-bridge",
        description="slack-bridge - Normalize Slack events for a bot-command pipeline",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config/config.yaml"),
        help="Path to configuration file (default: config/config.yaml)",
    )

    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse config and validate without connecting",
    )

    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="console",
        help="Log output format (default: console)",
    )

    return parser.parse_args(argv)


async def run_bridge(config_path: Path, dry_run: bool = False, debug: bool = False) -> int:
    """Run the bridge.

    Args:
        config_path: Path to configuration file
        dry_run: If True, only validate config without connecting
        debug: Keep debug logging even if the config says otherwise

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    from pydantic import ValidationError

    from slack_bridge.adapters.slack.api import SlackAdapterError
    from slack_bridge.utils.logging import LogEventNames

    log.info(LogEventNames.BRIDGE_STARTING, version=__version__, config_path=str(config_path))

    try:
        from slack_bridge.config.loader import load_config

        config = load_config(config_path)
        log.info("configuration_loaded", socket_mode=config.slack.socket_mode)

        from slack_bridge.utils.logging import configure_logging

        configure_logging(
            level="DEBUG" if debug else config.logging.level,
            log_format=config.logging.format,
            file_path=config.logging.file.path if config.logging.file.enabled else None,
            file_enabled=config.logging.file.enabled,
        )

        if dry_run:
            log.info("dry_run_mode_config_valid")
            return 0

        from slack_bridge.adapters.memory import InMemoryEventBus, LoggingPipeline
        from slack_bridge.adapters.slack.adapter import SlackAdapter

        adapter = SlackAdapter(
            config.slack,
            pipeline=LoggingPipeline(),
            bus=InMemoryEventBus(),
            timeout=config.runtime.request_timeout,
        )
        try:
            await adapter.run(refresh_directories=config.runtime.refresh_directories)
        finally:
            await adapter.aclose()

        log.info(LogEventNames.BRIDGE_STOPPED)
        return 0

    except FileNotFoundError as e:
        log.error("configuration_file_not_found", path=str(config_path), error=str(e))
        return 1
    except (ValueError, ValidationError) as e:
        log.error("configuration_invalid", error=str(e))
        return 1
    except SlackAdapterError as e:
        log.error("slack_session_failed", error=str(e))
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_format=args.format)

    try:
        return asyncio.run(run_bridge(args.config, dry_run=args.dry_run, debug=args.debug))
    except KeyboardInterrupt:
        log.info("shutting_down_gracefully")
        return 0


if __name__ == "__main__":
    sys.exit(main())
