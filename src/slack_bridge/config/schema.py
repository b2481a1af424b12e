"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Always dispatched, whatever the configured subtypes are.
DEFAULT_MESSAGE_SUBTYPES: frozenset[str] = frozenset({"me_message"})


class SlackConfig(BaseModel):
    """Slack-specific configuration."""

    token: str
    app_token: str | None = None
    proxy: str | None = None
    api_url: str = "https://slack.com/api"

    # chat.postMessage formatting options, only sent when set
    parse: str | None = None
    link_names: bool | None = None
    unfurl_links: bool | None = None
    unfurl_media: bool | None = None

    supported_message_subtypes: list[str] = []

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate Slack bot/user token format."""
        if not v.startswith("xox"):
            raise ValueError("Token must be a Slack token starting with xox")
        return v

    @field_validator("app_token")
    @classmethod
    def validate_app_token(cls, v: str | None) -> str | None:
        """Validate Slack app-level token format."""
        if v is not None and not v.startswith("xapp-"):
            raise ValueError("App token must start with xapp-")
        return v

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def socket_mode(self) -> bool:
        """Whether the Socket Mode handshake is used instead of rtm.connect."""
        return self.app_token is not None

    @property
    def message_subtypes(self) -> frozenset[str]:
        """Message subtypes that are dispatched to the pipeline."""
        return frozenset(self.supported_message_subtypes) | DEFAULT_MESSAGE_SUBTYPES


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("/var/log/slack-bridge/bridge.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class RuntimeConfig(BaseModel):
    """Runtime configuration."""

    request_timeout: float = Field(
        30.0, gt=0, le=300, description="Web API request timeout in seconds"
    )
    refresh_directories: bool = Field(
        False, description="Load users and channels with the listing calls after connecting"
    )


class BridgeConfig(BaseSettings):
    """Root configuration for slack-bridge."""

    slack: SlackConfig
    logging: LoggingConfig = LoggingConfig()
    runtime: RuntimeConfig = RuntimeConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
    )
