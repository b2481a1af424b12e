"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path
from urllib.parse import urlparse

import yaml

from .schema import BridgeConfig

ALLOWED_PROXY_SCHEMES = frozenset({"http", "https", "socks5", "socks5h"})


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ValueError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ValueError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path) -> BridgeConfig:
    """
    Load configuration from YAML file with environment variable substitution.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated BridgeConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If environment variables are missing or config is invalid
        ValidationError: If config doesn't match schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    yaml_with_env = substitute_env_vars(raw_yaml)
    config_dict = yaml.safe_load(yaml_with_env)

    config = BridgeConfig.model_validate(config_dict)

    validate_config(config)

    return config


def validate_config(config: BridgeConfig) -> None:
    """
    Perform additional cross-field validation.

    Args:
        config: Configuration to validate

    Raises:
        ValueError: If the proxy or API URL is unusable
    """
    if config.slack.proxy is not None:
        scheme = urlparse(config.slack.proxy).scheme
        if scheme not in ALLOWED_PROXY_SCHEMES:
            raise ValueError(f"Unsupported proxy scheme: {scheme or '<none>'}")

    if urlparse(config.slack.api_url).scheme not in {"http", "https"}:
        raise ValueError(f"Invalid Slack API URL: {config.slack.api_url}")
