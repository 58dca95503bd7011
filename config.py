"""Configuration management for TubeGate."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_UPSTREAM_URL = "https://api.xhamster01.com"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in strings, dicts, and lists.

    Supports both ${VAR} and $VAR patterns.
    """
    if isinstance(value, str):
        # Expand ${VAR} pattern
        pattern = re.compile(r'\$\{([^}]+)\}')
        result = pattern.sub(lambda m: os.environ.get(m.group(1), ''), value)
        # Expand $VAR pattern
        pattern = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')
        result = pattern.sub(lambda m: os.environ.get(m.group(1), ''), result)
        return result
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class WebConfig:
    """Web server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    static_dir: str = ""  # built client bundle; empty = API only


@dataclass
class UpstreamConfig:
    """Third-party movies API configuration."""
    base_url: str = DEFAULT_UPSTREAM_URL
    user_agent: str = DEFAULT_USER_AGENT
    default_country: str = "US"
    default_limit: int = 30
    timeout: float = 0  # seconds; 0 = wait indefinitely
    rate_limit: str = "60/minute"  # per client IP, listing + detail routes


@dataclass
class AdSlotConfig:
    """One third-party ad unit."""
    name: str
    key: str
    format: str = "iframe"
    width: int = 300
    height: int = 250
    host: str = "exasperatebubblyorthodox.com"


def default_ad_slots() -> list[AdSlotConfig]:
    return [
        AdSlotConfig(name="banner", key="b3a4498413dba25bcd98e67937ca5a54", width=320, height=50),
        AdSlotConfig(name="banner-second", key="b20ef2ef6f0541688d5eda910b8f2d5f", width=300, height=250),
        AdSlotConfig(name="popup", key="7861111bc12e3b9ce55bb7d65fc81f75", width=300, height=600),
    ]


@dataclass
class Config:
    """Main configuration container."""
    web: WebConfig = field(default_factory=WebConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    ads: list[AdSlotConfig] = field(default_factory=default_ad_slots)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from YAML file with environment variable expansion."""
        path = Path(path)
        with open(path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        # Expand environment variables
        expanded_config = expand_env_vars(raw_config)

        web_data = expanded_config.get("web") or {}
        upstream_data = expanded_config.get("upstream") or {}
        ads_data = expanded_config.get("ads") or []

        ads = [AdSlotConfig(**slot) for slot in ads_data] if ads_data else default_ad_slots()
        return cls(
            web=WebConfig(**web_data),
            upstream=UpstreamConfig(**upstream_data),
            ads=ads,
        )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration directly from environment variables."""
        return cls(
            web=WebConfig(
                host=os.environ.get("TUBE_WEB_HOST", "0.0.0.0"),
                port=int(os.environ.get("TUBE_WEB_PORT", "8080")),
                static_dir=os.environ.get("TUBE_STATIC_DIR", ""),
            ),
            upstream=UpstreamConfig(
                base_url=os.environ.get("TUBE_UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
                user_agent=os.environ.get("TUBE_USER_AGENT", DEFAULT_USER_AGENT),
                default_country=os.environ.get("TUBE_DEFAULT_COUNTRY", "US"),
                default_limit=int(os.environ.get("TUBE_DEFAULT_LIMIT", "30")),
                timeout=float(os.environ.get("TUBE_UPSTREAM_TIMEOUT", "0")),
                rate_limit=os.environ.get("TUBE_RATE_LIMIT", "60/minute"),
            ),
        )


def load_config(config_path: str | None = None) -> Config:
    """Load configuration from file or environment.

    Tries in order:
    1. Provided config_path
    2. Default paths: config.yaml, config.yml
    3. Environment variables (fallback)
    """
    config: Config | None = None

    if config_path:
        path = Path(config_path)
        if path.exists():
            config = Config.from_yaml(path)
        else:
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        # Try default paths
        for default_path in ["config.yaml", "config.yml"]:
            path = Path(default_path)
            if path.exists():
                config = Config.from_yaml(path)
                break

    if config is None:
        # Fallback to environment variables
        config = Config.from_env()

    base_url = config.upstream.base_url
    if not base_url.startswith(("http://", "https://")):
        logger.warning("upstream.base_url %r is not an http(s) URL, upstream calls will fail", base_url)

    limit = config.upstream.default_limit
    if not 1 <= limit <= 100:
        logger.warning("upstream.default_limit %r out of range 1..100, falling back to 30", limit)
        config.upstream.default_limit = 30

    return config
