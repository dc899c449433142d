"""Apollo configuration: loads from apollo.yaml + environment."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SCAN_PROMPT = (
    "Autonomous scheduled scan: Check all production services for anomalies in the last 3 hours. "
    "If anything looks abnormal, run the full investigation protocol and take all actions. "
    "If everything is healthy, just report that all systems are normal."
)


def _load_yaml_config() -> dict[str, Any]:
    """Load apollo.yaml from APOLLO_CONFIG_PATH or default locations."""
    config_path = os.getenv("APOLLO_CONFIG_PATH")
    search_paths = (
        [Path(config_path)]
        if config_path
        else [
            Path("/etc/apollo/apollo.yaml"),
            Path("apollo.yaml"),
        ]
    )
    for path in search_paths:
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}
    return {}


class ElasticConfig(BaseSettings):
    """Elasticsearch + Kibana (Agent Builder) connection."""

    url: str = Field(default="", description="Elasticsearch base URL")
    api_key: str = Field(default="", description="Elastic API key (used for ES and Kibana)")
    kibana_url: str = Field(default="", description="Kibana base URL, also used for deep links")
    agent_id: str = Field(default="apollo", description="Agent Builder agent id")
    converse_timeout_s: float = Field(default=180.0, gt=0)
    query_timeout_s: float = Field(default=30.0, gt=0)
    incidents_data_view_id: str = "7e8a9953-7396-4d10-986a-e3ce749874fe"

    model_config = SettingsConfigDict(env_prefix="APOLLO_ELASTIC_")

    @field_validator("url", "kibana_url", mode="after")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def store_configured(self) -> bool:
        return bool(self.url and self.api_key)

    @property
    def kibana_configured(self) -> bool:
        return bool(self.kibana_url and self.api_key)


class TelegramChannelConfig(BaseSettings):
    """Telegram bot configuration (long-poll channel + alert target)."""

    enabled: bool = True
    bot_token: str = Field(default="", description="Telegram bot token")
    chat_id: str = Field(default="", description="Chat that receives alerts and scan reports")
    api_base: str = "https://api.telegram.org"

    poll_timeout_s: int = Field(default=30, ge=1, le=60)
    poll_interval_s: float = Field(default=1.0, ge=0.0, le=30.0)
    max_message_chars: int = Field(default=4000, ge=200, le=4096)

    model_config = SettingsConfigDict(env_prefix="APOLLO_TELEGRAM_")

    @property
    def bot_configured(self) -> bool:
        return bool(self.bot_token.strip())


class SlackChannelConfig(BaseSettings):
    """Slack Socket Mode bot + incoming webhook configuration."""

    enabled: bool = True
    bot_token: str = Field(default="", description="xoxb- bot token")
    app_token: str = Field(default="", description="xapp- app-level token for Socket Mode")
    webhook_url: str = Field(default="", description="Incoming webhook for notifications")
    max_message_chars: int = Field(default=3000, ge=200, le=4000)

    model_config = SettingsConfigDict(env_prefix="APOLLO_SLACK_")

    @property
    def bot_configured(self) -> bool:
        return bool(self.bot_token.strip() and self.app_token.strip())


class GitHubConfig(BaseSettings):
    """GitHub issue tracker configuration."""

    token: str = ""
    repo: str = Field(default="", description="owner/name, e.g. acme/shop")
    api_base: str = "https://api.github.com"

    model_config = SettingsConfigDict(env_prefix="APOLLO_GITHUB_")

    @property
    def configured(self) -> bool:
        return bool(self.token.strip() and self.repo.strip())


class TicketingConfig(BaseSettings):
    """Base URLs used for synthesized Jira / PagerDuty references."""

    jira_base_url: str = "https://yourcompany.atlassian.net"
    pagerduty_base_url: str = "https://yourcompany.pagerduty.com"

    model_config = SettingsConfigDict(env_prefix="APOLLO_TICKETING_")


class ScanConfig(BaseSettings):
    """Scheduled autonomous scan configuration."""

    enabled: bool = True
    interval_s: float = Field(default=10_800.0, gt=0, description="Seconds between scans")
    initial_delay_s: float = Field(default=30.0, ge=0, description="Delay before the first scan")
    prompt: str = DEFAULT_SCAN_PROMPT

    model_config = SettingsConfigDict(env_prefix="APOLLO_SCAN_")


class ApolloConfig(BaseSettings):
    """Root Apollo gateway configuration."""

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=3001, description="Server bind port")

    # Auth
    api_key: str = Field(default="", description="API key for /mcp. Empty = no auth")

    # Sub-configs
    elastic: ElasticConfig = Field(default_factory=ElasticConfig)
    telegram: TelegramChannelConfig = Field(default_factory=TelegramChannelConfig)
    slack: SlackChannelConfig = Field(default_factory=SlackChannelConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    ticketing: TicketingConfig = Field(default_factory=TicketingConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    model_config = SettingsConfigDict(
        env_prefix="APOLLO_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls) -> ApolloConfig:
        """Load config from YAML + env vars (env takes precedence)."""
        yaml_cfg = _load_yaml_config()

        sections = {
            "elastic": ElasticConfig,
            "telegram": TelegramChannelConfig,
            "slack": SlackChannelConfig,
            "github": GitHubConfig,
            "ticketing": TicketingConfig,
            "scan": ScanConfig,
        }

        # Only pass YAML sub-configs if they have data;
        # otherwise let pydantic-settings pick up env vars
        kwargs: dict[str, Any] = {}
        for key, value in yaml_cfg.items():
            section = sections.get(key)
            if section is None:
                kwargs[key] = value
            elif value:
                kwargs[key] = _merge_section(section, value)

        return cls(**kwargs)


def _merge_section(section: type[BaseSettings], yaml_data: dict[str, Any]) -> BaseSettings:
    """Build a sub-config where env vars override YAML values."""
    from_env = section()
    explicit = from_env.model_dump(exclude_unset=True)
    return section(**{**yaml_data, **explicit})


# Singleton
_config: ApolloConfig | None = None


def get_config() -> ApolloConfig:
    """Get or create the global config."""
    global _config
    if _config is None:
        _config = ApolloConfig.load()
    return _config
