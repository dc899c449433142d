"""Outbound integrations: Elasticsearch, Telegram, Slack, GitHub."""

from apollo.integrations.elastic import ElasticClient
from apollo.integrations.errors import (
    DeliveryError,
    ElasticError,
    GitHubError,
    IntegrationError,
    NotConfiguredError,
)
from apollo.integrations.github import GitHubClient
from apollo.integrations.slack import SlackWebhookNotifier
from apollo.integrations.telegram import TelegramNotifier

__all__ = [
    "DeliveryError",
    "ElasticClient",
    "ElasticError",
    "GitHubClient",
    "GitHubError",
    "IntegrationError",
    "NotConfiguredError",
    "SlackWebhookNotifier",
    "TelegramNotifier",
]
