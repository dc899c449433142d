"""Errors raised by outbound integrations."""

from __future__ import annotations


class IntegrationError(Exception):
    """A downstream call failed."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NotConfiguredError(IntegrationError):
    """The integration has no credentials/endpoint configured."""


class ElasticError(IntegrationError):
    pass


class DeliveryError(IntegrationError):
    """A chat/webhook message was not accepted."""


class GitHubError(IntegrationError):
    pass
