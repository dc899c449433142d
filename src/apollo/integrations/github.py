"""GitHub issues client."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from apollo.config import GitHubConfig
from apollo.integrations.errors import GitHubError, NotConfiguredError

logger = structlog.get_logger()


def label_color(label: str) -> str:
    if label.startswith("P1"):
        return "FF0000"
    if label.startswith("P2"):
        return "FF8C00"
    if label.startswith("P3"):
        return "FFD700"
    return "0E8A16"


class GitHubClient:
    """Creates labels and issues in one repository."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    @property
    def configured(self) -> bool:
        return self.config.configured

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_base.rstrip("/"),
            headers={
                "Authorization": f"Bearer {self.config.token.strip()}",
                "Accept": "application/vnd.github.v3+json",
            },
            timeout=httpx.Timeout(15.0),
            transport=self._transport,
        )

    async def ensure_labels(self, labels: list[str]) -> list[str]:
        """Create any missing labels; returns the ones created now.

        GitHub answers 422 ``already_exists`` for labels that are present,
        which is the expected steady state.
        """
        if not self.configured:
            raise NotConfiguredError("GitHub not configured")

        created: list[str] = []
        async with self._client() as client:
            for label in labels:
                try:
                    resp = await client.post(
                        f"/repos/{self.config.repo}/labels",
                        json={"name": label, "color": label_color(label)},
                    )
                except httpx.HTTPError as e:
                    logger.warning("github.label_error", label=label, error=str(e))
                    continue
                if resp.status_code == 422:
                    continue
                if resp.status_code >= 400:
                    logger.warning(
                        "github.label_failed",
                        label=label,
                        status_code=resp.status_code,
                        body=resp.text[:300],
                    )
                    continue
                created.append(label)
        return created

    async def create_issue(self, title: str, body: str, labels: list[str]) -> dict[str, Any]:
        if not self.configured:
            raise NotConfiguredError("GitHub not configured")

        async with self._client() as client:
            resp = await client.post(
                f"/repos/{self.config.repo}/issues",
                json={"title": title, "body": body, "labels": labels},
            )
        if resp.status_code >= 400:
            raise GitHubError(
                f"GitHub API: {resp.text[:300]}",
                status_code=resp.status_code,
                body=resp.text[:300],
            )
        issue = resp.json()
        logger.info("github.issue_created", number=issue.get("number"))
        return issue
