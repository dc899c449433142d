"""Ticketing and paging: Jira, PagerDuty, GitHub issues."""

from __future__ import annotations

import random
import string as _string
import time

from apollo.integrations import slack as blocks
from apollo.integrations.errors import IntegrationError
from apollo.text.formatting import escape_html
from apollo.tools.base import ToolResult
from apollo.tools.context import (
    SEVERITY_EMOJI,
    SEVERITY_SCHEMA,
    SIGNATURE,
    ContextTool,
    now_iso,
    schema,
    string,
)
from apollo.tools.effects import NotificationFanout

JIRA_PRIORITY = {"P1": "Highest", "P2": "High", "P3": "Medium"}
PAGERDUTY_SEVERITY = {"P1": "critical", "P2": "error", "P3": "warning"}
PAGERDUTY_SLACK_EMOJI = {"P1": ":rotating_light:", "P2": ":warning:", "P3": ":large_yellow_circle:"}
GITHUB_SEVERITY_LABEL = {"P1": "P1-critical", "P2": "P2-high", "P3": "P3-medium"}

_BASE36 = _string.digits + _string.ascii_uppercase


def base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def jira_key(project: str) -> str:
    return f"{project}-{random.randint(1000, 9999)}"


def pagerduty_id() -> str:
    return f"PD-{base36(int(time.time() * 1000))}"


class CreateJiraTicketTool(ContextTool):
    name = "create_jira_ticket"
    description = (
        "Create a Jira ticket for incident tracking. Auto-fills title, description with root cause "
        "analysis, affected services, remediation steps, and severity-based priority. Posts the "
        "ticket link to Slack and Telegram."
    )
    input_schema = schema(
        {
            "project": string("Jira project key (e.g. 'SRE', 'OPS')"),
            "title": string("Ticket title"),
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service"),
            "root_cause": string("Root cause analysis"),
            "remediation_steps": string("Step-by-step remediation plan"),
            "assignee": string("Optional: assign to a specific person"),
        },
        ["project", "title", "severity", "service", "root_cause"],
    )

    async def execute(
        self,
        *,
        project: str,
        title: str,
        severity: str,
        service: str,
        root_cause: str,
        remediation_steps: str | None = None,
        assignee: str | None = None,
    ) -> ToolResult:
        key = jira_key(project)
        priority = JIRA_PRIORITY.get(severity, "Medium")
        url = f"{self.ctx.ticketing.jira_base_url.rstrip('/')}/browse/{key}"
        created_at = now_iso()
        ticket = {
            "key": key,
            "project": project,
            "type": "Incident",
            "priority": priority,
            "title": title,
            "severity": severity,
            "service": service,
            "status": "Open",
            "assignee": assignee or "Unassigned",
            "created_at": created_at,
            "created_by": SIGNATURE,
            "description": "\n".join(
                [
                    "## Root Cause",
                    root_cause,
                    "",
                    "## Affected Service",
                    f"`{service}`",
                    "",
                    "## Remediation Steps",
                    remediation_steps or "See incident record for details",
                    "",
                    "## Severity",
                    f"{severity} - {priority}",
                    "",
                    "---",
                    f"*Auto-created by {SIGNATURE}*",
                ]
            ),
            "url": url,
        }

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "elasticsearch",
            self.ctx.elastic.configured,
            lambda: self.ctx.elastic.index("jira-tickets", {"@timestamp": created_at, **ticket}),
        )
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(
                [
                    blocks.header(f"Jira Ticket Created: {key}"),
                    blocks.fields(f"*Title:*\n{title}", f"*Priority:*\n{severity} ({priority})"),
                    blocks.section(f"*Service:* `{service}` | *Assignee:* {ticket['assignee']}"),
                    blocks.context(f"Created by {SIGNATURE}"),
                ],
                color="#0052CC",
            ),
        )
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "\U0001F3AB <b>Jira Ticket Created</b>\n\n"
                f"<b>{key}:</b> {escape_html(title)}\n"
                f"<b>Priority:</b> {severity} ({priority})\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>Assignee:</b> {escape_html(ticket['assignee'])}\n\n"
                f"<i>{SIGNATURE}</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": f"Jira ticket {key} created",
                "ticket_key": key,
                "url": url,
                "priority": priority,
            }
        )


class CreatePagerDutyIncidentTool(ContextTool):
    name = "create_pagerduty_incident"
    description = (
        "Create a PagerDuty incident and page the on-call engineer. Sets severity, assigns to the "
        "correct escalation policy, and includes root cause and recommended actions in the "
        "incident details."
    )
    input_schema = schema(
        {
            "title": string("Incident title"),
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service"),
            "root_cause": string("Root cause summary"),
            "recommended_action": string("What the on-call should do"),
            "escalation_policy": string("PagerDuty escalation policy (default: 'default')"),
        },
        ["title", "severity", "service", "root_cause"],
    )

    async def execute(
        self,
        *,
        title: str,
        severity: str,
        service: str,
        root_cause: str,
        recommended_action: str | None = None,
        escalation_policy: str | None = None,
    ) -> ToolResult:
        incident_id = pagerduty_id()
        pd_severity = PAGERDUTY_SEVERITY.get(severity, "warning")
        policy = escalation_policy or "default"
        url = f"{self.ctx.ticketing.pagerduty_base_url.rstrip('/')}/incidents/{incident_id}"
        created_at = now_iso()
        incident = {
            "id": incident_id,
            "title": title,
            "severity": pd_severity,
            "service": service,
            "status": "triggered",
            "escalation_policy": policy,
            "root_cause": root_cause,
            "recommended_action": recommended_action or "See Apollo investigation for details",
            "created_at": created_at,
            "created_by": SIGNATURE,
            "url": url,
        }

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "elasticsearch",
            self.ctx.elastic.configured,
            lambda: self.ctx.elastic.index(
                "pagerduty-incidents", {"@timestamp": created_at, **incident}
            ),
        )
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(
                [
                    blocks.header(
                        f"{PAGERDUTY_SLACK_EMOJI.get(severity, '')} PagerDuty Incident: {title}".strip()
                    ),
                    blocks.fields(
                        f"*Severity:*\n{severity} ({pd_severity})",
                        f"*Service:*\n`{service}`",
                    ),
                    blocks.section(f"*On-Call Paged:* Escalation policy `{policy}`"),
                    blocks.context(f"Incident {incident_id} | Created by {SIGNATURE}"),
                ],
                color=blocks.SEVERITY_COLORS.get(severity, blocks.DEFAULT_COLOR),
            ),
        )
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "\U0001F6A8 <b>PagerDuty Incident Created</b>\n\n"
                f"<b>{escape_html(title)}</b>\n"
                f"<b>Severity:</b> {severity} ({pd_severity})\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>Escalation:</b> {escape_html(policy)}\n"
                "<b>Status:</b> TRIGGERED -- On-call paged\n\n"
                f"<i>{SIGNATURE}</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": (
                    f"PagerDuty incident {incident_id} created. "
                    f"On-call engineer paged via '{policy}' policy."
                ),
                "incident_id": incident_id,
                "severity": pd_severity,
                "url": url,
            }
        )


def _issue_body(
    *,
    severity: str,
    service: str,
    root_cause: str,
    impact: str | None,
    remediation_steps: str | None,
    repo: str,
) -> str:
    lines = [
        f"## {SEVERITY_EMOJI.get(severity, '')} {severity} Incident: {service}",
        "",
        "### Root Cause",
        root_cause,
        "",
        "### Impact",
        impact or "See incident record for details",
        "",
        "### Remediation Steps",
        remediation_steps or "See runbook for details",
        "",
        "### Details",
        f"- **Service:** `{service}`",
        f"- **Severity:** {severity}",
        f"- **Created by:** {SIGNATURE}",
        f"- **Created at:** {now_iso()}",
        "",
        "---",
        "",
        "### Live production context",
        "",
        "Coding agents connected to the Apollo MCP endpoint can use "
        "`get_service_health`, `search_error_logs`, `get_recent_deployments`, "
        "`get_recent_incidents` and `ask_apollo` to verify a fix against production data.",
        "",
        "---",
        f"*Auto-created by [{SIGNATURE}](https://github.com/{repo})*",
    ]
    return "\n".join(lines)


class CreateGitHubIssueTool(ContextTool):
    name = "create_github_issue"
    description = (
        "Create a REAL GitHub issue for incident tracking. Auto-fills title, body with root cause "
        "analysis, affected services, remediation steps and severity labels. Posts the GitHub "
        "issue URL to Slack and Telegram."
    )
    input_schema = schema(
        {
            "title": string("Issue title"),
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service"),
            "root_cause": string("Root cause analysis"),
            "remediation_steps": string("Step-by-step remediation plan"),
            "impact": string("Business and technical impact"),
            "labels": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Additional labels (e.g. ['bug', 'urgent'])",
            },
        },
        ["title", "severity", "service", "root_cause"],
    )

    async def execute(
        self,
        *,
        title: str,
        severity: str,
        service: str,
        root_cause: str,
        remediation_steps: str | None = None,
        impact: str | None = None,
        labels: list[str] | None = None,
    ) -> ToolResult:
        github = self.ctx.github
        if not github.configured:
            return {
                "success": False,
                "error": "GitHub not configured (need APOLLO_GITHUB_TOKEN + APOLLO_GITHUB_REPO)",
            }

        issue_labels = [
            GITHUB_SEVERITY_LABEL.get(severity, "incident"),
            "incident",
            "apollo-agent",
            *(labels or []),
        ]
        # Keep order, drop repeats.
        issue_labels = list(dict.fromkeys(issue_labels))

        body = _issue_body(
            severity=severity,
            service=service,
            root_cause=root_cause,
            impact=impact,
            remediation_steps=remediation_steps,
            repo=github.config.repo,
        )
        try:
            await github.ensure_labels(issue_labels)
            issue = await github.create_issue(f"[{severity}] {title}", body, issue_labels)
        except IntegrationError as e:
            return {"success": False, "error": str(e)}

        number = issue.get("number")
        html_url = issue.get("html_url", "")

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(
                [
                    blocks.header(f"GitHub Issue #{number}: {title}"),
                    blocks.fields(f"*Severity:*\n{severity}", f"*Service:*\n`{service}`"),
                    blocks.link_button("View on GitHub", html_url),
                    blocks.context(f"Created by {SIGNATURE}"),
                ],
                color="#24292E",
            ),
        )
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "\U0001F4DD <b>GitHub Issue Created</b>\n\n"
                f"<b>#{number}:</b> {escape_html(title)}\n"
                f"<b>Severity:</b> {severity}\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>Labels:</b> {escape_html(', '.join(issue_labels))}\n\n"
                f'<a href="{html_url}">View on GitHub</a>\n\n'
                f"<i>{SIGNATURE}</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": f"GitHub issue #{number} created",
                "issue_number": number,
                "url": html_url,
                "labels": issue_labels,
            }
        )
