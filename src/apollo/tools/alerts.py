"""Direct team alerts: Telegram and Slack."""

from __future__ import annotations

from apollo.integrations import slack as blocks
from apollo.integrations.errors import IntegrationError
from apollo.text.formatting import escape_html
from apollo.tools.base import ToolResult
from apollo.tools.context import SEVERITY_EMOJI, SEVERITY_SCHEMA, SIGNATURE, ContextTool, schema, string


class SendTelegramAlertTool(ContextTool):
    name = "send_telegram_alert"
    description = "Send an incident alert to the team's Telegram chat. This sends a REAL message."
    input_schema = schema(
        {
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service name"),
            "title": string("Short incident title"),
            "root_cause": string("Root cause summary"),
            "recommended_action": string("Recommended remediation steps"),
        },
        ["severity", "service", "title", "root_cause"],
    )

    async def execute(
        self,
        *,
        severity: str,
        service: str,
        title: str,
        root_cause: str,
        recommended_action: str | None = None,
    ) -> ToolResult:
        emoji = SEVERITY_EMOJI.get(severity, "⚪")
        text = (
            f"{emoji} <b>{severity} Incident: {escape_html(title)}</b>\n\n"
            f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
            f"<b>Root Cause:</b> {escape_html(root_cause)}\n"
        )
        if recommended_action:
            text += f"\n<b>Action:</b>\n{escape_html(recommended_action)}"
        text += f"\n\n<i>{SIGNATURE}</i>"

        if not self.ctx.telegram.configured:
            return {"success": False, "error": "Bot not configured"}
        try:
            await self.ctx.telegram.send(text)
        except IntegrationError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "message": "Telegram alert sent to on-call team"}


class SendSlackNotificationTool(ContextTool):
    name = "send_slack_notification"
    description = "Send incident notification to Slack channel with rich formatting."
    input_schema = schema(
        {
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service name"),
            "title": string("Incident title"),
            "root_cause": string("Root cause summary"),
            "recommended_action": string("Recommended remediation"),
            "kibana_link": string("Link to Kibana"),
        },
        ["severity", "service", "title", "root_cause"],
    )

    async def execute(
        self,
        *,
        severity: str,
        service: str,
        title: str,
        root_cause: str,
        recommended_action: str | None = None,
        kibana_link: str | None = None,
    ) -> ToolResult:
        if not self.ctx.slack.configured:
            return {"success": True, "message": "Slack not configured (would send in production)"}

        content = [
            blocks.header(f"{severity} Incident: {title}"),
            blocks.fields(f"*Service:*\n`{service}`", f"*Severity:*\n{severity}"),
            blocks.section(f"*Root Cause:*\n{root_cause}"),
        ]
        if recommended_action:
            content.append(blocks.section(f"*Recommended Action:*\n{recommended_action}"))
        if kibana_link:
            content.append(blocks.link_button("View in Kibana", kibana_link))
        content.append(blocks.context(f"Detected by {SIGNATURE}"))

        try:
            await self.ctx.slack.post(
                content,
                color=blocks.SEVERITY_COLORS.get(severity, blocks.DEFAULT_COLOR),
            )
        except IntegrationError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "message": "Slack notification sent"}
