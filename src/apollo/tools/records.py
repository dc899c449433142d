"""Persisted incident documents: records, postmortems, status updates."""

from __future__ import annotations

import uuid
from typing import Any

from apollo.integrations import slack as blocks
from apollo.integrations.errors import IntegrationError
from apollo.text.formatting import escape_html
from apollo.tools.base import ToolResult
from apollo.tools.context import SEVERITY_SCHEMA, SIGNATURE, ContextTool, now_iso, schema, string
from apollo.tools.effects import NotificationFanout


STATUS_EMOJI = {
    "investigating": "\U0001F50D",
    "identified": "\U0001F3AF",
    "monitoring": "\U0001F4CA",
    "resolved": "✅",
}
STATUS_COLORS = {
    "investigating": "#FF0000",
    "identified": "#FF8C00",
    "monitoring": "#FFD700",
    "resolved": "#00AA00",
}


class CreateIncidentRecordTool(ContextTool):
    name = "create_incident_record"
    description = (
        "Create a persistent incident record in Elasticsearch. Returns a clickable Kibana link."
    )
    input_schema = schema(
        {
            "title": string("Incident title"),
            "severity": SEVERITY_SCHEMA,
            "service": string("Affected service"),
            "root_cause": string("Root cause analysis"),
            "resolution": string("Resolution or recommended remediation"),
            "triggered_by": string("What triggered the incident"),
            "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags"},
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
        resolution: str | None = None,
        triggered_by: str | None = None,
        tags: list[str] | None = None,
    ) -> ToolResult:
        incident_id = uuid.uuid4().hex
        doc = {
            "@timestamp": now_iso(),
            "incident_id": incident_id,
            "title": title,
            "severity": severity,
            "service": service,
            "root_cause": root_cause,
            "resolution": resolution or "Pending resolution",
            "triggered_by": triggered_by or "apollo-agent",
            "status": "investigating",
            "tags": [*(tags or []), "apollo-created", "auto-detected"],
            "duration_minutes": 0,
        }

        # Demo environments may lack a store; the agent still gets a reference.
        if not self.ctx.elastic.configured:
            return {
                "success": True,
                "simulated": True,
                "message": "Incident record created (simulated, no Elasticsearch configured)",
                "document_id": f"simulated-{incident_id}",
                "incident_id": incident_id,
                "document": doc,
            }

        try:
            doc_id = await self.ctx.elastic.index("incidents", doc)
        except IntegrationError as e:
            return {"success": False, "error": str(e)}

        link = self.ctx.elastic.incident_link(doc_id)
        link_part = f'\n\n<a href="{link}">View in Kibana</a>' if link else ""

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "\U0001F4DD <b>Incident Record Created</b>\n\n"
                f"<b>{escape_html(title)}</b>\n"
                f"<b>Severity:</b> {severity}  |  <b>Service:</b> <code>{escape_html(service)}</code>"
                f"{link_part}"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": "Incident record created",
                "document_id": doc_id,
                "incident_id": incident_id,
                "kibana_link": link,
                "view_url": link,
            }
        )


class GeneratePostmortemTool(ContextTool):
    name = "generate_postmortem"
    description = (
        "Generate a structured postmortem report from the investigation data. Creates a detailed "
        "document with timeline, root cause analysis, impact assessment, remediation steps taken, "
        "and preventive measures. Indexes the postmortem in Elasticsearch and shares via Slack."
    )
    input_schema = schema(
        {
            "incident_title": string("Title of the incident"),
            "severity": SEVERITY_SCHEMA,
            "service": string("Primary affected service"),
            "started_at": string(
                "When the incident started (ISO timestamp or relative like '2 hours ago')"
            ),
            "detected_at": string("When Apollo detected the incident"),
            "resolved_at": string("When the incident was resolved (or 'ongoing')"),
            "root_cause": string("Detailed root cause analysis"),
            "impact": string(
                "Business and technical impact "
                "(e.g. '15% error rate affecting checkout for 25 minutes')"
            ),
            "timeline": string("Key events in chronological order"),
            "remediation": string("What was done to fix it"),
            "preventive_measures": string("What will prevent this from happening again"),
            "lessons_learned": string("Key takeaways from this incident"),
        },
        ["incident_title", "severity", "service", "root_cause", "impact", "remediation"],
    )

    SECTIONS = ["timeline", "root_cause", "impact", "remediation", "preventive_measures", "lessons_learned"]

    async def execute(
        self,
        *,
        incident_title: str,
        severity: str,
        service: str,
        root_cause: str,
        impact: str,
        remediation: str,
        started_at: str | None = None,
        detected_at: str | None = None,
        resolved_at: str | None = None,
        timeline: str | None = None,
        preventive_measures: str | None = None,
        lessons_learned: str | None = None,
    ) -> ToolResult:
        generated_at = now_iso()
        pending = "To be determined in follow-up review"
        document = _postmortem_markdown(
            incident_title=incident_title,
            severity=severity,
            service=service,
            generated_at=generated_at,
            started_at=started_at or "Unknown",
            detected_at=detected_at or "Auto-detected by Apollo",
            resolved_at=resolved_at or "Ongoing",
            timeline=timeline,
            root_cause=root_cause,
            impact=impact,
            remediation=remediation,
            preventive_measures=preventive_measures or f"- [ ] {pending}",
            lessons_learned=lessons_learned or f"- [ ] {pending}",
        )
        postmortem: dict[str, Any] = {
            "@timestamp": generated_at,
            "type": "postmortem",
            "incident_title": incident_title,
            "severity": severity,
            "service": service,
            "started_at": started_at or "Unknown",
            "detected_at": detected_at or generated_at,
            "resolved_at": resolved_at or "Ongoing",
            "root_cause": root_cause,
            "impact": impact,
            "timeline": timeline or "See incident record for detailed timeline",
            "remediation": remediation,
            "preventive_measures": preventive_measures or pending,
            "lessons_learned": lessons_learned or pending,
            "generated_by": SIGNATURE,
            "status": "draft",
            "document": document,
        }

        doc_id: str | None = None
        link: str | None = None
        if self.ctx.elastic.configured:
            try:
                doc_id = await self.ctx.elastic.index("postmortems", postmortem)
            except IntegrationError as e:
                return {"success": False, "error": str(e)}
            link = self.ctx.elastic.document_link(doc_id)

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(
                [
                    blocks.header(f"Postmortem: {incident_title}"),
                    blocks.fields(f"*Severity:*\n{severity}", f"*Service:*\n`{service}`"),
                    blocks.section(f"*Root Cause:*\n{root_cause[:500]}"),
                    blocks.section(f"*Impact:*\n{impact[:500]}"),
                    blocks.section(f"*Remediation:*\n{remediation[:500]}"),
                    blocks.context(
                        f"Auto-generated by {SIGNATURE} | Status: Draft, review with your team"
                    ),
                ],
                color="#6B46C1",
            ),
        )
        link_part = f'<a href="{link}">View in Kibana</a>\n\n' if link else ""
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "\U0001F4CB <b>Postmortem Generated</b>\n\n"
                f"<b>{escape_html(incident_title)}</b>\n"
                f"<b>Severity:</b> {severity} | <b>Service:</b> <code>{escape_html(service)}</code>\n\n"
                f"<b>Root Cause:</b> {escape_html(root_cause[:300])}\n"
                f"<b>Impact:</b> {escape_html(impact[:300])}\n\n"
                f"{link_part}<i>{SIGNATURE} -- Auto-generated postmortem</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": (
                    "Postmortem generated and indexed in Elasticsearch"
                    if doc_id
                    else "Postmortem generated (not indexed, no Elasticsearch configured)"
                ),
                "document_id": doc_id,
                "kibana_link": link,
                "sections": list(self.SECTIONS),
                "document": document,
            }
        )


def _postmortem_markdown(
    *,
    incident_title: str,
    severity: str,
    service: str,
    generated_at: str,
    started_at: str,
    detected_at: str,
    resolved_at: str,
    timeline: str | None,
    root_cause: str,
    impact: str,
    remediation: str,
    preventive_measures: str,
    lessons_learned: str,
) -> str:
    lines = [
        f"# Postmortem: {incident_title}",
        "",
        f"**Severity:** {severity} | **Service:** {service}",
        f"**Generated:** {generated_at} by {SIGNATURE}",
        "",
        "## Timeline",
        f"- **Started:** {started_at}",
        f"- **Detected:** {detected_at}",
        f"- **Resolved:** {resolved_at}",
    ]
    if timeline:
        lines += ["", timeline]
    lines += [
        "",
        "## Root Cause",
        root_cause,
        "",
        "## Impact",
        impact,
        "",
        "## Remediation",
        remediation,
        "",
        "## Preventive Measures",
        preventive_measures,
        "",
        "## Lessons Learned",
        lessons_learned,
        "",
        "---",
        f"*Auto-generated by {SIGNATURE}. Review and finalize with your team.*",
    ]
    return "\n".join(lines)


class UpdateStatusPageTool(ContextTool):
    name = "update_status_page"
    description = (
        "Update the internal/external status page with current incident status. Records the "
        "status update in Elasticsearch and notifies Slack channel. Use this to keep stakeholders "
        "and customers informed during an incident."
    )
    input_schema = schema(
        {
            "service": string("Affected service name"),
            "status": {
                "type": "string",
                "description": "Current status",
                "enum": ["investigating", "identified", "monitoring", "resolved"],
            },
            "title": string("Status update title"),
            "message": string("Detailed status message for stakeholders"),
            "affected_components": {
                "type": "array",
                "items": {"type": "string"},
                "description": "List of affected components (e.g. ['checkout', 'payments', 'cart'])",
            },
            "is_customer_facing": {
                "type": "boolean",
                "description": "Whether this impacts external customers",
            },
        },
        ["service", "status", "title", "message"],
    )

    async def execute(
        self,
        *,
        service: str,
        status: str,
        title: str,
        message: str,
        affected_components: list[str] | None = None,
        is_customer_facing: bool = False,
    ) -> ToolResult:
        components = affected_components or [service]
        update = {
            "@timestamp": now_iso(),
            "type": "status_update",
            "service": service,
            "status": status,
            "title": title,
            "message": message,
            "affected_components": components,
            "is_customer_facing": bool(is_customer_facing),
            "updated_by": SIGNATURE,
        }

        doc_id: str | None = None
        if self.ctx.elastic.configured:
            try:
                doc_id = await self.ctx.elastic.index("status-page", update)
            except IntegrationError as e:
                return {"success": False, "error": str(e)}

        fanout = NotificationFanout(self.name)
        slack_blocks = [
            blocks.header(f"{STATUS_EMOJI.get(status, 'ℹ️')} Status Update: {title}"),
            blocks.fields(f"*Service:*\n`{service}`", f"*Status:*\n{status.upper()}"),
            blocks.section(message),
        ]
        if is_customer_facing:
            slack_blocks.append(blocks.section(":warning: *Customer-facing incident*"))
        slack_blocks.append(blocks.context(f"Components: {', '.join(components)} | {SIGNATURE}"))
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(slack_blocks, color=STATUS_COLORS.get(status, blocks.DEFAULT_COLOR)),
        )

        customer_line = "⚠️ <b>Customer-facing</b>\n" if is_customer_facing else ""
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                f"{STATUS_EMOJI.get(status, 'ℹ️')} <b>Status Page Update</b>\n\n"
                f"<b>{escape_html(title)}</b>\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>Status:</b> {status.upper()}\n"
                f"{customer_line}"
                f"\n{escape_html(message)}\n\n"
                f"<i>{SIGNATURE}</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": f"Status page updated: {service} -> {status.upper()}",
                "status": status,
                "document_id": doc_id,
                "customer_facing": bool(is_customer_facing),
            }
        )
