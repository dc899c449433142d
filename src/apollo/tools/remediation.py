"""Rollback recommendation, rollback execution and post-fix health checks."""

from __future__ import annotations

import time
from typing import Any

from apollo.integrations import slack as blocks
from apollo.integrations.elastic import esql_string
from apollo.integrations.errors import IntegrationError
from apollo.text.formatting import escape_html
from apollo.tools.base import ToolResult
from apollo.tools.context import SIGNATURE, ContextTool, now_iso, schema, string
from apollo.tools.effects import NotificationFanout

# Thresholds for the post-fix verdict.
HEALTHY_ERROR_RATE = 2.0
HEALTHY_P99_LATENCY_MS = 500.0
RECOVERY_FACTOR = 1.5

ROLLBACK_SCHEMA = {
    "service": string("Service to rollback (e.g. 'checkout-api')"),
    "current_version": string("Current broken version (e.g. 'v1.21.0')"),
    "target_version": string("Version to rollback to (e.g. 'v1.20.9')"),
    "reason": string("Reason for rollback"),
}


def rollout_command(service: str) -> str:
    return f"kubectl rollout undo deployment/{service}"


class RecommendRollbackTool(ContextTool):
    name = "recommend_rollback"
    description = "Generate rollback recommendation and notify team via Telegram."
    input_schema = schema(ROLLBACK_SCHEMA, ["service", "current_version", "target_version", "reason"])

    async def execute(
        self,
        *,
        service: str,
        current_version: str,
        target_version: str,
        reason: str,
    ) -> ToolResult:
        command = rollout_command(service)
        recommendation = {
            "timestamp": now_iso(),
            "service": service,
            "from_version": current_version,
            "to_version": target_version,
            "reason": reason,
            "command": command,
        }

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "⚠️ <b>ROLLBACK RECOMMENDED</b>\n\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>From:</b> <code>{escape_html(current_version)}</code>  ➡  "
                f"<code>{escape_html(target_version)}</code>\n\n"
                f"<b>Reason:</b> {escape_html(reason)}\n\n"
                f"<b>Command:</b>\n<code>{escape_html(command)}</code>\n\n"
                f"<i>{SIGNATURE}</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": (
                    f"Rollback recommended: {service} {current_version} -> {target_version}. "
                    "Team notified."
                ),
                "recommendation": recommendation,
            }
        )


class ExecuteRollbackTool(ContextTool):
    name = "execute_rollback"
    description = (
        "Execute a service rollback via the CI/CD pipeline. Records the rollback as a deployment "
        "in Elasticsearch, notifies Slack and Telegram with before/after versions, and returns the "
        "deployment record. Use this when a rollback has been recommended and approved."
    )
    input_schema = schema(
        {**ROLLBACK_SCHEMA, "triggered_by": string("Who or what triggered this rollback")},
        ["service", "current_version", "target_version", "reason"],
    )

    async def execute(
        self,
        *,
        service: str,
        current_version: str,
        target_version: str,
        reason: str,
        triggered_by: str | None = None,
    ) -> ToolResult:
        start = time.monotonic()
        command = rollout_command(service)
        record = {
            "@timestamp": now_iso(),
            "service": service,
            "version": target_version,
            "previous_version": current_version,
            "deployer": triggered_by or "apollo-agent",
            "status": "success",
            "type": "rollback",
            "description": f"Automated rollback: {reason}",
            "commit_message": f"Rollback {service} from {current_version} to {target_version}",
            "files_changed": 0,
            "lines_changed": 0,
            "rollback_reason": reason,
            "automated": True,
        }

        deployment_id: str | None = None
        if self.ctx.elastic.configured:
            try:
                deployment_id = await self.ctx.elastic.index("deployments", record)
            except IntegrationError as e:
                return {"success": False, "error": str(e)}

        duration = round(time.monotonic() - start, 1)

        fanout = NotificationFanout(self.name)
        await fanout.attempt(
            "slack",
            self.ctx.slack.configured,
            lambda: self.ctx.slack.post(
                [
                    blocks.header(f"Rollback Executed: {service}"),
                    blocks.fields(f"*From:*\n`{current_version}`", f"*To:*\n`{target_version}`"),
                    blocks.section(f"*Reason:* {reason}"),
                    blocks.section(f"*Duration:* {duration}s | *Triggered by:* {SIGNATURE}"),
                    blocks.context(f"{command} --to-revision=..."),
                ],
                color="#00AA00",
            ),
        )
        await fanout.attempt(
            "telegram",
            self.ctx.telegram.configured,
            lambda: self.ctx.telegram.send(
                "✅ <b>ROLLBACK EXECUTED</b>\n\n"
                f"<b>Service:</b> <code>{escape_html(service)}</code>\n"
                f"<b>From:</b> <code>{escape_html(current_version)}</code>  ➡  "
                f"<code>{escape_html(target_version)}</code>\n"
                f"<b>Duration:</b> {duration}s\n"
                f"<b>Reason:</b> {escape_html(reason)}\n\n"
                f"<b>Command executed:</b>\n<code>{escape_html(command)}</code>\n\n"
                f"<i>{SIGNATURE} -- Automated Rollback</i>"
            ),
        )

        return fanout.apply(
            {
                "success": True,
                "message": (
                    f"Rollback executed: {service} {current_version} -> {target_version} in {duration}s"
                ),
                "deployment_id": deployment_id,
                "command": command,
                "duration_seconds": duration,
            }
        )


def _number(row: dict[str, Any], key: str) -> float:
    value = row.get(key)
    return float(value) if value is not None else 0.0


class RunHealthCheckTool(ContextTool):
    name = "run_health_check"
    description = (
        "Run a post-action health check on a service to verify a fix or rollback was successful. "
        "Queries real-time error rates and latency from Elasticsearch for the last 10 minutes and "
        "compares to the previous hour baseline. Returns whether the service has recovered."
    )
    input_schema = schema(
        {"service": string("Service name to health check (e.g. 'checkout-api')")},
        ["service"],
    )

    async def execute(self, *, service: str) -> ToolResult:
        if not self.ctx.elastic.configured:
            return {
                "success": True,
                "service": service,
                "status": "HEALTHY",
                "simulated": True,
                "message": "Health check simulated (no ES connection)",
            }

        quoted = esql_string(service)
        current_rows = await self.ctx.elastic.esql(
            "FROM app-metrics"
            f" | WHERE @timestamp > NOW() - 10 minutes AND service == {quoted}"
            " | STATS avg_error_rate = AVG(error_rate), max_error_rate = MAX(error_rate),"
            " avg_latency = AVG(p99_latency_ms), max_connections = MAX(active_connections),"
            " sample_count = COUNT(*) BY service"
            " | LIMIT 1"
        )
        baseline_rows = await self.ctx.elastic.esql(
            "FROM app-metrics"
            " | WHERE @timestamp > NOW() - 2 hours AND @timestamp < NOW() - 1 hour"
            f" AND service == {quoted}"
            " | STATS baseline_error_rate = AVG(error_rate), baseline_latency = AVG(p99_latency_ms)"
            " BY service"
            " | LIMIT 1"
        )
        current = current_rows[0] if current_rows else {}
        baseline = baseline_rows[0] if baseline_rows else {}

        avg_error = _number(current, "avg_error_rate")
        max_error = _number(current, "max_error_rate")
        latency = _number(current, "avg_latency")
        baseline_error = _number(baseline, "baseline_error_rate")

        healthy = avg_error < HEALTHY_ERROR_RATE and latency < HEALTHY_P99_LATENCY_MS
        recovered = avg_error < baseline_error * RECOVERY_FACTOR

        if healthy:
            verdict = f"{service} is HEALTHY. Error rate and latency are within normal range."
        else:
            verdict = (
                f"{service} is still DEGRADED. Error rate: {avg_error:.1f}%, "
                f"Latency: {latency:.0f}ms. Further action may be needed."
            )

        return {
            "success": True,
            "service": service,
            "status": "HEALTHY" if healthy else "DEGRADED",
            "recovered": recovered,
            "raw": {"current": current, "baseline": baseline},
            "current": {
                "error_rate": f"{avg_error:.2f}%",
                "max_error_rate": f"{max_error:.2f}%",
                "p99_latency_ms": f"{latency:.0f}ms",
                "active_connections": int(_number(current, "max_connections")),
                "data_points": int(_number(current, "sample_count")),
            },
            "baseline": {
                "error_rate": f"{baseline_error:.2f}%",
                "p99_latency_ms": f"{_number(baseline, 'baseline_latency'):.0f}ms",
            },
            "verdict": verdict,
        }
