"""Read-only ES|QL views over metrics, logs, incidents and deployments."""

from __future__ import annotations

from typing import Any

from apollo.integrations.elastic import esql_string
from apollo.tools.base import ToolResult
from apollo.tools.context import ContextTool, now_iso, schema, string

UNHEALTHY_MAX_ERROR_RATE = 5
UNHEALTHY_MAX_CONNECTIONS = 45
DEFAULT_LIMIT = 10
LIMIT_SCHEMA = {"type": "number", "description": "Number of records to return (default 10)"}


def _fmt(value: Any, digits: int) -> str:
    if value is None:
        return "n/a"
    return f"{float(value):.{digits}f}"


def _limit(value: Any) -> int:
    try:
        limit = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


def _where(*clauses: str) -> str:
    return "WHERE " + " AND ".join(clauses)


class GetServiceHealthTool(ContextTool):
    name = "get_service_health"
    description = (
        "Check the current health of production services. Returns error rates, latency, and "
        "connection pool usage from the last 2 hours. Use this to quickly see if anything is wrong."
    )
    input_schema = schema(
        {
            "service": string(
                "Optional: specific service name to check (e.g. 'checkout-api'). "
                "Leave empty to check all services."
            )
        }
    )

    async def execute(self, *, service: str | None = None) -> ToolResult:
        clauses = ["@timestamp > NOW() - 2 hours"]
        if service:
            clauses.append(f"service == {esql_string(service)}")
        rows = await self.ctx.elastic.esql(
            f"FROM app-metrics | {_where(*clauses)}"
            " | STATS avg_error_rate = AVG(error_rate), max_error_rate = MAX(error_rate),"
            " avg_latency = AVG(p99_latency_ms), max_latency = MAX(p99_latency_ms),"
            " avg_cpu = AVG(cpu_percent), max_connections = MAX(active_connections) BY service"
            " | SORT max_error_rate DESC | LIMIT 20"
        )

        services = []
        for row in rows:
            unhealthy = (row.get("max_error_rate") or 0) > UNHEALTHY_MAX_ERROR_RATE or (
                row.get("max_connections") or 0
            ) > UNHEALTHY_MAX_CONNECTIONS
            services.append(
                {
                    "service": row.get("service"),
                    "status": "UNHEALTHY" if unhealthy else "HEALTHY",
                    "error_rate": (
                        f"{_fmt(row.get('avg_error_rate'), 1)}% avg / "
                        f"{_fmt(row.get('max_error_rate'), 1)}% max"
                    ),
                    "p99_latency": (
                        f"{_fmt(row.get('avg_latency'), 0)}ms avg / "
                        f"{_fmt(row.get('max_latency'), 0)}ms max"
                    ),
                    "cpu": f"{_fmt(row.get('avg_cpu'), 1)}%",
                    "connections": f"{row.get('max_connections')} max",
                }
            )

        unhealthy_names = [s["service"] for s in services if s["status"] == "UNHEALTHY"]
        return {
            "success": True,
            "timestamp": now_iso(),
            "window": "last 2 hours",
            "services": services,
            "summary": (
                f"WARNING: {', '.join(map(str, unhealthy_names))} showing anomalies"
                if unhealthy_names
                else "All services healthy"
            ),
        }


class GetRecentIncidentsTool(ContextTool):
    name = "get_recent_incidents"
    description = (
        "Get recent incidents from Elasticsearch. Returns incident records with title, severity, "
        "service, root cause, status, and timestamps. Useful for understanding current and past issues."
    )
    input_schema = schema(
        {
            "service": string("Optional: filter by service name"),
            "severity": string("Optional: filter by severity (P1, P2, P3)"),
            "limit": LIMIT_SCHEMA,
        }
    )

    async def execute(
        self,
        *,
        service: str | None = None,
        severity: str | None = None,
        limit: int | None = None,
    ) -> ToolResult:
        clauses = ["@timestamp > NOW() - 7 days"]
        if service:
            clauses.append(f"service == {esql_string(service)}")
        if severity:
            clauses.append(f"severity == {esql_string(severity)}")
        rows = await self.ctx.elastic.esql(
            f"FROM incidents | {_where(*clauses)} | SORT @timestamp DESC | LIMIT {_limit(limit)}"
        )
        return {
            "success": True,
            "count": len(rows),
            "incidents": [
                {
                    "timestamp": r.get("@timestamp"),
                    "title": r.get("title"),
                    "severity": r.get("severity"),
                    "service": r.get("service"),
                    "root_cause": r.get("root_cause"),
                    "status": r.get("status"),
                    "triggered_by": r.get("triggered_by"),
                    "resolution": r.get("resolution"),
                }
                for r in rows
            ],
        }


class GetRecentDeploymentsTool(ContextTool):
    name = "get_recent_deployments"
    description = (
        "Get recent deployment history. Returns who deployed what, when, commit details, and "
        "change descriptions. Use this to check what changed recently."
    )
    input_schema = schema(
        {
            "service": string("Optional: filter by service name"),
            "limit": LIMIT_SCHEMA,
        }
    )

    async def execute(self, *, service: str | None = None, limit: int | None = None) -> ToolResult:
        clauses = ["@timestamp > NOW() - 7 days"]
        if service:
            clauses.append(f"service == {esql_string(service)}")
        rows = await self.ctx.elastic.esql(
            f"FROM deployments | {_where(*clauses)} | SORT @timestamp DESC | LIMIT {_limit(limit)}"
        )
        return {
            "success": True,
            "count": len(rows),
            "deployments": [
                {
                    "timestamp": r.get("@timestamp"),
                    "service": r.get("service"),
                    "version": r.get("version"),
                    "deployer": r.get("deployer"),
                    "commit_sha": r.get("commit_sha"),
                    "commit_message": r.get("commit_message"),
                    "changes": r.get("changes"),
                    "status": r.get("status"),
                }
                for r in rows
            ],
        }


class SearchErrorLogsTool(ContextTool):
    name = "search_error_logs"
    description = (
        "Search application error logs. Returns recent errors grouped by message, service, and "
        "status code with counts. Use this to find what errors are occurring."
    )
    input_schema = schema(
        {
            "service": string("Optional: filter by service name"),
            "hours": {"type": "number", "description": "How many hours back to search (default 2)"},
        }
    )

    async def execute(self, *, service: str | None = None, hours: int | None = None) -> ToolResult:
        try:
            window = int(hours) if hours else 2
        except (TypeError, ValueError):
            window = 2
        if window <= 0:
            window = 2

        clauses = [f"@timestamp > NOW() - {window} hours", 'level == "ERROR"']
        if service:
            clauses.append(f"service == {esql_string(service)}")
        rows = await self.ctx.elastic.esql(
            f"FROM app-logs | {_where(*clauses)}"
            " | STATS error_count = COUNT(*), avg_latency = AVG(latency_ms)"
            " BY service, message, status_code"
            " | SORT error_count DESC | LIMIT 20"
        )
        return {
            "success": True,
            "window": f"last {window} hours",
            "total_error_types": len(rows),
            "errors": [
                {
                    "service": r.get("service"),
                    "message": r.get("message"),
                    "status_code": r.get("status_code"),
                    "count": r.get("error_count"),
                    "avg_latency_ms": _fmt(r.get("avg_latency"), 0),
                }
                for r in rows
            ],
        }
