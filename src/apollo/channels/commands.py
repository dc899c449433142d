"""Chat shortcut commands and their expanded prompts."""

from __future__ import annotations

START_MESSAGE = (
    "\U0001F680 <b>Apollo SRE Agent</b>\n\n"
    "I'm your autonomous AI Site Reliability Engineer.\n\n"
    "<b>Commands:</b>\n"
    "  /investigate - Full production scan\n"
    "  /status - Quick health check\n"
    "  /resolve - Mark current incident resolved\n"
    "  /escalate - Escalate to senior on-call\n"
    "  /newthread - Start a fresh conversation\n\n"
    "Or just type naturally:\n"
    '  "What\'s the error rate on checkout-api?"\n'
    '  "Search past incidents for payment timeouts"\n'
    '  "Rollback checkout-api to v1.20.9"\n\n'
    "<i>Powered by Elastic Agent Builder</i>"
)

NEW_THREAD_MESSAGE = "\U0001F504 Fresh conversation started. What do you need?"

COMMAND_PROMPTS = {
    "/investigate": (
        "Run a full production investigation. Check all services for anomalies, analyze errors, "
        "correlate with deployments, search past incidents, consult runbooks, and take all actions."
    ),
    "/status": (
        "Give me a quick health check. Use detect_anomalies to scan current metrics and summarize "
        "which services are healthy and which have issues. Keep it brief."
    ),
    "/resolve": (
        "The current incident has been resolved. Update the incident record status to 'resolved' "
        "and notify the team via Telegram and Slack that the incident is closed."
    ),
    "/escalate": (
        "The current incident needs escalation. Send a Telegram alert and Slack notification with "
        "severity UPGRADED to P1 and add 'ESCALATED - Senior on-call needed' to the recommended action."
    ),
}


def parse_command(text: str) -> str | None:
    """Return the bare command (``/status``) when ``text`` is exactly one command.

    A ``@botname`` suffix is ignored, so ``/status@apollo_bot`` is ``/status``.
    """
    stripped = (text or "").strip()
    if not stripped.startswith("/") or any(ch.isspace() for ch in stripped):
        return None
    command, _, _bot = stripped.partition("@")
    return command.lower()


def expand_command(text: str) -> str:
    """Map a shortcut command to its prompt; any other text passes through."""
    command = parse_command(text)
    if command and command in COMMAND_PROMPTS:
        return COMMAND_PROMPTS[command]
    return text
