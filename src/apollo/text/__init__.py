"""Text shaping for chat surfaces."""

from apollo.text.chunking import join_segments, split_message, split_segments
from apollo.text.formatting import escape_html, strip_tags, to_slack_mrkdwn, to_telegram_html

__all__ = [
    "escape_html",
    "join_segments",
    "split_message",
    "split_segments",
    "strip_tags",
    "to_slack_mrkdwn",
    "to_telegram_html",
]
