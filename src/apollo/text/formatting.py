"""Markdown conversion for chat surfaces (Telegram HTML, Slack mrkdwn)."""

from __future__ import annotations

import re
import uuid

BULLET = "  • "

_FENCED_CODE = re.compile(r"```[\w+-]*\n?([\s\S]*?)```")
_INLINE_CODE = re.compile(r"`([^`\n]+?)`")
_LINK = re.compile(r"\[([^\]\n]+)\]\(([^)\s]+)\)")
_HEADING = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_RULE = re.compile(r"^[ \t]*[-*]{3,}[ \t]*$", re.MULTILINE)
_BULLET_ITEM = re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE)
_NUMBERED_ITEM = re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE)
_BOLD_STARS = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORES = re.compile(r"__(.+?)__")
_ITALIC_STAR = re.compile(r"(?<![\w*])\*(?=\S)([^*\n]+?)(?<=\S)\*(?![\w*])")
_ITALIC_UNDERSCORE = re.compile(r"(?<![\w_])_(?=\S)([^_\n]+?)(?<=\S)_(?![\w_])")
_STRIKE = re.compile(r"~~(.+?)~~")
_BLANK_RUN = re.compile(r"\n(?:[ \t]*\n){2,}")
_TAG = re.compile(r"<[^>]+>")


def escape_html(text: str | None) -> str:
    """Escape the characters Telegram's HTML parse mode treats as markup."""
    if not text:
        return ""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def strip_tags(text: str) -> str:
    return _TAG.sub("", text)


class _Stash:
    """Holds converted spans so later passes do not touch them.

    Placeholders carry a per-call token, so text that happens to look like one
    is never substituted.
    """

    def __init__(self) -> None:
        self._items: list[str] = []
        self._token = uuid.uuid4().hex
        self._pattern = re.compile(rf"\x00{self._token}:(\d+)\x00")

    def put(self, value: str) -> str:
        self._items.append(value)
        return f"\x00{self._token}:{len(self._items) - 1}\x00"

    def restore(self, text: str) -> str:
        return self._pattern.sub(lambda m: self._items[int(m.group(1))], text)


def _list_markers(text: str) -> str:
    text = _RULE.sub("", text)
    text = _BULLET_ITEM.sub(BULLET, text)
    return _NUMBERED_ITEM.sub(BULLET, text)


def _unbold(text: str) -> str:
    return _BOLD_UNDERSCORES.sub(r"\1", _BOLD_STARS.sub(r"\1", text))


def _collapse(text: str) -> str:
    return _BLANK_RUN.sub("\n\n", text).strip()


def to_telegram_html(text: str | None) -> str:
    """Convert agent markdown into Telegram's HTML subset.

    Code spans are converted first and parked behind placeholders so emphasis
    rules never rewrite their contents. Delimiters without a closing partner
    are left as literal characters.
    """
    if not text:
        return ""

    stash = _Stash()
    result = _FENCED_CODE.sub(lambda m: stash.put(f"<pre>{escape_html(m.group(1))}</pre>"), text)
    result = _INLINE_CODE.sub(lambda m: stash.put(f"<code>{escape_html(m.group(1))}</code>"), result)
    result = _LINK.sub(lambda m: stash.put(f'<a href="{m.group(2)}">{m.group(1)}</a>'), result)

    result = _HEADING.sub(lambda m: f"<b>{_unbold(m.group(1))}</b>", result)
    result = _list_markers(result)

    result = _BOLD_STARS.sub(r"<b>\1</b>", result)
    result = _BOLD_UNDERSCORES.sub(r"<b>\1</b>", result)
    result = _ITALIC_STAR.sub(r"<i>\1</i>", result)
    result = _ITALIC_UNDERSCORE.sub(r"<i>\1</i>", result)
    result = _STRIKE.sub(r"<s>\1</s>", result)

    return _collapse(stash.restore(result))


def to_slack_mrkdwn(text: str | None) -> str:
    """Convert agent markdown into Slack mrkdwn.

    Slack renders fenced and inline code natively, so those spans pass
    through untouched.
    """
    if not text:
        return ""

    stash = _Stash()
    result = _FENCED_CODE.sub(lambda m: stash.put(m.group(0)), text)
    result = _INLINE_CODE.sub(lambda m: stash.put(m.group(0)), result)
    result = _LINK.sub(lambda m: stash.put(f"<{m.group(2)}|{m.group(1)}>"), result)

    result = _HEADING.sub(lambda m: f"*{_unbold(m.group(1))}*", result)
    result = _list_markers(result)
    result = _BOLD_STARS.sub(r"*\1*", result)
    result = _STRIKE.sub(r"~\1~", result)

    return _collapse(stash.restore(result))
