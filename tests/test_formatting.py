from __future__ import annotations

from apollo.text import escape_html, to_slack_mrkdwn, to_telegram_html


def test_plain_text_is_unchanged_apart_from_trim() -> None:
    assert to_telegram_html("  checkout-api looks fine  ") == "checkout-api looks fine"
    assert to_slack_mrkdwn("checkout-api looks fine\n") == "checkout-api looks fine"


def test_empty_input_returns_empty_string() -> None:
    assert to_telegram_html("") == ""
    assert to_telegram_html(None) == ""
    assert to_slack_mrkdwn(None) == ""


def test_headings_and_emphasis_become_telegram_tags() -> None:
    out = to_telegram_html("## **Root cause**\nSome **bold**, __strong__ and *soft* _words_ ~~gone~~")

    assert out.startswith("<b>Root cause</b>\n")
    assert "<b>bold</b>" in out
    assert "<b>strong</b>" in out
    assert "<i>soft</i>" in out
    assert "<i>words</i>" in out
    assert "<s>gone</s>" in out


def test_code_spans_are_escaped_and_left_alone() -> None:
    out = to_telegram_html("Run `kubectl get pods | grep <svc>` now\n```bash\nif a < b && **c**:\n```")

    assert "<code>kubectl get pods | grep &lt;svc&gt;</code>" in out
    assert "<pre>if a &lt; b &amp;&amp; **c**:" in out
    assert "bash" not in out
    assert "<b>c</b>" not in out


def test_links_and_lists() -> None:
    out = to_telegram_html("See [Kibana](https://kb.example/app/discover)\n\n- one\n1. two\n---\n* three")

    assert '<a href="https://kb.example/app/discover">Kibana</a>' in out
    assert "• one" in out
    assert "  • two" in out
    assert "  • three" in out
    assert "---" not in out


def test_unmatched_delimiters_stay_literal() -> None:
    out = to_telegram_html("2 * 3 = 6 and a ** b with snake_case_name")

    assert out == "2 * 3 = 6 and a ** b with snake_case_name"


def test_blank_line_runs_collapse_to_one_blank_line() -> None:
    assert to_telegram_html("first\n\n\n\n\nsecond") == "first\n\nsecond"
    assert to_slack_mrkdwn("first\n\n  \n\n\nsecond") == "first\n\nsecond"


def test_slack_mrkdwn_conversion() -> None:
    out = to_slack_mrkdwn("## Status\n**ok** ~~old~~ [docs](https://docs.example)\n- item")

    assert out == "*Status*\n*ok* ~old~ <https://docs.example|docs>\n  • item"


def test_slack_keeps_code_untouched() -> None:
    text = "```\n**raw** ~~x~~\n```\nand `**inline**`"

    assert to_slack_mrkdwn(text) == text


def test_escape_html() -> None:
    assert escape_html("a < b & c > d") == "a &lt; b &amp; c &gt; d"
    assert escape_html(None) == ""


def test_placeholder_lookalikes_in_input_pass_through() -> None:
    text = "value \x007\x00 here and `x`"

    assert to_telegram_html(text) == "value \x007\x00 here and <code>x</code>"
    assert to_slack_mrkdwn(text) == text
