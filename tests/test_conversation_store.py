from __future__ import annotations

from apollo.agent import ConversationStore


def test_set_overwrites_and_delete_reports_presence() -> None:
    store = ConversationStore()

    store.set("telegram:1", "a")
    store.set("telegram:1", "b")
    store.set("slack-C1", "c")

    assert store.get("telegram:1") == "b"
    assert len(store) == 2
    assert sorted(store.channels()) == ["slack-C1", "telegram:1"]
    assert store.delete("telegram:1") is True
    assert store.delete("telegram:1") is False
    assert store.get("telegram:1") is None


def test_clear_forgets_everything() -> None:
    store = ConversationStore()
    store.set("scheduled-scan", "x")

    store.clear()

    assert len(store) == 0
    assert "scheduled-scan" not in store
