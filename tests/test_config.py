from __future__ import annotations

from apollo.config import ApolloConfig


def test_defaults_without_env_or_yaml(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("APOLLO_CONFIG_PATH", str(tmp_path / "missing.yaml"))

    config = ApolloConfig.load()

    assert config.port == 3001
    assert config.api_key == ""
    assert config.elastic.store_configured is False
    assert config.scan.interval_s == 10_800
    assert config.scan.initial_delay_s == 30
    assert config.telegram.max_message_chars == 4000
    assert config.slack.max_message_chars == 3000


def test_section_env_vars(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("APOLLO_CONFIG_PATH", str(tmp_path / "missing.yaml"))
    monkeypatch.setenv("APOLLO_ELASTIC_URL", "https://es.example/")
    monkeypatch.setenv("APOLLO_ELASTIC_API_KEY", "k")
    monkeypatch.setenv("APOLLO_ELASTIC_KIBANA_URL", "https://kb.example/")
    monkeypatch.setenv("APOLLO_GITHUB_TOKEN", "ghp_x")
    monkeypatch.setenv("APOLLO_GITHUB_REPO", "acme/shop")
    monkeypatch.setenv("APOLLO_SCAN_ENABLED", "false")

    config = ApolloConfig.load()

    assert config.elastic.url == "https://es.example"
    assert config.elastic.kibana_url == "https://kb.example"
    assert config.elastic.store_configured is True
    assert config.elastic.kibana_configured is True
    assert config.github.configured is True
    assert config.scan.enabled is False


def test_env_overrides_yaml_per_field(monkeypatch, tmp_path) -> None:
    path = tmp_path / "apollo.yaml"
    path.write_text(
        "port: 4000\n"
        "telegram:\n"
        "  bot_token: yaml-token\n"
        "  chat_id: '111'\n"
        "scan:\n"
        "  interval_s: 600\n"
    )
    monkeypatch.setenv("APOLLO_CONFIG_PATH", str(path))
    monkeypatch.setenv("APOLLO_TELEGRAM_CHAT_ID", "222")

    config = ApolloConfig.load()

    assert config.port == 4000
    assert config.telegram.bot_token == "yaml-token"
    assert config.telegram.chat_id == "222"
    assert config.scan.interval_s == 600
