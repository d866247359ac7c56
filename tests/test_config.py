from sitegen.config import Settings


class TestSettings:
    def test_default_values(self):
        settings = Settings(openai_api_key="test-key", anthropic_api_key="")
        assert settings.database_url == "sqlite:///data/sitegen.db"
        assert settings.anthropic_model == "claude-sonnet-4-20250514"
        assert settings.anthropic_max_tokens == 15000
        assert settings.generation_temperature == 1.0
        assert settings.min_artifact_length == 100
        assert settings.image_model == "dall-e-3"
        assert settings.image_delay_seconds == 3.0
        assert settings.assets_base_url == "/assets"
        assert settings.logs_dir == "data/logs"

    def test_blocked_hosts_default(self):
        settings = Settings()
        assert settings.blocked_hosts == ["localhost:3001"]

    def test_blocked_hosts_from_env(self, monkeypatch):
        monkeypatch.setenv("BLOCKED_HOSTS", '["internal-host:3001", "localhost:3001"]')
        settings = Settings()
        assert settings.blocked_hosts == ["internal-host:3001", "localhost:3001"]

    def test_has_anthropic(self):
        assert Settings(anthropic_api_key="sk-ant-x").has_anthropic is True
        assert Settings(anthropic_api_key="").has_anthropic is False

    def test_dry_run_override(self):
        assert Settings(dry_run=True).dry_run is True
