from app.config import AppConfig, get_config, reset_config, set_config_for_test


def test_defaults(monkeypatch):
    for var in ["DATABASE_URL", "PORT", "SHEET_WEBHOOK_URL", "TIMEZONE"]:
        monkeypatch.delenv(var, raising=False)
    config = AppConfig(_env_file=None)
    assert config.port == 3000
    assert config.sheet_webhook_url is None
    assert config.timezone == "Asia/Bangkok"
    assert config.database_url.startswith("sqlite")


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://farm@db/orders")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("SHEET_WEBHOOK_URL", "https://script.google.com/macros/s/x/exec")
    monkeypatch.setenv("WEBHOOK_TIMEOUT_SECONDS", "2.5")
    config = AppConfig(_env_file=None)
    assert config.database_url == "postgresql://farm@db/orders"
    assert config.port == 8080
    assert config.sheet_webhook_url.endswith("/exec")
    assert config.webhook_timeout_seconds == 2.5


def test_singleton_and_test_override():
    try:
        override = set_config_for_test(app_name="Test Farm", _env_file=None)
        assert get_config() is override
        assert get_config().app_name == "Test Farm"
    finally:
        reset_config()
