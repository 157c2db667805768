import pytest
from pydantic import ValidationError

from catalog_audit.config.settings import AppSettings, load_settings


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    settings = AppSettings()
    assert settings.op_vault == "datadog"
    assert settings.op_item == "datadog-api"
    assert settings.default_site == "datadoghq.com"
    assert settings.days == 7
    assert settings.request_attempts == 1


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DD_AUDIT_OP_VAULT", "production")
    monkeypatch.setenv("DD_AUDIT_REQUEST_ATTEMPTS", "3")
    settings = AppSettings()
    assert settings.op_vault == "production"
    assert settings.request_attempts == 3


def test_dotenv_file_is_read(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    (tmp_path / ".env").write_text("DD_AUDIT_DEFAULT_SITE=datadoghq.eu\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert AppSettings().default_site == "datadoghq.eu"


def test_invalid_attempts_rejected(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DD_AUDIT_REQUEST_ATTEMPTS", "0")
    with pytest.raises(ValidationError):
        AppSettings()


def test_load_settings_normalizes_log_level(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DD_AUDIT_LOG_LEVEL", "debug")
    assert load_settings().log_level == "DEBUG"
    monkeypatch.setenv("DD_AUDIT_LOG_LEVEL", "chatty")
    assert load_settings().log_level == "INFO"


def test_load_settings_exits_on_invalid_values(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DD_AUDIT_DAYS", "many")
    with pytest.raises(SystemExit):
        load_settings()
