import pytest
from pydantic import ValidationError

from library_api.core.config import Settings


def make_settings(**kwargs):
    return Settings(_env_file=None, **kwargs)


def test_allowed_origins_comma_separated():
    s = make_settings(ALLOWED_ORIGINS="http://localhost:3000, http://localhost:5173,")
    assert s.allowed_origins == ["http://localhost:3000", "http://localhost:5173"]


def test_allowed_origins_json_list_and_wildcard():
    assert make_settings(ALLOWED_ORIGINS='["https://a.test"]').allowed_origins == ["https://a.test"]
    assert make_settings(ALLOWED_ORIGINS="[https://a.test, https://b.test]").allowed_origins == [
        "https://a.test",
        "https://b.test",
    ]
    assert make_settings(ALLOWED_ORIGINS="*").allowed_origins == ["*"]


def test_allowed_origins_from_environment(monkeypatch):
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://one.test,https://two.test")
    assert make_settings().allowed_origins == ["https://one.test", "https://two.test"]


def test_database_url_built_from_parts():
    s = make_settings(
        DB_HOST="db",
        DB_PORT=5433,
        DB_USER="library",
        DB_PASSWORD="secret",
        DB_NAME="books",
        DB_SSLMODE="require",
    )
    assert s.database_url == "postgresql+psycopg2://library:secret@db:5433/books?sslmode=require"


def test_database_url_override_wins():
    s = make_settings(DATABASE_URL="sqlite+pysqlite:///./library.db", DB_HOST="ignored")
    assert s.database_url == "sqlite+pysqlite:///./library.db"


def test_log_format_follows_environment_unless_set():
    assert make_settings(APP_ENV="production").effective_log_format == "json"
    assert make_settings(APP_ENV="development").effective_log_format == "text"
    assert make_settings(APP_ENV="production", LOG_FORMAT="TEXT").effective_log_format == "text"
    assert make_settings(APP_ENV="development", LOG_FORMAT="json").effective_log_format == "json"


def test_log_format_rejects_unknown_values():
    with pytest.raises(ValidationError):
        make_settings(LOG_FORMAT="xml")


def test_timeouts_are_configurable():
    s = make_settings(
        SERVER_READ_TIMEOUT_SECS="2.5",
        SERVER_WRITE_TIMEOUT_SECS="3",
        SERVER_IDLE_TIMEOUT_SECS="30",
    )
    assert s.server_read_timeout_secs == 2.5
    assert s.server_write_timeout_secs == 3.0
    assert s.server_idle_timeout_secs == 30
