import logging

import structlog
from storefront.utils import logging as storefront_logging
from storefront.utils.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_log_level,
    redact_secrets,
)


class TestLogLevel:
    def test_defaults_follow_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)

        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert get_log_level() == "INFO"
        monkeypatch.setenv("PROTEAN_ENV", "test")
        assert get_log_level() == "WARNING"
        monkeypatch.setenv("PROTEAN_ENV", "development")
        assert get_log_level() == "DEBUG"

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert get_log_level() == "ERROR"


class TestRedaction:
    def test_secrets_are_masked(self):
        event = redact_secrets(
            None,
            "info",
            {"event": "Intent created", "client_secret": "pi_123_secret_abcdef", "order_id": "o-1"},
        )
        assert event["client_secret"] == "pi_123***"
        assert event["order_id"] == "o-1"

    def test_empty_values_untouched(self):
        assert redact_secrets(None, "info", {"api_key": ""}) == {"api_key": ""}


class TestConfigureLogging:
    def test_writes_rotating_files(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        root = logging.getLogger()
        previous = root.handlers[:]
        try:
            configure_logging(tmp_path / "logs")
            assert (tmp_path / "logs" / "storefront.log").exists()
            assert (tmp_path / "logs" / "storefront_error.log").exists()
            assert len(root.handlers) == 3
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = previous
            structlog.reset_defaults()

    def test_rich_tracebacks_in_development_only(self, tmp_path, monkeypatch):
        installed = []
        monkeypatch.setattr(storefront_logging, "install_rich_traceback", lambda **kwargs: installed.append(kwargs))
        monkeypatch.delenv("ENV", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        root = logging.getLogger()
        previous = root.handlers[:]
        try:
            monkeypatch.setenv("PROTEAN_ENV", "production")
            configure_logging(tmp_path)
            assert installed == []

            monkeypatch.setenv("PROTEAN_ENV", "development")
            configure_logging(tmp_path)
            assert installed == [{"show_locals": False, "max_frames": 2}]
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = previous
            structlog.reset_defaults()

    def test_request_context(self):
        bind_request_context(user_id="user-001", order_id="o-1")
        assert structlog.contextvars.get_contextvars() == {"user_id": "user-001", "order_id": "o-1"}
        clear_request_context()
        assert structlog.contextvars.get_contextvars() == {}
