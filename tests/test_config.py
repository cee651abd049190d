"""Tests for configuration loading and the event logger."""

import pytest

from spendwise.config import AppSettings, GeminiSettings, StorageSettings
from spendwise.events import EventLogger
from spendwise.models import LedgerEventBuilder, LedgerEventType


class TestSettings:

    def test_storage_defaults(self, monkeypatch):
        for name in ("BACKEND", "DATA_DIR", "NAMESPACE", "WRITE_ATTEMPTS"):
            monkeypatch.delenv(f"SPENDWISE_STORAGE_{name}", raising=False)
        settings = StorageSettings()
        assert settings.backend == "file"
        assert settings.namespace == "spendwise"
        assert settings.write_attempts == 3

    def test_storage_from_environment(self, monkeypatch):
        monkeypatch.setenv("SPENDWISE_STORAGE_BACKEND", "redis")
        monkeypatch.setenv("SPENDWISE_STORAGE_NAMESPACE", "household")
        settings = StorageSettings()
        assert settings.backend == "redis"
        assert settings.namespace == "household"

    def test_suggestion_timeout_bounds(self):
        with pytest.raises(ValueError):
            AppSettings(suggestion_timeout_seconds=0)
        assert AppSettings(suggestion_timeout_seconds=2.5).suggestion_timeout_seconds == 2.5

    def test_gemini_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValueError):
            GeminiSettings(_env_file=None)


class TestEventLogger:

    def test_buffer_is_bounded(self):
        logger = EventLogger(buffer_size=3)
        for index in range(5):
            logger.log_transaction_deleted(f"t{index}", "alice")

        assert [e.entity_id for e in logger.recent_events] == ["t2", "t3", "t4"]

    def test_events_of_type(self):
        logger = EventLogger()
        logger.log(LedgerEventBuilder.transaction_updated("t1", "alice"))
        logger.log(LedgerEventBuilder.transaction_deleted("t1", "alice"))

        updated = logger.events_of_type(LedgerEventType.TRANSACTION_UPDATED)
        assert [e.entity_id for e in updated] == ["t1"]
