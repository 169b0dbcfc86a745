"""
Tests for audit logging and settings
"""

import logging
from pathlib import Path
from uuid import uuid4

import pytest
from pydantic import ValidationError

from src.audit import AuditLogger, create_correlation_id
from src.config import LedgerSettings, get_settings
from src.models.audit import AuditEvent, AuditEventBuilder, AuditEventType, AuditSeverity
from src.services.storage import AuditStorageInterface, InMemoryAuditStorage


class BrokenAuditStorage(AuditStorageInterface):
    def append_event(self, event: AuditEvent) -> bool:
        raise RuntimeError("storage offline")

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


class TestAuditModels:
    """Tests for audit event construction."""

    def test_to_log_dict(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_recorded(
            name="Savings",
            kind="Income",
            amount="500.00",
            balance="2500.00",
            correlation_id=correlation_id,
        )

        log_dict = event.to_log_dict()

        assert log_dict["event_type"] == "transaction_recorded"
        assert log_dict["account_name"] == "Savings"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"]["balance"] == "2500.00"
        assert log_dict["is_user_action"] is True

    def test_to_row(self):
        event = AuditEventBuilder.save_failed("finance_data.txt", "disk full")

        row = event.to_row()

        assert len(row) == 7
        assert row[1] == "save_failed"
        assert row[2] == "error"
        assert row[3] == ""
        assert '"destination": "finance_data.txt"' in row[5]
        assert row[6] == "disk full"

    def test_ledger_loaded_severity(self):
        clean = AuditEventBuilder.ledger_loaded("f.txt", account_count=2, issue_count=0)
        dirty = AuditEventBuilder.ledger_loaded("f.txt", account_count=2, issue_count=3)

        assert clean.severity == AuditSeverity.INFO
        assert dirty.severity == AuditSeverity.WARNING

    def test_malformed_record_event(self):
        event = AuditEventBuilder.malformed_record(4, "T Income x", "Invalid amount: 'x'")

        assert event.event_type == AuditEventType.MALFORMED_RECORD
        assert event.details == {"line_number": 4, "line": "T Income x"}
        assert event.error_message == "Invalid amount: 'x'"


class TestAuditLogger:
    """Tests for the AuditLogger service."""

    def test_correlation_id_applied(self):
        storage = InMemoryAuditStorage()
        correlation_id = create_correlation_id()
        audit_logger = AuditLogger(storage, correlation_id=correlation_id)

        audit_logger.log_account_added(name="Savings", index=0, balance="2000.00")

        event = storage.get_recent_events()[0]
        assert audit_logger.correlation_id == correlation_id
        assert event.correlation_id == correlation_id

    def test_explicit_correlation_id_kept(self):
        storage = InMemoryAuditStorage()
        own_id = uuid4()
        audit_logger = AuditLogger(storage)

        audit_logger.log(AuditEventBuilder.account_switched("A", 0, correlation_id=own_id))

        assert storage.get_recent_events()[0].correlation_id == own_id

    def test_empty_store_receives_first_event(self):
        """An empty in-memory store is still a configured store."""
        storage = InMemoryAuditStorage()
        assert len(storage) == 0

        audit_logger = AuditLogger(storage)
        result = audit_logger.log(AuditEventBuilder.account_added("A", 0, "2000.00"))

        assert result is True
        assert audit_logger.storage is storage
        assert len(storage) == 1

    def test_without_storage(self):
        audit_logger = AuditLogger()
        assert audit_logger.storage is None
        assert audit_logger.log(AuditEventBuilder.ledger_saved("f.txt", 1)) is True

    def test_storage_failure_does_not_raise(self):
        audit_logger = AuditLogger(BrokenAuditStorage())
        assert audit_logger.log(AuditEventBuilder.ledger_saved("f.txt", 1)) is False

    def test_log_error(self):
        storage = InMemoryAuditStorage()
        AuditLogger(storage).log_error("ValueError", "boom", details={"where": "ui"})

        event = storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR
        assert event.details == {"where": "ui"}


class TestSettings:
    """Tests for LedgerSettings."""

    @pytest.fixture(autouse=True)
    def clear_settings_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_defaults(self, monkeypatch):
        for name in ("LEDGER_DATA_FILE", "LEDGER_LOG_LEVEL", "LEDGER_AUDIT_HISTORY_LIMIT"):
            monkeypatch.delenv(name, raising=False)

        settings = LedgerSettings(_env_file=None)

        assert settings.data_file == Path("finance_data.txt")
        assert settings.file_encoding == "utf-8"
        assert settings.log_level == "INFO"
        assert settings.log_level_number == logging.INFO
        assert settings.audit_history_limit == 200

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LEDGER_DATA_FILE", str(tmp_path / "ledger.txt"))
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")

        settings = get_settings()

        assert settings.data_file == tmp_path / "ledger.txt"
        assert settings.log_level == "DEBUG"
        assert settings.log_level_number == logging.DEBUG
        assert get_settings() is settings

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            LedgerSettings(log_level="LOUD")

    def test_audit_history_limit_bounds(self):
        with pytest.raises(ValidationError):
            LedgerSettings(audit_history_limit=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
