"""
Tests for the LedgerSession

Drives the session the way the UI does: raw payloads or command models
in, CommandResults out. Storage is a real file under tmp_path; the audit
trail is in memory so tests can inspect it.
"""

from decimal import Decimal

import pytest

from src.audit import AuditLogger
from src.config import LedgerSettings
from src.models.audit import AuditEventType
from src.models.commands import (
    AddAccount,
    Exit,
    MakeInvestment,
    RecordExpenditure,
    RecordIncome,
    SwitchAccount,
    ViewActiveAccountDetails,
)
from src.models.errors import LedgerErrorKind
from src.models.ledger import InvestmentKind, Ledger
from src.orchestrator import LedgerSession, create_session
from src.services.storage import (
    InMemoryAuditStorage,
    LoadResult,
    StorageWriteError,
    TextFileLedgerStorage,
)


class CountingStorage(TextFileLedgerStorage):
    """File storage that counts saves and can be told to fail."""

    def __init__(self, path, fail_on_save: bool = False):
        super().__init__(path)
        self.save_calls = 0
        self.fail_on_save = fail_on_save

    def save(self, ledger: Ledger) -> None:
        self.save_calls += 1
        if self.fail_on_save:
            raise StorageWriteError("disk full")
        super().save(ledger)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "finance_data.txt"


@pytest.fixture
def session(data_file, audit_storage):
    s = LedgerSession(
        storage=CountingStorage(data_file),
        audit_logger=AuditLogger(audit_storage),
    )
    s.start()
    return s


def event_types(audit_storage):
    """Audit event types, oldest first."""
    return [e.event_type for e in reversed(audit_storage.get_recent_events(limit=1000))]


class TestSessionStart:
    """Tests for loading at startup."""

    def test_start_without_file(self, session, audit_storage):
        assert session.ledger.accounts == []
        assert session.ledger.active_account() is None
        assert event_types(audit_storage) == [AuditEventType.LEDGER_LOADED]

    def test_start_loads_existing_file(self, data_file, audit_storage):
        data_file.write_text(
            "#Account: Savings 3000\n"
            "T Income 1000 Salary\n"
            "T Broken line\n"
            "#Account: Travel 2000\n",
            encoding="utf-8",
        )
        session = LedgerSession(TextFileLedgerStorage(data_file), AuditLogger(audit_storage))

        result = session.start()

        assert isinstance(result, LoadResult)
        assert [a.name for a in session.ledger.accounts] == ["Savings", "Travel"]
        assert session.ledger.active_account() is None
        assert event_types(audit_storage) == [
            AuditEventType.MALFORMED_RECORD,
            AuditEventType.LEDGER_LOADED,
        ]
        loaded_event = audit_storage.get_recent_events()[0]
        assert loaded_event.details["malformed_records"] == 1
        assert loaded_event.severity.value == "warning"

    def test_session_without_audit_logger(self, data_file):
        session = LedgerSession(TextFileLedgerStorage(data_file))
        session.start()

        result = session.execute(AddAccount(name="Quiet"))

        assert result.success
        assert session.audit_logger is None


class TestAccountCommands:
    """Tests for AddAccount and SwitchAccount."""

    def test_add_account(self, session):
        result = session.execute(AddAccount(name="Savings"))

        assert result.success
        assert result.message == "Account added and switched to: Savings"
        assert result.balance == Decimal("2000")
        assert session.ledger.active_index == 0

    def test_add_account_via_raw_payload(self, session):
        result = session.execute_raw({"type": "add_account", "name": "Joint Account"})
        assert result.success
        assert session.ledger.active_account().name == "Joint Account"

    def test_add_account_with_empty_name(self, session):
        result = session.execute_raw({"type": "add_account", "name": ""})

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert session.ledger.accounts == []

    def test_add_account_with_line_break(self, session):
        result = session.execute(AddAccount(name="Bad\nName"))

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert session.ledger.accounts == []

    def test_switch_account(self, session, audit_storage):
        session.execute(AddAccount(name="First"))
        session.execute(AddAccount(name="Second"))

        result = session.execute(SwitchAccount(index=0))

        assert result.success
        assert result.message == "Switched to account: First"
        assert session.ledger.active_index == 0
        assert event_types(audit_storage)[-1] == AuditEventType.ACCOUNT_SWITCHED

    def test_switch_out_of_range(self, session, audit_storage):
        session.execute(AddAccount(name="Only"))

        result = session.execute(SwitchAccount(index=3))

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INDEX_OUT_OF_RANGE
        assert session.ledger.active_index == 0
        assert event_types(audit_storage)[-1] == AuditEventType.COMMAND_REJECTED


class TestTransactionCommands:
    """Tests for income and expenditure."""

    @pytest.mark.parametrize(
        "command",
        [
            RecordIncome(amount=Decimal("10")),
            RecordExpenditure(amount=Decimal("10")),
            MakeInvestment(kind="FD", amount=Decimal("10"), term_years=1),
            ViewActiveAccountDetails(),
        ],
    )
    def test_requires_active_account(self, session, command):
        result = session.execute(command)

        assert not result.success
        assert result.error_kind == LedgerErrorKind.NO_ACTIVE_ACCOUNT
        assert result.message == "No active account"

    def test_record_income(self, session, audit_storage):
        session.execute(AddAccount(name="Savings"))

        result = session.execute_raw({
            "type": "record_income",
            "amount": "500",
            "description": "Salary",
        })

        assert result.success
        assert result.message == "Income of 500.00 recorded"
        assert result.balance == Decimal("2500")
        assert result.transaction.description == "Salary"
        assert event_types(audit_storage)[-1] == AuditEventType.TRANSACTION_RECORDED

    def test_expenditure_below_reserve(self, session, audit_storage):
        session.execute(AddAccount(name="Savings"))

        result = session.execute(RecordExpenditure(amount=Decimal("1500"), description="Car"))

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INSUFFICIENT_BALANCE
        account = session.ledger.active_account()
        assert account.balance == Decimal("2000")
        assert account.transactions == []
        assert event_types(audit_storage)[-2:] == [
            AuditEventType.TRANSACTION_REJECTED,
            AuditEventType.COMMAND_REJECTED,
        ]

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", None])
    def test_invalid_amount(self, session, amount):
        session.execute(AddAccount(name="Savings"))

        result = session.execute_raw({"type": "record_expenditure", "amount": amount})

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert session.ledger.active_account().balance == Decimal("2000")

    def test_description_with_line_break_rejected(self, session):
        session.execute(AddAccount(name="Savings"))

        result = session.execute(RecordIncome(amount=Decimal("5"), description="a\nb"))

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert session.ledger.active_account().transactions == []

    def test_unknown_command_type(self, session):
        result = session.execute_raw({"type": "transfer", "amount": "5"})

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND

    @pytest.mark.parametrize("payload", ["add_account", ["add_account"], None])
    def test_non_dict_payload(self, session, audit_storage, payload):
        result = session.execute_raw(payload)

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        event = audit_storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.COMMAND_REJECTED
        assert event.details == {"command": "unknown"}

    def test_unrecognized_command_object(self, session):
        result = session.execute(object())

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND


class TestInvestmentCommands:
    """Tests for MakeInvestment."""

    def test_fixed_deposit(self, session, audit_storage):
        session.execute(AddAccount(name="Savings"))

        result = session.execute_raw({
            "type": "make_investment",
            "kind": "2",
            "amount": "1000",
            "term_years": 1,
        })

        assert result.success
        assert result.message == "FD of 1000.00 made, maturity amount 1071.00"
        assert result.balance == Decimal("1000")
        event = audit_storage.get_recent_events()[0]
        assert event.event_type == AuditEventType.INVESTMENT_MADE
        assert event.details["maturity_value"] == 1071.0

    def test_systematic_plan(self, session):
        session.execute(AddAccount(name="Savings"))

        result = session.execute(MakeInvestment(
            kind=InvestmentKind.SYSTEMATIC_PLAN,
            amount=Decimal("1000"),
            term_years=1,
            monthly_contribution=Decimal("100"),
        ))

        assert result.success
        assert result.message.endswith("maturity amount 2300.34")
        # Monthly contribution is not deducted
        assert result.balance == Decimal("1000")

    def test_investment_below_reserve(self, session, audit_storage):
        session.execute(AddAccount(name="Savings"))

        result = session.execute(
            MakeInvestment(kind="FD", amount=Decimal("1000.01"), term_years=2)
        )

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INSUFFICIENT_BALANCE
        assert session.ledger.active_account().investments == []
        assert AuditEventType.INVESTMENT_REJECTED in event_types(audit_storage)

    def test_unknown_investment_kind(self, session):
        session.execute(AddAccount(name="Savings"))

        result = session.execute_raw({
            "type": "make_investment",
            "kind": "3",
            "amount": "100",
            "term_years": 1,
        })

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert "Invalid investment type" in result.message


class TestViewAccount:
    """Tests for ViewActiveAccountDetails."""

    def test_view_returns_snapshot(self, session):
        session.execute(AddAccount(name="Savings"))
        session.execute(RecordIncome(amount=Decimal("250"), description="Gift"))
        session.execute(MakeInvestment(kind="FD", amount=Decimal("1000"), term_years=1))

        result = session.execute(ViewActiveAccountDetails())

        assert result.success
        assert result.snapshot.name == "Savings"
        assert result.snapshot.balance == Decimal("1250")
        assert len(result.snapshot.transactions) == 1
        assert round(result.snapshot.investments[0].maturity_value, 2) == 1071.00

    def test_view_does_not_change_state(self, session):
        session.execute(AddAccount(name="Savings"))
        before = session.ledger.model_dump()

        session.execute(ViewActiveAccountDetails())
        session.execute(ViewActiveAccountDetails())

        assert session.ledger.model_dump() == before


class TestExit:
    """Tests for the final save."""

    def test_exit_writes_once(self, session, data_file, audit_storage):
        session.execute(AddAccount(name="Savings"))
        session.execute(RecordIncome(amount=Decimal("100"), description="Tip"))

        result = session.execute(Exit())

        assert result.success
        assert session.is_closed
        assert session._storage.save_calls == 1
        assert data_file.read_text(encoding="utf-8") == (
            "#Account: Savings 2100\n"
            "T Income 100 Tip\n"
        )
        assert event_types(audit_storage)[-1] == AuditEventType.LEDGER_SAVED

    def test_nothing_written_before_exit(self, session, data_file):
        session.execute(AddAccount(name="Savings"))
        assert not data_file.exists()

    def test_commands_after_exit_rejected(self, session):
        session.execute(Exit())

        result = session.execute(AddAccount(name="Late"))
        second_exit = session.execute(Exit())

        assert not result.success
        assert result.error_kind == LedgerErrorKind.INVALID_COMMAND
        assert not second_exit.success
        assert session._storage.save_calls == 1

    def test_save_failure_propagates(self, data_file, audit_storage):
        storage = CountingStorage(data_file, fail_on_save=True)
        session = LedgerSession(storage, AuditLogger(audit_storage))
        session.start()
        session.execute(AddAccount(name="Savings"))

        with pytest.raises(StorageWriteError):
            session.execute(Exit())

        assert storage.save_calls == 1
        assert not session.is_closed
        assert event_types(audit_storage)[-1] == AuditEventType.SAVE_FAILED

    def test_restart_sees_saved_ledger(self, session, data_file):
        session.execute(AddAccount(name="Savings"))
        session.execute(MakeInvestment(
            kind="SIP",
            amount=Decimal("500"),
            term_years=3,
            monthly_contribution=Decimal("50"),
        ))
        session.execute(Exit())

        restarted = LedgerSession(TextFileLedgerStorage(data_file))
        restarted.start()

        account = restarted.ledger.accounts[0]
        assert account.balance == Decimal("1500")
        assert account.investments[0].monthly_contribution == Decimal("50")
        assert restarted.ledger.active_account() is None


class TestCreateSession:
    """Tests for the session factory."""

    def test_create_session_from_settings(self, data_file, audit_storage):
        data_file.write_text("#Account: Existing 4000\n", encoding="utf-8")
        settings = LedgerSettings(data_file=data_file, log_level="WARNING")

        session = create_session(settings, audit_storage=audit_storage)

        assert [a.name for a in session.ledger.accounts] == ["Existing"]
        assert session.audit_logger.storage is audit_storage
        assert event_types(audit_storage) == [AuditEventType.LEDGER_LOADED]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
