"""
Ledger Text Codec

Serializes a Ledger to the flat, line-oriented data file and back.

FORMAT:
    #Account: <name> <balance>
    T <Income|Expenditure> <amount> <description, rest of line>
    I <SIP|FD> <principal> <term_years> [<monthly_contribution>]

An account block starts at its `#Account:` line and runs until the next
one (or end of file). Within a block, transactions come first, then
investments, each in the order they were booked.

DESIGN DECISION: Loading is line-tolerant. A line that cannot be parsed
raises MalformedRecordError inside its parser; the loader records it as a
RecordIssue and moves on to the next line. One bad line never costs the
rest of the file.

Balances are taken verbatim from the header line. They are NOT recomputed
from the transaction history.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Union

from pydantic import ValidationError

from src.models.errors import MalformedRecordError
from src.models.ledger import (
    Account,
    FixedDeposit,
    InvestmentKind,
    Ledger,
    SystematicPlan,
    Transaction,
    TransactionKind,
    build_investment,
)
from src.services.storage.interface import LoadResult, RecordIssue


ACCOUNT_HEADER = "#Account:"
TRANSACTION_TAG = "T"
INVESTMENT_TAG = "I"

# Tag, type, amount, then everything else (the description)
_TRANSACTION_LINE = re.compile(r"^T[ \t]+(\S+)[ \t]+(\S+)(.*)$")


# =============================================================================
# FIELD HELPERS
# =============================================================================

def format_decimal(value: Decimal) -> str:
    """Plain notation, never an exponent, so the value reads back exactly."""
    return format(value, "f")


def _validation_reason(error: ValidationError) -> str:
    return "; ".join(err["msg"] for err in error.errors())


def _parse_decimal(token: str, field_name: str) -> Decimal:
    try:
        value = Decimal(token)
    except InvalidOperation:
        raise MalformedRecordError(f"Invalid {field_name}: {token!r}") from None
    if not value.is_finite():
        raise MalformedRecordError(f"Invalid {field_name}: {token!r}")
    return value


def _parse_int(token: str, field_name: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise MalformedRecordError(f"Invalid {field_name}: {token!r}") from None


# =============================================================================
# SERIALIZATION
# =============================================================================

def format_account_header(account: Account) -> str:
    return f"{ACCOUNT_HEADER} {account.name} {format_decimal(account.balance)}"


def format_transaction(transaction: Transaction) -> str:
    return (
        f"{TRANSACTION_TAG} {transaction.kind.value} "
        f"{format_decimal(transaction.amount)} {transaction.description}"
    )


def format_investment(investment: Union[SystematicPlan, FixedDeposit]) -> str:
    fields = [
        INVESTMENT_TAG,
        investment.kind.value,
        format_decimal(investment.principal),
        str(investment.term_years),
    ]
    if investment.kind == InvestmentKind.SYSTEMATIC_PLAN:
        fields.append(format_decimal(investment.monthly_contribution))
    return " ".join(fields)


def dump_ledger(ledger: Ledger) -> str:
    """
    Serialize every account, in ledger order.

    The active account is not part of the format.
    """
    lines = []
    for account in ledger.accounts:
        lines.append(format_account_header(account))
        lines.extend(format_transaction(t) for t in account.transactions)
        lines.extend(format_investment(i) for i in account.investments)
    return "".join(f"{line}\n" for line in lines)


# =============================================================================
# DESERIALIZATION
# =============================================================================

def parse_account_header(line: str) -> Account:
    """
    Parse `#Account: <name> <balance>`.

    The name is everything after ": " up to the LAST space; the balance is
    the token after it. Names may contain spaces, but a name ending in a
    space-separated number cannot be told apart from the balance.
    """
    name_start = line.find(":") + 2
    if line[name_start - 1:name_start] != " ":
        raise MalformedRecordError("Account header must have a space after ':'")

    last_space = line.rfind(" ")
    if last_space < name_start:
        raise MalformedRecordError("Account header needs a name and a balance")

    name = line[name_start:last_space]
    balance = _parse_decimal(line[last_space + 1:], "balance")

    try:
        return Account(name=name, balance=balance)
    except ValidationError as e:
        raise MalformedRecordError(
            f"Invalid account header: {_validation_reason(e)}"
        ) from e


def parse_transaction_line(line: str) -> Transaction:
    """
    Parse `T <kind> <amount> <description>`.

    The description is the rest of the line after the amount with at most
    one leading space removed, so descriptions keep their own spacing.
    """
    match = _TRANSACTION_LINE.match(line)
    if match is None:
        raise MalformedRecordError("Transaction line needs a type and an amount")

    kind_token, amount_token, description = match.groups()
    if description.startswith(" "):
        description = description[1:]

    try:
        kind = TransactionKind(kind_token)
    except ValueError:
        raise MalformedRecordError(f"Unknown transaction type: {kind_token!r}") from None

    amount = _parse_decimal(amount_token, "amount")

    try:
        return Transaction(kind=kind, amount=amount, description=description)
    except ValidationError as e:
        raise MalformedRecordError(
            f"Invalid transaction: {_validation_reason(e)}"
        ) from e


def parse_investment_line(line: str) -> Union[SystematicPlan, FixedDeposit]:
    """Parse `I SIP <principal> <years> <monthly>` or `I FD <principal> <years>`."""
    tokens = line.split()
    if len(tokens) < 4:
        raise MalformedRecordError("Investment line needs a type, principal and term")

    try:
        kind = InvestmentKind(tokens[1])
    except ValueError:
        raise MalformedRecordError(f"Unknown investment type: {tokens[1]!r}") from None

    expected = 5 if kind == InvestmentKind.SYSTEMATIC_PLAN else 4
    if len(tokens) != expected:
        raise MalformedRecordError(
            f"{kind.value} investment line needs {expected} fields, got {len(tokens)}"
        )

    principal = _parse_decimal(tokens[2], "principal")
    term_years = _parse_int(tokens[3], "term")
    monthly = None
    if kind == InvestmentKind.SYSTEMATIC_PLAN:
        monthly = _parse_decimal(tokens[4], "monthly contribution")

    try:
        return build_investment(kind, principal, term_years, monthly)
    except ValueError as e:
        reason = _validation_reason(e) if isinstance(e, ValidationError) else str(e)
        raise MalformedRecordError(f"Invalid investment: {reason}") from e


def load_ledger(text: str) -> LoadResult:
    """
    Rebuild a ledger from its text form.

    Lines that cannot be used are skipped and returned as issues:
    malformed lines, unknown record tags, and any record that is not inside
    a valid account block (before the first header, or after a header that
    itself failed to parse). Blank lines are ignored.

    The loaded ledger has no active account.
    """
    accounts: list[Account] = []
    issues: list[RecordIssue] = []
    current = None

    for line_number, raw_line in enumerate(text.split("\n"), start=1):
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue

        try:
            if line.startswith(ACCOUNT_HEADER):
                current = None
                current = parse_account_header(line)
                accounts.append(current)
            elif current is None:
                raise MalformedRecordError("Record is outside any account block")
            else:
                tag = line.split(maxsplit=1)[0]
                if tag == TRANSACTION_TAG:
                    current.transactions.append(parse_transaction_line(line))
                elif tag == INVESTMENT_TAG:
                    current.investments.append(parse_investment_line(line))
                else:
                    raise MalformedRecordError(f"Unrecognized record type: {tag!r}")
        except MalformedRecordError as e:
            issues.append(RecordIssue(line_number=line_number, line=line, reason=e.reason))

    return LoadResult(ledger=Ledger(accounts=accounts), issues=issues)
