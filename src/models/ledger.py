"""
Core Ledger Models

These models hold the whole in-memory state of the ledger:
Transaction and Investment records, the Account that owns them, and the
Ledger that owns every account.

DESIGN DECISION: Balances are updated INCREMENTALLY, never recomputed from
history. The only two methods that touch `Account.balance` are
`record_transaction` and `make_investment`. Both validate everything first
and mutate last, so a rejected call leaves the account exactly as it was.

Amounts are Decimal. Maturity projections are plain floats because the
formulas are defined in double precision.
"""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from src.models.errors import (
    IndexOutOfRangeError,
    InsufficientBalanceError,
    NoActiveAccountError,
)


# =============================================================================
# POLICY CONSTANTS
# =============================================================================

DEFAULT_OPENING_BALANCE = Decimal("2000")
MINIMUM_RESERVE = Decimal("1000")

FIXED_DEPOSIT_ANNUAL_RATE = 0.071
SYSTEMATIC_PLAN_ANNUAL_RATE = 0.096


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of a cash movement. Values match the persisted tags."""
    INCOME = "Income"
    EXPENDITURE = "Expenditure"


class InvestmentKind(str, Enum):
    """
    Investment variants.

    Values are the short tags written to the data file.
    """
    SYSTEMATIC_PLAN = "SIP"
    FIXED_DEPOSIT = "FD"


def _reject_line_breaks(value: str, field_name: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{field_name} cannot contain line breaks")
    return value


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expenditure.

    The amount is always positive; `kind` alone decides whether it adds to
    or subtracts from the balance.
    """
    model_config = ConfigDict(frozen=True)

    kind: TransactionKind
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount moved, always positive"
    )
    description: str = Field(
        default="",
        description="Free text, may be empty"
    )

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: str) -> str:
        """The description is stored as the rest of a line."""
        return _reject_line_breaks(v, "Description")

    @property
    def signed_amount(self) -> Decimal:
        if self.kind == TransactionKind.INCOME:
            return self.amount
        return -self.amount


# =============================================================================
# INVESTMENTS
# =============================================================================

class _InvestmentBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    principal: Decimal = Field(
        ...,
        gt=0,
        description="Amount committed, deducted from balance once"
    )
    term_years: int = Field(
        ...,
        gt=0,
        description="Term in whole years"
    )


class SystematicPlan(_InvestmentBase):
    """
    Systematic investment plan (SIP).

    The monthly contribution is a projected commitment. It is NOT deducted
    from the account balance when the plan is created.
    """
    kind: Literal[InvestmentKind.SYSTEMATIC_PLAN] = InvestmentKind.SYSTEMATIC_PLAN
    monthly_contribution: Decimal = Field(
        ...,
        ge=0,
        description="Monthly amount added on top of the principal"
    )


class FixedDeposit(_InvestmentBase):
    """Fixed deposit (FD), compounded annually."""
    kind: Literal[InvestmentKind.FIXED_DEPOSIT] = InvestmentKind.FIXED_DEPOSIT


Investment = Annotated[
    Union[SystematicPlan, FixedDeposit],
    Field(discriminator="kind"),
]


def build_investment(
    kind: InvestmentKind,
    principal: Decimal,
    term_years: int,
    monthly_contribution: Optional[Decimal] = None,
) -> Union[SystematicPlan, FixedDeposit]:
    """
    Create the right investment variant for `kind`.

    Raises:
        ValueError: If the fields are invalid for the variant
                    (pydantic.ValidationError is a ValueError).
    """
    kind = InvestmentKind(kind)
    if kind == InvestmentKind.SYSTEMATIC_PLAN:
        if monthly_contribution is None:
            raise ValueError("A systematic plan requires a monthly contribution")
        return SystematicPlan(
            principal=principal,
            term_years=term_years,
            monthly_contribution=monthly_contribution,
        )
    if monthly_contribution is not None:
        raise ValueError("Monthly contribution only applies to systematic plans")
    return FixedDeposit(principal=principal, term_years=term_years)


def maturity_value(investment: Union[SystematicPlan, FixedDeposit]) -> float:
    """
    Projected value of an investment at the end of its term.

    FD:  principal * (1 + 0.071) ** years
    SIP: principal * (1 + 0.096 / 12) ** (years * 12) + monthly * 12 * years

    The SIP monthly leg is a simple total and is not compounded.
    """
    principal = float(investment.principal)
    years = investment.term_years

    if investment.kind == InvestmentKind.FIXED_DEPOSIT:
        return principal * (1 + FIXED_DEPOSIT_ANNUAL_RATE) ** years

    grown = principal * (1 + SYSTEMATIC_PLAN_ANNUAL_RATE / 12) ** (years * 12)
    return grown + float(investment.monthly_contribution) * 12 * years


# =============================================================================
# DISPLAY PROJECTIONS
# =============================================================================

class TransactionSummary(BaseModel):
    """Read-only view of one transaction."""

    kind: TransactionKind
    amount: Decimal
    description: str


class InvestmentSummary(BaseModel):
    """Read-only view of one investment with its projection."""

    kind: InvestmentKind
    principal: Decimal
    term_years: int
    monthly_contribution: Optional[Decimal] = None
    maturity_value: float


class AccountSnapshot(BaseModel):
    """
    Everything "view account details" shows.

    Built by Account.snapshot(); holding one never affects the account.
    """

    name: str
    balance: Decimal
    transactions: list[TransactionSummary] = Field(default_factory=list)
    investments: list[InvestmentSummary] = Field(default_factory=list)

    total_income: Decimal = Decimal("0")
    total_expenditure: Decimal = Decimal("0")
    total_invested: Decimal = Decimal("0")
    projected_maturity: float = 0.0

    @property
    def entries(self) -> list[Union[TransactionSummary, InvestmentSummary]]:
        """Transactions first, then investments, each in insertion order."""
        return [*self.transactions, *self.investments]


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A named balance holder.

    Invariant:
        balance == opening balance + income - expenditure - invested principal

    The opening balance is 2000 for a new account, or whatever was persisted
    when the account is reloaded.
    """

    name: str = Field(
        ...,
        min_length=1,
        description="Account name, not required to be unique"
    )
    balance: Decimal = Field(
        default=DEFAULT_OPENING_BALANCE,
        description="Current balance"
    )
    transactions: list[Transaction] = Field(default_factory=list)
    investments: list[Investment] = Field(default_factory=list)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _reject_line_breaks(v, "Account name")

    def _ensure_reserve(self, amount: Decimal) -> None:
        if self.balance - amount < MINIMUM_RESERVE:
            raise InsufficientBalanceError(self.balance, amount, MINIMUM_RESERVE)

    def record_transaction(
        self,
        kind: TransactionKind,
        amount: Decimal,
        description: str = "",
    ) -> Transaction:
        """
        Record an income or expenditure.

        Raises:
            ValueError: If amount <= 0 or the description is invalid
            InsufficientBalanceError: If an expenditure would leave less
                                      than the minimum reserve
        """
        transaction = Transaction(kind=kind, amount=amount, description=description)

        if transaction.kind == TransactionKind.EXPENDITURE:
            self._ensure_reserve(transaction.amount)

        self.transactions.append(transaction)
        self.balance = self.balance + transaction.signed_amount
        return transaction

    def make_investment(
        self,
        kind: InvestmentKind,
        principal: Decimal,
        term_years: int,
        monthly_contribution: Optional[Decimal] = None,
    ) -> Union[SystematicPlan, FixedDeposit]:
        """
        Book an investment. Only the principal leaves the balance.

        Raises:
            ValueError: If principal/term/contribution are invalid
            InsufficientBalanceError: If the principal would leave less
                                      than the minimum reserve
        """
        investment = build_investment(kind, principal, term_years, monthly_contribution)
        self._ensure_reserve(investment.principal)

        self.investments.append(investment)
        self.balance = self.balance - investment.principal
        return investment

    def maturity_value(self, investment: Union[SystematicPlan, FixedDeposit]) -> float:
        return maturity_value(investment)

    def snapshot(self) -> AccountSnapshot:
        transactions = [
            TransactionSummary(kind=t.kind, amount=t.amount, description=t.description)
            for t in self.transactions
        ]
        investments = [
            InvestmentSummary(
                kind=i.kind,
                principal=i.principal,
                term_years=i.term_years,
                monthly_contribution=getattr(i, "monthly_contribution", None),
                maturity_value=maturity_value(i),
            )
            for i in self.investments
        ]

        return AccountSnapshot(
            name=self.name,
            balance=self.balance,
            transactions=transactions,
            investments=investments,
            total_income=sum(
                (t.amount for t in self.transactions if t.kind == TransactionKind.INCOME),
                Decimal("0"),
            ),
            total_expenditure=sum(
                (t.amount for t in self.transactions if t.kind == TransactionKind.EXPENDITURE),
                Decimal("0"),
            ),
            total_invested=sum((i.principal for i in self.investments), Decimal("0")),
            projected_maturity=sum(s.maturity_value for s in investments),
        )


# =============================================================================
# LEDGER
# =============================================================================

class Ledger(BaseModel):
    """
    All accounts plus the currently active one.

    `active_index` is either None or a valid position in `accounts`.
    Accounts are never removed, so an index that was valid stays valid.
    """

    accounts: list[Account] = Field(default_factory=list)
    active_index: Optional[int] = None

    @model_validator(mode='after')
    def validate_active_index(self) -> 'Ledger':
        if self.active_index is not None:
            if not 0 <= self.active_index < len(self.accounts):
                raise ValueError("Active index must point to an existing account")
        return self

    def add_account(
        self,
        name: str,
        opening_balance: Optional[Decimal] = None,
    ) -> Account:
        """Create an account, append it, and make it active."""
        account = Account(
            name=name,
            balance=DEFAULT_OPENING_BALANCE if opening_balance is None else opening_balance,
        )
        self.accounts.append(account)
        self.active_index = len(self.accounts) - 1
        return account

    def switch_active(self, index: int) -> Account:
        """
        Make the account at `index` active.

        Raises:
            IndexOutOfRangeError: If index is outside [0, len(accounts));
                                  the active account is left unchanged
        """
        if not 0 <= index < len(self.accounts):
            raise IndexOutOfRangeError(index, len(self.accounts))
        self.active_index = index
        return self.accounts[index]

    def active_account(self) -> Optional[Account]:
        if self.active_index is None:
            return None
        if not 0 <= self.active_index < len(self.accounts):
            return None
        return self.accounts[self.active_index]

    def require_active_account(self) -> Account:
        """Like active_account(), but raises NoActiveAccountError instead of None."""
        account = self.active_account()
        if account is None:
            raise NoActiveAccountError()
        return account
