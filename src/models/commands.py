"""
Command Models

The command layer (UI) talks to the ledger ONLY through these commands.
Each command is a small pydantic model tagged by `type`, so raw input
(form values, menu choices) can be parsed in one place and rejected
loudly when it doesn't make sense.
"""

from decimal import Decimal
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from src.models.errors import InvalidCommandError, LedgerErrorKind
from src.models.ledger import (
    AccountSnapshot,
    FixedDeposit,
    InvestmentKind,
    SystematicPlan,
    Transaction,
)


# Every spelling of an investment type the UI may send.
# "1" / "2" are the investment menu codes.
INVESTMENT_KIND_CODES: dict[str, InvestmentKind] = {
    "1": InvestmentKind.SYSTEMATIC_PLAN,
    "sip": InvestmentKind.SYSTEMATIC_PLAN,
    "systematicplan": InvestmentKind.SYSTEMATIC_PLAN,
    "2": InvestmentKind.FIXED_DEPOSIT,
    "fd": InvestmentKind.FIXED_DEPOSIT,
    "fixeddeposit": InvestmentKind.FIXED_DEPOSIT,
}


def parse_investment_kind(code: Any) -> InvestmentKind:
    """
    Resolve an investment type code.

    Raises:
        InvalidCommandError: If the code is not a known investment type
    """
    if isinstance(code, InvestmentKind):
        return code
    key = str(code).strip().replace("_", "").replace(" ", "").lower()
    try:
        return INVESTMENT_KIND_CODES[key]
    except KeyError:
        raise InvalidCommandError(f"Invalid investment type: {code!r}") from None


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)


class AddAccount(_Command):
    type: Literal["add_account"] = "add_account"
    name: str = Field(..., min_length=1)


class SwitchAccount(_Command):
    type: Literal["switch_account"] = "switch_account"
    index: int


class RecordIncome(_Command):
    type: Literal["record_income"] = "record_income"
    amount: Decimal = Field(..., gt=0)
    description: str = ""


class RecordExpenditure(_Command):
    type: Literal["record_expenditure"] = "record_expenditure"
    amount: Decimal = Field(..., gt=0)
    description: str = ""


class MakeInvestment(_Command):
    """
    Make a SIP or FD investment from the active account.

    `monthly_contribution` is required for SIP and not allowed for FD.
    """
    type: Literal["make_investment"] = "make_investment"
    kind: InvestmentKind
    amount: Decimal = Field(..., gt=0)
    term_years: int = Field(..., gt=0)
    monthly_contribution: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator('kind', mode='before')
    @classmethod
    def resolve_kind(cls, v: Any) -> InvestmentKind:
        try:
            return parse_investment_kind(v)
        except InvalidCommandError as e:
            # Surfaces as a ValidationError; parse_command maps it back
            raise ValueError(str(e)) from None

    @model_validator(mode='after')
    def validate_contribution(self) -> 'MakeInvestment':
        if self.kind == InvestmentKind.SYSTEMATIC_PLAN and self.monthly_contribution is None:
            raise ValueError("Monthly contribution is required for a systematic plan")
        if self.kind == InvestmentKind.FIXED_DEPOSIT and self.monthly_contribution is not None:
            raise ValueError("Monthly contribution only applies to systematic plans")
        return self


class ViewActiveAccountDetails(_Command):
    type: Literal["view_account"] = "view_account"


class Exit(_Command):
    type: Literal["exit"] = "exit"


Command = Annotated[
    Union[
        AddAccount,
        SwitchAccount,
        RecordIncome,
        RecordExpenditure,
        MakeInvestment,
        ViewActiveAccountDetails,
        Exit,
    ],
    Field(discriminator="type"),
]

_command_adapter = TypeAdapter(Command)


def parse_command(payload: dict[str, Any]) -> Command:
    """
    Build a command from raw UI input.

    Raises:
        InvalidCommandError: Unknown command type or invalid field values
    """
    try:
        return _command_adapter.validate_python(payload)
    except ValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'command'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidCommandError(f"Invalid command: {messages}") from e


class CommandResult(BaseModel):
    """
    Outcome of one command.

    Failures are results, not exceptions: the UI shows `message` and the
    session keeps running.
    """

    success: bool
    message: str
    error_kind: Optional[LedgerErrorKind] = None

    account_name: Optional[str] = None
    balance: Optional[Decimal] = None
    snapshot: Optional[AccountSnapshot] = None
    transaction: Optional[Transaction] = None
    investment: Optional[Union[SystematicPlan, FixedDeposit]] = None
