from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Support both "run as a package" (relative imports) and "run from this folder" (local imports).
try:  # pragma: no cover
    from .serialization import default_currency, default_timezone
except Exception:  # pragma: no cover
    from serialization import default_currency, default_timezone

Number = Union[int, float]


class _Record(BaseModel):
    # Unknown fields are kept so whatever the client stores comes back intact.
    model_config = ConfigDict(extra="allow")


class _Update(BaseModel):
    # PATCH/PUT style (partial updates). Only provided fields are applied;
    # id/createdAt and unknown keys are ignored.
    model_config = ConfigDict(extra="ignore")


class PinVerify(BaseModel):
    pin: str = Field(min_length=1)


class PinChange(BaseModel):
    oldPin: str = Field(min_length=1)
    newPin: str = Field(min_length=1)


class UserProfile(_Record):
    name: str = ""
    picture: str = ""
    currency: str = Field(default_factory=default_currency)
    timezone: str = Field(default_factory=default_timezone)


class CashflowCreate(_Record):
    date: str
    description: str = ""
    amount: Number
    type: Literal["income", "expense"]


class CreditCardPlan(_Record):
    id: Optional[str] = None
    name: str
    amount: Number
    interestFreeMonths: int
    interestFreeEndDate: str
    weeklyPayment: Optional[Number] = None


class CreditCardCreate(_Record):
    name: str = Field(min_length=1)
    plans: List[CreditCardPlan] = []


class CreditCardUpdate(_Update):
    name: Optional[str] = None
    plans: Optional[List[CreditCardPlan]] = None


class Recurring(_Record):
    frequency: Literal["weekly", "monthly", "yearly"]
    endDate: Optional[str] = None


class ExpenseCreate(_Record):
    description: str = ""
    amount: Number
    date: str
    recurring: Optional[Recurring] = None


class BillCreate(_Record):
    description: str = ""
    amount: Number
    dueDate: str
    paid: bool = False


class GoalCreate(_Record):
    name: str = Field(min_length=1)
    targetAmount: Number
    currentAmount: Number = 0
    targetDate: Optional[str] = None


class GoalUpdate(_Update):
    name: Optional[str] = None
    targetAmount: Optional[Number] = None
    currentAmount: Optional[Number] = None
    targetDate: Optional[str] = None


# Fields of the update models that may be explicitly cleared with `null`.
NULLABLE_UPDATE_FIELDS = {"targetDate"}
