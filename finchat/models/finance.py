"""
Financial Record Models for finchat

These models describe the household data the assistant reads:
transactions, loans, savings goals and budgets, plus the value objects
produced by the simulators.

DESIGN DECISION: Records are frozen. The assistant never writes back to
the data source, so nothing downstream of a fetch is allowed to mutate
what was fetched. Amounts are plain floats because every consumer feeds
them into the float-based simulators.
"""

import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionType(str, Enum):
    """Direction of money movement."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    """A single income or expense entry."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    type: TransactionType
    amount: float = Field(..., ge=0)
    category: str = Field(default="other")
    description: Optional[str] = None
    date: datetime.date
    paid_by: Optional[str] = Field(
        default=None,
        description="Which partner paid (shared household accounts)"
    )

    @field_validator('category')
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.lower() or "other"

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE


class Loan(BaseModel):
    """An outstanding or settled loan."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount: float = Field(default=0, ge=0, description="Original principal")
    remaining_amount: float = Field(..., ge=0)
    interest_rate: Optional[float] = Field(
        default=None,
        ge=0,
        description="Annual interest rate in percent (e.g. 6.5)"
    )
    installment_amount: Optional[float] = Field(default=None, ge=0)
    next_payment_date: Optional[datetime.date] = None
    is_settled: bool = False


class SavingsGoal(BaseModel):
    """A target the household is saving towards."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    target_amount: float = Field(..., ge=0)
    current_amount: float = Field(default=0, ge=0)
    target_date: Optional[datetime.date] = None
    is_achieved: bool = False

    @property
    def remaining(self) -> float:
        return max(self.target_amount - self.current_amount, 0.0)

    @property
    def progress_percent(self) -> float:
        if self.target_amount <= 0:
            return 0.0
        return self.current_amount / self.target_amount * 100


class Budget(BaseModel):
    """A spending limit for one category."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)
    category: str
    amount: float = Field(..., ge=0)
    spent_amount: float = Field(default=0, ge=0)
    period: str = Field(default="monthly")
    is_active: bool = True

    @property
    def progress_percent(self) -> float:
        if self.amount <= 0:
            return 0.0
        return self.spent_amount / self.amount * 100


# =============================================================================
# SIMULATION VALUES
# =============================================================================

class LoanPosition(BaseModel):
    """
    Snapshot of a loan as the amortization simulator sees it.

    The annual rate is carried in percent, the way lenders quote it;
    `monthly_rate` converts to the per-period fraction the simulator uses.
    """

    model_config = ConfigDict(frozen=True)

    outstanding_principal: float = Field(..., ge=0)
    periodic_payment: float
    annual_rate_percent: float = Field(default=0, ge=0)

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_percent / 12 / 100

    @classmethod
    def from_loan(cls, loan: Loan, default_payment: float = 100.0, extra: float = 0.0) -> "LoanPosition":
        """Build a position from a stored loan, filling in a default installment."""
        payment = loan.installment_amount if loan.installment_amount else default_payment
        return cls(
            outstanding_principal=loan.remaining_amount,
            periodic_payment=payment + extra,
            annual_rate_percent=loan.interest_rate or 0.0,
        )


class AmortizationResult(BaseModel):
    """Outcome of paying a loan down period by period."""

    model_config = ConfigDict(frozen=True)

    months_to_payoff: int = Field(..., ge=0)
    total_interest_paid: float = Field(..., ge=0)
    converged: bool = True

    def as_tuple(self) -> tuple[int, float]:
        return self.months_to_payoff, self.total_interest_paid


class GrowthProjection(BaseModel):
    """Future value of a savings plan under compound growth."""

    model_config = ConfigDict(frozen=True)

    years: int = Field(..., ge=0)
    rate: float
    future_value: float
    total_contributions: float = 0.0

    @property
    def investment_gains(self) -> float:
        return self.future_value - self.total_contributions
