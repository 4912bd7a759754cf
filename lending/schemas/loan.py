from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lending.schemas.common import Pagination


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    PAID = "Paid"
    OVERDUE = "Overdue"
    DEFAULT = "Default"


DEFAULT_LOAN_MODE = "Weekly"


class LoanCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    client_id: int = Field(ge=1)
    control_number: str | None = Field(default=None, max_length=20)
    date_of_release: date | None = None
    total_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    amortization: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    terms: int = Field(ge=1)
    mode: str | None = Field(default=None, max_length=20)
    outstanding_balance: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: LoanStatus | None = None
    due_date: str | None = Field(default=None, max_length=20)
    deductions: str | None = Field(default=None, max_length=100)
    amount_release: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    payment_period_weeks: int | None = Field(default=None, ge=1)
    method_of_payment: str | None = Field(default=None, max_length=50)
    credit_history: str | None = Field(default=None, max_length=50)
    recommended_by: str | None = Field(default=None, max_length=100)
    approved_by: str | None = Field(default=None, max_length=100)
    checked_by: str | None = Field(default=None, max_length=100)
    noted_by: str | None = Field(default=None, max_length=100)
    loan_cycle: int | None = Field(default=None, ge=0)
    recommended_loan_amount: Decimal | None = Field(default=None, ge=0)
    approved_loan_amount: Decimal | None = Field(default=None, ge=0)
    application_date: date | None = None


class LoanUpdateRequest(BaseModel):
    """Manual correction of a loan; the only path to Overdue/Default."""

    model_config = ConfigDict(use_enum_values=True)

    outstanding_balance: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: LoanStatus | None = None
    payment_period_weeks: int | None = Field(default=None, ge=0)
    due_date: str | None = Field(default=None, max_length=20)


class LoanDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    control_number: str
    date_of_release: date | None = None
    total_amount: Decimal
    amortization: Decimal
    terms: int
    mode: str
    outstanding_balance: Decimal
    paid_weeks: int
    payment_period_weeks: int
    status: str
    due_date: str | None = None
    deductions: str | None = None
    amount_release: Decimal
    method_of_payment: str | None = None
    credit_history: str | None = None
    recommended_by: str | None = None
    approved_by: str | None = None
    checked_by: str | None = None
    noted_by: str | None = None
    loan_cycle: int | None = None
    recommended_loan_amount: Decimal | None = None
    approved_loan_amount: Decimal | None = None
    application_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoanListResponse(BaseModel):
    items: list[LoanDTO]
    total: int


class LoanPage(BaseModel):
    items: list[LoanDTO]
    pagination: Pagination


class LoanStatsResponse(BaseModel):
    total_loans: int
    active_loans: int
    paid_loans: int
    overdue_loans: int
    total_disbursed: Decimal
    total_outstanding: Decimal
