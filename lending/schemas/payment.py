from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from lending.schemas.common import Pagination


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"
    OVERDUE = "Overdue"


class PaymentCreateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    loan_id: int = Field(ge=1)
    week_number: int | None = Field(default=None, ge=1)
    amount_due: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    amount_paid: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    status: PaymentStatus
    payment_method: str = Field(min_length=1, max_length=50)
    is_partial: bool = False
    completes_week: bool = False
    # Kept as raw text: unparsable dates fall back to the processing time.
    payment_date: str | None = None


class PaymentUpdateRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    payment_date: datetime | None = None
    amount_due: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    amount_paid: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    remaining_balance: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: PaymentStatus | None = None
    payment_method: str | None = Field(default=None, min_length=1, max_length=50)
    is_partial: bool | None = None
    completes_week: bool | None = None


class PaymentDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    loan_id: int
    week_number: int
    payment_date: datetime | None = None
    amount_due: Decimal
    amount_paid: Decimal
    remaining_balance: Decimal
    status: str
    payment_method: str | None = None
    is_partial: bool
    completes_week: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaymentListResponse(BaseModel):
    items: list[PaymentDTO]
    total: int


class PaymentPage(BaseModel):
    items: list[PaymentDTO]
    pagination: Pagination


class PaymentProgressResponse(BaseModel):
    loan_id: int
    current_week: int
    paid_weeks: int
    total_weeks: int
    amortization: Decimal
    remaining_balance: Decimal
    partial_payments: list[PaymentDTO]
    is_week_completed: bool


class NextPaymentWeekResponse(BaseModel):
    loan_id: int
    next_week: int


class WeekRemainingBalanceResponse(BaseModel):
    loan_id: int
    week_number: int
    remaining_balance: Decimal
