from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from lending.models.loan import Loan
from lending.models.payment import Payment
from lending.repositories.base import LoanStore, PaymentStore
from lending.schemas.loan import LoanStatus
from lending.schemas.payment import PaymentStatus
from lending.utils.money import floor_zero, money


@dataclass(frozen=True)
class LoanProgress:
    outstanding_balance: Decimal
    paid_weeks: int
    status: str
    week_completed: bool


async def advance_loan(
    loans: LoanStore,
    payments: PaymentStore,
    loan: Loan,
    payment: Payment,
) -> LoanProgress:
    """Fold a freshly recorded payment into the loan's balance, weeks and status."""
    new_balance = floor_zero(money(loan.outstanding_balance) - money(payment.amount_paid))

    week_completed = bool(payment.completes_week) or (
        not payment.is_partial and payment.status == PaymentStatus.PAID.value
    )
    if not week_completed and payment.is_partial:
        paid_so_far = await payments.sum_partials(loan.id, payment.week_number)
        if paid_so_far >= money(loan.amortization):
            week_completed = True
            await payments.mark_week_completed(loan.id, payment.week_number)

    paid_weeks = loan.paid_weeks or 0
    if week_completed:
        # out-of-order payments jump ahead instead of counting one week
        paid_weeks = max(paid_weeks + 1, payment.week_number)

    status = loan.status
    if new_balance == 0 or paid_weeks >= (loan.payment_period_weeks or 0):
        status = LoanStatus.PAID.value

    await loans.update_progress(
        loan.id,
        outstanding_balance=new_balance,
        paid_weeks=paid_weeks,
        status=status,
    )
    return LoanProgress(
        outstanding_balance=new_balance,
        paid_weeks=paid_weeks,
        status=status,
        week_completed=week_completed,
    )
