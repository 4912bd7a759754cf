from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Callable

from lending.core.exceptions import (
    ConflictError,
    DependencyFailure,
    DomainValidationError,
    NotFoundError,
)
from lending.core.settings import settings
from lending.models.loan import Loan
from lending.models.payment import Payment
from lending.repositories.base import LoanStore, PaymentStore
from lending.schemas.payment import PaymentCreateRequest, PaymentDTO, PaymentProgressResponse
from lending.services.audit import model_snapshot, record_audit_event
from lending.services.loan_progress import advance_loan
from lending.utils.money import ZERO, floor_zero, money, total

logger = logging.getLogger(__name__)

OVERPAYMENT_POLICIES = ("allow", "reject", "cap")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_payment_date(value: str | None, *, now: Callable[[], datetime] = _utcnow) -> datetime:
    """Accept YYYY-MM-DD or a full ISO timestamp; anything else means "now"."""
    if not value:
        return now()
    text = value.strip()
    try:
        parsed = date.fromisoformat(text)
        return datetime.combine(parsed, time.min, tzinfo=timezone.utc)
    except ValueError:
        pass
    try:
        parsed_dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.info("Unparsable payment_date=%r; using current time", value)
        return now()
    if parsed_dt.tzinfo is None:
        parsed_dt = parsed_dt.replace(tzinfo=timezone.utc)
    return parsed_dt


class PaymentEngine:
    """Records payments against a loan and advances the loan's progress."""

    def __init__(
        self,
        loans: LoanStore,
        payments: PaymentStore,
        *,
        overpayment_policy: str | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        policy = overpayment_policy or settings.overpayment_policy
        if policy not in OVERPAYMENT_POLICIES:
            raise ValueError(f"Unknown overpayment policy: {policy}")
        self.loans = loans
        self.payments = payments
        self.overpayment_policy = policy
        self.now = now or _utcnow

    async def _require_loan(self, loan_id: int, *, for_update: bool = False) -> Loan:
        loan = await self.loans.get(loan_id, for_update=for_update)
        if loan is None:
            raise NotFoundError(f"loan {loan_id} not found", details={"loan_id": loan_id})
        return loan

    def _apply_overpayment_policy(self, amount_due: Decimal, amount_paid: Decimal) -> Decimal:
        if amount_paid <= amount_due or self.overpayment_policy == "allow":
            return amount_paid
        if self.overpayment_policy == "reject":
            raise DomainValidationError(
                "amount_paid exceeds amount_due",
                details={"amount_due": str(amount_due), "amount_paid": str(amount_paid)},
            )
        return amount_due

    async def apply_payment(self, payload: PaymentCreateRequest) -> Payment:
        loan = await self._require_loan(payload.loan_id, for_update=True)
        week_number = payload.week_number or (loan.paid_weeks or 0) + 1

        amount_due = money(payload.amount_due)
        amount_paid = self._apply_overpayment_policy(amount_due, money(payload.amount_paid))

        if payload.is_partial:
            paid_so_far = await self.payments.sum_partials(loan.id, week_number)
            remaining_before = floor_zero(money(loan.amortization) - paid_so_far)
            remaining_balance = floor_zero(remaining_before - amount_paid)
        else:
            existing = await self.payments.find_full_payment(loan.id, week_number)
            if existing is not None:
                raise ConflictError(
                    f"full payment already exists for week {week_number}",
                    details={"loan_id": loan.id, "week_number": week_number},
                )
            remaining_balance = ZERO

        payment = Payment(
            loan_id=loan.id,
            week_number=week_number,
            payment_date=parse_payment_date(payload.payment_date, now=self.now),
            amount_due=amount_due,
            amount_paid=amount_paid,
            remaining_balance=remaining_balance,
            status=payload.status,
            payment_method=payload.payment_method,
            is_partial=payload.is_partial,
            completes_week=payload.completes_week,
        )
        payment = await self.payments.add(payment)
        payment_id, loan_id = payment.id, loan.id
        record_audit_event(
            action="payment.recorded",
            resource_type="payment",
            resource_id=payment_id,
            new_value=model_snapshot(payment),
        )

        try:
            await self._advance(loan, payment)
        except DependencyFailure as exc:
            logger.warning(
                "Payment %s recorded but loan %s progress was not updated: %s",
                payment_id,
                loan_id,
                exc,
            )
            record_audit_event(
                action="loan_progress.failed",
                resource_type="loan",
                resource_id=loan_id,
                level=logging.WARNING,
                detail=str(exc.__cause__ or exc),
            )
            # the rolled-back savepoint expired both rows
            await self.loans.refresh(loan)
            await self.payments.refresh(payment)
        return payment

    async def _advance(self, loan: Loan, payment: Payment) -> None:
        before = model_snapshot(loan)
        try:
            async with self.loans.savepoint():
                progress = await advance_loan(self.loans, self.payments, loan, payment)
        except Exception as exc:
            raise DependencyFailure(f"loan progress update failed: {exc}") from exc
        record_audit_event(
            action="loan.progressed",
            resource_type="loan",
            resource_id=loan.id,
            old_value={key: before.get(key) for key in ("outstanding_balance", "paid_weeks", "status")},
            new_value={
                "outstanding_balance": progress.outstanding_balance,
                "paid_weeks": progress.paid_weeks,
                "status": progress.status,
            },
        )

    async def remaining_balance_for_week(self, loan_id: int, week_number: int) -> Decimal:
        loan = await self._require_loan(loan_id)
        paid_so_far = await self.payments.sum_partials(loan.id, week_number)
        return floor_zero(money(loan.amortization) - paid_so_far)

    async def next_payment_week(self, loan_id: int) -> int:
        loan = await self._require_loan(loan_id)
        candidate = (loan.paid_weeks or 0) + 1
        max_checks = max(loan.payment_period_weeks or 0, 1) + 1
        for _ in range(max_checks):
            if await self.payments.find_settled_payment(loan.id, candidate) is None:
                return candidate
            candidate += 1
        logger.warning(
            "Stopped resolving next payment week for loan %s after %s checks; returning week %s",
            loan.id,
            max_checks,
            candidate,
        )
        return candidate

    async def payment_progress(self, loan_id: int) -> PaymentProgressResponse:
        loan = await self._require_loan(loan_id)
        current_week = (loan.paid_weeks or 0) + 1
        partials = await self.payments.list_partials(loan.id, current_week)
        paid_so_far = total(p.amount_paid for p in partials)
        remaining = floor_zero(money(loan.amortization) - paid_so_far)
        return PaymentProgressResponse(
            loan_id=loan.id,
            current_week=current_week,
            paid_weeks=loan.paid_weeks or 0,
            total_weeks=loan.payment_period_weeks or 0,
            amortization=money(loan.amortization),
            remaining_balance=remaining,
            partial_payments=[PaymentDTO.model_validate(p) for p in partials],
            is_week_completed=remaining == ZERO,
        )
