from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.exceptions import NotFoundError
from lending.models.payment import Payment
from lending.schemas.payment import PaymentUpdateRequest
from lending.services.audit import model_snapshot, record_audit_event

DEFAULT_PAYMENT_PAGE_LIMIT = 50


async def list_payments_for_loan(db: AsyncSession, loan_id: int) -> list[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.loan_id == loan_id, Payment.deleted_at.is_(None))
        .order_by(Payment.week_number.asc(), Payment.created_at.asc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_payment(db: AsyncSession, payment_id: int) -> Payment:
    stmt = select(Payment).where(Payment.id == payment_id, Payment.deleted_at.is_(None))
    payment = (await db.execute(stmt)).scalars().first()
    if payment is None:
        raise NotFoundError(f"payment {payment_id} not found", details={"payment_id": payment_id})
    return payment


async def list_payments(
    db: AsyncSession,
    *,
    limit: int,
    offset: int,
) -> tuple[list[Payment], int]:
    count_stmt = select(func.count()).select_from(Payment).where(Payment.deleted_at.is_(None))
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    stmt = (
        select(Payment)
        .where(Payment.deleted_at.is_(None))
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list((await db.execute(stmt)).scalars().all()), total


async def update_payment(
    db: AsyncSession,
    payment_id: int,
    payload: PaymentUpdateRequest,
) -> Payment:
    """Correct a payment row in place; loan progress is left as is."""
    payment = await get_payment(db, payment_id)
    before = model_snapshot(payment)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(payment, field, value)
    db.add(payment)
    await db.flush()
    record_audit_event(
        action="payment.updated",
        resource_type="payment",
        resource_id=payment.id,
        old_value=before,
        new_value=model_snapshot(payment),
    )
    return payment


async def delete_payment(db: AsyncSession, payment_id: int) -> None:
    payment = await get_payment(db, payment_id)
    payment.deleted_at = datetime.now(timezone.utc)
    db.add(payment)
    await db.flush()
    record_audit_event(
        action="payment.deleted",
        resource_type="payment",
        resource_id=payment.id,
    )
