from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.exceptions import ConflictError, NotFoundError
from lending.models.client import Client
from lending.models.loan import Loan
from lending.schemas.loan import (
    DEFAULT_LOAN_MODE,
    LoanCreateRequest,
    LoanStatsResponse,
    LoanStatus,
    LoanUpdateRequest,
)
from lending.services.audit import model_snapshot, record_audit_event
from lending.utils.money import money

DEFAULT_LOAN_PAGE_LIMIT = 20
CONTROL_NUMBER_CONSTRAINT = "uq_loans_control_number"


def generate_loan_control_number(now: float | None = None) -> str:
    return f"LOAN-{int(now if now is not None else time.time())}"


async def _require_client(db: AsyncSession, client_id: int) -> Client:
    stmt = select(Client).where(Client.id == client_id, Client.deleted_at.is_(None))
    client = (await db.execute(stmt)).scalars().first()
    if client is None:
        raise NotFoundError(f"client {client_id} not found", details={"client_id": client_id})
    return client


async def create_loan(db: AsyncSession, payload: LoanCreateRequest) -> Loan:
    await _require_client(db, payload.client_id)
    data = payload.model_dump()
    control_number = data.pop("control_number") or generate_loan_control_number()
    outstanding = data.pop("outstanding_balance")
    period_weeks = data.pop("payment_period_weeks")
    loan = Loan(
        **data,
        control_number=control_number,
        outstanding_balance=money(outstanding if outstanding is not None else payload.total_amount),
        payment_period_weeks=period_weeks or payload.terms,
        paid_weeks=0,
    )
    loan.mode = payload.mode or DEFAULT_LOAN_MODE
    loan.status = payload.status or LoanStatus.ACTIVE.value
    try:
        async with db.begin_nested():
            db.add(loan)
            await db.flush()
    except IntegrityError as exc:
        if CONTROL_NUMBER_CONSTRAINT in str(exc.orig):
            raise ConflictError(
                f"loan control number {control_number} already exists",
                details={"control_number": control_number},
            ) from exc
        raise
    record_audit_event(
        action="loan.created",
        resource_type="loan",
        resource_id=loan.id,
        new_value=model_snapshot(loan),
    )
    return loan


async def get_loan(db: AsyncSession, loan_id: int) -> Loan:
    stmt = select(Loan).where(Loan.id == loan_id, Loan.deleted_at.is_(None))
    loan = (await db.execute(stmt)).scalars().first()
    if loan is None:
        raise NotFoundError(f"loan {loan_id} not found", details={"loan_id": loan_id})
    return loan


async def list_loans(
    db: AsyncSession,
    *,
    limit: int,
    offset: int,
    status: str | None = None,
) -> tuple[list[Loan], int]:
    conditions = [Loan.deleted_at.is_(None)]
    if status:
        conditions.append(Loan.status == status)
    count_stmt = select(func.count()).select_from(Loan).where(*conditions)
    total = int((await db.execute(count_stmt)).scalar_one() or 0)
    stmt = (
        select(Loan)
        .where(*conditions)
        .order_by(Loan.created_at.desc(), Loan.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list((await db.execute(stmt)).scalars().all()), total


async def list_loans_for_client(db: AsyncSession, client_id: int) -> list[Loan]:
    stmt = (
        select(Loan)
        .where(Loan.client_id == client_id, Loan.deleted_at.is_(None))
        .order_by(Loan.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


async def update_loan(db: AsyncSession, loan_id: int, payload: LoanUpdateRequest) -> Loan:
    loan = await get_loan(db, loan_id)
    before = model_snapshot(loan)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if field == "outstanding_balance":
            value = money(value)
        setattr(loan, field, value)
    db.add(loan)
    await db.flush()
    record_audit_event(
        action="loan.updated",
        resource_type="loan",
        resource_id=loan.id,
        old_value=before,
        new_value=model_snapshot(loan),
    )
    return loan


async def delete_loan(db: AsyncSession, loan_id: int) -> None:
    loan = await get_loan(db, loan_id)
    loan.deleted_at = datetime.now(timezone.utc)
    db.add(loan)
    await db.flush()
    record_audit_event(action="loan.deleted", resource_type="loan", resource_id=loan.id)


async def loan_stats(db: AsyncSession) -> LoanStatsResponse:
    live = Loan.deleted_at.is_(None)

    async def _count(*conditions) -> int:
        stmt = select(func.count()).select_from(Loan).where(live, *conditions)
        return int((await db.execute(stmt)).scalar_one() or 0)

    async def _sum(column) -> Decimal:
        stmt = select(func.coalesce(func.sum(column), 0)).where(live)
        return money((await db.execute(stmt)).scalar_one())

    return LoanStatsResponse(
        total_loans=await _count(),
        active_loans=await _count(Loan.status == LoanStatus.ACTIVE.value),
        paid_loans=await _count(Loan.status == LoanStatus.PAID.value),
        overdue_loans=await _count(Loan.status == LoanStatus.OVERDUE.value),
        total_disbursed=await _sum(Loan.total_amount),
        total_outstanding=await _sum(Loan.outstanding_balance),
    )
