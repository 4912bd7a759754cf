from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lending.models.client import Client
from lending.models.loan import Loan
from lending.models.payment import Payment
from lending.schemas.loan import LoanStatus
from lending.schemas.payment import PaymentStatus
from lending.schemas.report import (
    HistoricalRecord,
    HistoricalReportResponse,
    HistoryMetadata,
    PeriodReport,
    ReportPeriodType,
)
from lending.utils.money import ZERO, money

DEFAULT_HISTORY_PERIODS = 6
MAX_HISTORY_PERIODS = 52
END_OF_DAY = time(23, 59, 59)


@dataclass(frozen=True)
class ReportWindow:
    start: datetime
    end: datetime
    label: str


def week_window(moment: datetime) -> ReportWindow:
    """Sunday 00:00:00 through Saturday 23:59:59 around ``moment``."""
    days_since_sunday = (moment.weekday() + 1) % 7
    sunday = (moment - timedelta(days=days_since_sunday)).date()
    saturday = sunday + timedelta(days=6)
    start = datetime.combine(sunday, time.min, tzinfo=timezone.utc)
    end = datetime.combine(saturday, END_OF_DAY, tzinfo=timezone.utc)
    label = f"{start:%b %d} - {end:%b %d, %Y}"
    return ReportWindow(start=start, end=end, label=label)


def month_window(year: int, month: int) -> ReportWindow:
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return ReportWindow(start=start, end=end, label=f"{end:%B %Y}")


def months_back(moment: datetime, count: int) -> tuple[int, int]:
    index = moment.year * 12 + (moment.month - 1) - count
    return index // 12, index % 12 + 1


def history_windows(
    period_type: ReportPeriodType | str, periods: int, now: datetime
) -> list[ReportWindow]:
    period_type = ReportPeriodType(period_type)
    if period_type == ReportPeriodType.WEEKLY:
        return [week_window(now - timedelta(days=7 * i)) for i in range(periods)]
    return [month_window(*months_back(now, i)) for i in range(periods)]


async def payment_total(db: AsyncSession, start: datetime, end: datetime) -> Decimal:
    stmt = select(func.coalesce(func.sum(Payment.amount_paid), 0)).where(
        Payment.status == PaymentStatus.PAID.value,
        Payment.deleted_at.is_(None),
        Payment.created_at >= start,
        Payment.created_at <= end,
    )
    return money((await db.execute(stmt)).scalar_one())


async def release_total(db: AsyncSession, start: datetime, end: datetime) -> Decimal:
    stmt = select(func.coalesce(func.sum(Loan.amount_release), 0)).where(
        Loan.deleted_at.is_(None),
        Loan.created_at >= start,
        Loan.created_at <= end,
    )
    return money((await db.execute(stmt)).scalar_one())


async def _clients_with_loan_status(db: AsyncSession, statuses: list[str], at: datetime) -> int:
    stmt = (
        select(func.count(func.distinct(Client.id)))
        .select_from(Client)
        .join(Loan, Loan.client_id == Client.id)
        .where(
            Client.deleted_at.is_(None),
            Loan.deleted_at.is_(None),
            Loan.status.in_(statuses),
            Loan.created_at <= at,
        )
    )
    return int((await db.execute(stmt)).scalar_one() or 0)


async def active_clients_at(db: AsyncSession, at: datetime) -> int:
    return await _clients_with_loan_status(db, [LoanStatus.ACTIVE.value], at)


async def overdue_clients_at(db: AsyncSession, at: datetime) -> int:
    return await _clients_with_loan_status(
        db, [LoanStatus.OVERDUE.value, LoanStatus.DEFAULT.value], at
    )


async def _period_report(db: AsyncSession, window: ReportWindow) -> PeriodReport:
    payments = await payment_total(db, window.start, window.end)
    releases = await release_total(db, window.start, window.end)
    active = await active_clients_at(db, window.end)
    overdue = await overdue_clients_at(db, window.end)
    return PeriodReport(
        weekly_payment_total=payments,
        weekly_release_total=releases,
        total_clients=active + overdue,
        active_clients=active,
        overdue_clients=overdue,
        active_payment_total=payments,
        total_payment_this_week=payments,
    )


async def weekly_report(db: AsyncSession, *, now: datetime | None = None) -> PeriodReport:
    now = now or datetime.now(timezone.utc)
    return await _period_report(db, week_window(now))


async def monthly_report(db: AsyncSession, *, now: datetime | None = None) -> PeriodReport:
    now = now or datetime.now(timezone.utc)
    return await _period_report(db, month_window(now.year, now.month))


async def historical_report(
    db: AsyncSession,
    period_type: ReportPeriodType | str = ReportPeriodType.WEEKLY,
    periods: int = DEFAULT_HISTORY_PERIODS,
    *,
    now: datetime | None = None,
) -> HistoricalReportResponse:
    now = now or datetime.now(timezone.utc)
    period_type = ReportPeriodType(period_type)
    records: list[HistoricalRecord] = []
    total_payments = ZERO
    total_releases = ZERO
    for window in history_windows(period_type, periods, now):
        payments = await payment_total(db, window.start, window.end)
        releases = await release_total(db, window.start, window.end)
        total_payments += payments
        total_releases += releases
        records.append(
            HistoricalRecord(
                period=window.label,
                start_date=window.start.date(),
                end_date=window.end.date(),
                payments=payments,
                releases=releases,
                active_clients=await active_clients_at(db, window.end),
                overdue_clients=await overdue_clients_at(db, window.end),
                net_flow=money(payments - releases),
            )
        )

    count = len(records)
    metadata = HistoryMetadata(
        period_type=period_type,
        periods_count=count,
        average_payment=money(total_payments / count) if count else ZERO,
        average_release=money(total_releases / count) if count else ZERO,
        total_payments=money(total_payments),
        total_releases=money(total_releases),
    )
    return HistoricalReportResponse(records=records, metadata=metadata)
