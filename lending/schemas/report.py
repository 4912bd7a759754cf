from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel


class ReportPeriodType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class PeriodReport(BaseModel):
    weekly_payment_total: Decimal
    weekly_release_total: Decimal
    total_clients: int
    active_clients: int
    overdue_clients: int
    active_payment_total: Decimal
    total_payment_this_week: Decimal


class HistoricalRecord(BaseModel):
    period: str
    start_date: date
    end_date: date
    payments: Decimal
    releases: Decimal
    active_clients: int
    overdue_clients: int
    net_flow: Decimal


class HistoryMetadata(BaseModel):
    period_type: ReportPeriodType
    periods_count: int
    average_payment: Decimal
    average_release: Decimal
    total_payments: Decimal
    total_releases: Decimal


class HistoricalReportResponse(BaseModel):
    records: list[HistoricalRecord]
    metadata: HistoryMetadata
