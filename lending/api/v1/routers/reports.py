from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lending.db.session import get_db
from lending.schemas.report import HistoricalReportResponse, PeriodReport, ReportPeriodType
from lending.services import reports as report_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/weekly", response_model=PeriodReport, summary="Totals for the current week")
async def get_weekly_report(db: AsyncSession = Depends(get_db)) -> PeriodReport:
    return await report_service.weekly_report(db)


@router.get("/monthly", response_model=PeriodReport, summary="Totals for the current month")
async def get_monthly_report(db: AsyncSession = Depends(get_db)) -> PeriodReport:
    return await report_service.monthly_report(db)


@router.get("/history", response_model=HistoricalReportResponse, summary="Totals per past period")
async def get_historical_report(
    period_type: ReportPeriodType = Query(ReportPeriodType.WEEKLY),
    periods: int = Query(
        report_service.DEFAULT_HISTORY_PERIODS, ge=1, le=report_service.MAX_HISTORY_PERIODS
    ),
    db: AsyncSession = Depends(get_db),
) -> HistoricalReportResponse:
    return await report_service.historical_report(db, period_type, periods)
