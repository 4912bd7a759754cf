import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lending.api import deps
from lending.db.session import get_db
from lending.schemas.common import build_pagination, normalize_paging
from lending.schemas.payment import (
    NextPaymentWeekResponse,
    PaymentCreateRequest,
    PaymentDTO,
    PaymentListResponse,
    PaymentPage,
    PaymentProgressResponse,
    PaymentUpdateRequest,
    WeekRemainingBalanceResponse,
)
from lending.services import payments as payment_service
from lending.services.payment_engine import PaymentEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentDTO, status_code=201, summary="Record a payment")
async def create_payment(
    payload: PaymentCreateRequest,
    engine: PaymentEngine = Depends(deps.get_payment_engine),
    db: AsyncSession = Depends(get_db),
) -> PaymentDTO:
    payment = await engine.apply_payment(payload)
    await db.commit()
    logger.info(
        "Payment recorded",
        extra={"payment_id": payment.id, "loan_id": payment.loan_id, "week_number": payment.week_number},
    )
    return PaymentDTO.model_validate(payment)


@router.get("", response_model=PaymentPage, summary="List payments")
async def list_payments(
    page: int = Query(1),
    limit: int = Query(payment_service.DEFAULT_PAYMENT_PAGE_LIMIT),
    db: AsyncSession = Depends(get_db),
) -> PaymentPage:
    page, limit, offset = normalize_paging(page, limit, payment_service.DEFAULT_PAYMENT_PAGE_LIMIT)
    items, total = await payment_service.list_payments(db, limit=limit, offset=offset)
    return PaymentPage(
        items=[PaymentDTO.model_validate(item) for item in items],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/loan/{loan_id}", response_model=PaymentListResponse, summary="List payments for a loan")
async def list_loan_payments(
    loan_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> PaymentListResponse:
    items = await payment_service.list_payments_for_loan(db, loan_id)
    return PaymentListResponse(
        items=[PaymentDTO.model_validate(item) for item in items],
        total=len(items),
    )


@router.get(
    "/loan/{loan_id}/progress",
    response_model=PaymentProgressResponse,
    summary="Current week progress for a loan",
)
async def get_payment_progress(
    loan_id: int = Path(ge=1),
    engine: PaymentEngine = Depends(deps.get_payment_engine),
) -> PaymentProgressResponse:
    return await engine.payment_progress(loan_id)


@router.get(
    "/loan/{loan_id}/next-week",
    response_model=NextPaymentWeekResponse,
    summary="Next unpaid week for a loan",
)
async def get_next_payment_week(
    loan_id: int = Path(ge=1),
    engine: PaymentEngine = Depends(deps.get_payment_engine),
) -> NextPaymentWeekResponse:
    next_week = await engine.next_payment_week(loan_id)
    return NextPaymentWeekResponse(loan_id=loan_id, next_week=next_week)


@router.get(
    "/loan/{loan_id}/week/{week_number}/remaining",
    response_model=WeekRemainingBalanceResponse,
    summary="Amount still due for a loan week",
)
async def get_week_remaining_balance(
    loan_id: int = Path(ge=1),
    week_number: int = Path(ge=1),
    engine: PaymentEngine = Depends(deps.get_payment_engine),
) -> WeekRemainingBalanceResponse:
    remaining = await engine.remaining_balance_for_week(loan_id, week_number)
    return WeekRemainingBalanceResponse(
        loan_id=loan_id,
        week_number=week_number,
        remaining_balance=remaining,
    )


@router.get("/{payment_id}", response_model=PaymentDTO, summary="Get a payment")
async def get_payment(
    payment_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> PaymentDTO:
    payment = await payment_service.get_payment(db, payment_id)
    return PaymentDTO.model_validate(payment)


@router.put("/{payment_id}", response_model=PaymentDTO, summary="Correct a payment")
async def update_payment(
    payload: PaymentUpdateRequest,
    payment_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> PaymentDTO:
    payment = await payment_service.update_payment(db, payment_id, payload)
    await db.commit()
    return PaymentDTO.model_validate(payment)


@router.delete("/{payment_id}", status_code=204, summary="Delete a payment")
async def delete_payment(
    payment_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> None:
    await payment_service.delete_payment(db, payment_id)
    await db.commit()
