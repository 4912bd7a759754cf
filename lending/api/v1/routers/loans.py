from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lending.db.session import get_db
from lending.schemas.common import build_pagination, normalize_paging
from lending.schemas.loan import (
    LoanCreateRequest,
    LoanDTO,
    LoanListResponse,
    LoanPage,
    LoanStatsResponse,
    LoanStatus,
    LoanUpdateRequest,
)
from lending.services import loans as loan_service

router = APIRouter(prefix="/loans", tags=["loans"])


@router.post("", response_model=LoanDTO, status_code=201, summary="Create a loan")
async def create_loan(
    payload: LoanCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> LoanDTO:
    loan = await loan_service.create_loan(db, payload)
    await db.commit()
    return LoanDTO.model_validate(loan)


@router.get("", response_model=LoanPage, summary="List loans")
async def list_loans(
    page: int = Query(1),
    limit: int = Query(loan_service.DEFAULT_LOAN_PAGE_LIMIT),
    status: LoanStatus | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> LoanPage:
    page, limit, offset = normalize_paging(page, limit, loan_service.DEFAULT_LOAN_PAGE_LIMIT)
    items, total = await loan_service.list_loans(
        db,
        limit=limit,
        offset=offset,
        status=status.value if status else None,
    )
    return LoanPage(
        items=[LoanDTO.model_validate(item) for item in items],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/stats", response_model=LoanStatsResponse, summary="Loan portfolio totals")
async def get_loan_stats(db: AsyncSession = Depends(get_db)) -> LoanStatsResponse:
    return await loan_service.loan_stats(db)


@router.get("/client/{client_id}", response_model=LoanListResponse, summary="List loans for a client")
async def list_client_loans(
    client_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> LoanListResponse:
    items = await loan_service.list_loans_for_client(db, client_id)
    return LoanListResponse(items=[LoanDTO.model_validate(item) for item in items], total=len(items))


@router.get("/{loan_id}", response_model=LoanDTO, summary="Get a loan")
async def get_loan(
    loan_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> LoanDTO:
    return LoanDTO.model_validate(await loan_service.get_loan(db, loan_id))


@router.put("/{loan_id}", response_model=LoanDTO, summary="Correct a loan")
async def update_loan(
    payload: LoanUpdateRequest,
    loan_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> LoanDTO:
    loan = await loan_service.update_loan(db, loan_id, payload)
    await db.commit()
    return LoanDTO.model_validate(loan)


@router.delete("/{loan_id}", status_code=204, summary="Delete a loan")
async def delete_loan(
    loan_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> None:
    await loan_service.delete_loan(db, loan_id)
    await db.commit()
