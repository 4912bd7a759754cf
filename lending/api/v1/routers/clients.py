from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lending.db.session import get_db
from lending.schemas.client import (
    ClientCreateRequest,
    ClientDTO,
    ClientPage,
    ClientStatsResponse,
    ClientUpdateRequest,
    DuplicateCheckResponse,
)
from lending.schemas.common import build_pagination, normalize_paging
from lending.services import clients as client_service

router = APIRouter(prefix="/clients", tags=["clients"])


def _page(items, page: int, limit: int, total: int) -> ClientPage:
    return ClientPage(
        items=[ClientDTO.model_validate(item) for item in items],
        pagination=build_pagination(page, limit, total),
    )


@router.post("", response_model=ClientDTO, status_code=201, summary="Register a client")
async def create_client(
    payload: ClientCreateRequest,
    db: AsyncSession = Depends(get_db),
) -> ClientDTO:
    client = await client_service.create_client(db, payload)
    await db.commit()
    return ClientDTO.model_validate(client)


@router.get("", response_model=ClientPage, summary="List clients")
async def list_clients(
    page: int = Query(1),
    limit: int = Query(client_service.DEFAULT_CLIENT_PAGE_LIMIT),
    search: str | None = Query(None, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> ClientPage:
    page, limit, offset = normalize_paging(page, limit, client_service.DEFAULT_CLIENT_PAGE_LIMIT)
    items, total = await client_service.list_clients(db, limit=limit, offset=offset, search=search)
    return _page(items, page, limit, total)


@router.get("/search", response_model=ClientPage, summary="Search clients")
async def search_clients(
    q: str = Query(..., max_length=100),
    page: int = Query(1),
    limit: int = Query(client_service.DEFAULT_CLIENT_PAGE_LIMIT),
    db: AsyncSession = Depends(get_db),
) -> ClientPage:
    page, limit, offset = normalize_paging(page, limit, client_service.DEFAULT_CLIENT_PAGE_LIMIT)
    items, total = await client_service.search_clients(db, q, limit=limit, offset=offset)
    return _page(items, page, limit, total)


@router.get(
    "/check-duplicate",
    response_model=DuplicateCheckResponse,
    summary="Check for clients with a similar name",
)
async def check_duplicate(
    name: str = Query(..., max_length=200),
    db: AsyncSession = Depends(get_db),
) -> DuplicateCheckResponse:
    return await client_service.check_duplicate(db, name)


@router.get("/stats", response_model=ClientStatsResponse, summary="Client totals")
async def get_client_stats(db: AsyncSession = Depends(get_db)) -> ClientStatsResponse:
    return await client_service.client_stats(db)


@router.get(
    "/control-number/{control_number}",
    response_model=ClientDTO,
    summary="Get a client by control number",
)
async def get_client_by_control_number(
    control_number: str,
    db: AsyncSession = Depends(get_db),
) -> ClientDTO:
    client = await client_service.get_client_by_control_number(db, control_number)
    return ClientDTO.model_validate(client)


@router.get("/{client_id}", response_model=ClientDTO, summary="Get a client")
async def get_client(
    client_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> ClientDTO:
    return ClientDTO.model_validate(await client_service.get_client(db, client_id))


@router.put("/{client_id}", response_model=ClientDTO, summary="Update a client")
async def update_client(
    payload: ClientUpdateRequest,
    client_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> ClientDTO:
    client = await client_service.update_client(db, client_id, payload)
    await db.commit()
    return ClientDTO.model_validate(client)


@router.delete("/{client_id}", status_code=204, summary="Delete a client")
async def delete_client(
    client_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> None:
    await client_service.delete_client(db, client_id)
    await db.commit()


@router.patch("/{client_id}/restore", response_model=ClientDTO, summary="Restore a deleted client")
async def restore_client(
    client_id: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
) -> ClientDTO:
    client = await client_service.restore_client(db, client_id)
    await db.commit()
    return ClientDTO.model_validate(client)
