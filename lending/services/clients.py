from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.exceptions import ConflictError, DomainValidationError, NotFoundError
from lending.models.client import Client
from lending.models.loan import Loan
from lending.schemas.client import (
    ClientCreateRequest,
    ClientStatsResponse,
    ClientUpdateRequest,
    DuplicateCheckResponse,
)
from lending.schemas.loan import LoanStatus
from lending.services.audit import model_snapshot, record_audit_event

DEFAULT_CLIENT_PAGE_LIMIT = 20
MINIMUM_CLIENT_AGE = 18
MINIMUM_CONTACT_DIGITS = 10
OPEN_LOAN_STATUSES = (LoanStatus.ACTIVE.value, LoanStatus.OVERDUE.value)
ACTIVE_CLIENT_WINDOW = timedelta(days=182)
CONTROL_NUMBER_CONSTRAINT = "uq_clients_control_number"


def validate_client_fields(
    *,
    age: int | None,
    contact_number: str | None,
    first_name: str | None,
    last_name: str | None,
    home_address: str | None,
) -> None:
    if age is None or age < MINIMUM_CLIENT_AGE:
        raise DomainValidationError("client must be at least 18 years old", details={"field": "age"})
    if not contact_number or len(contact_number) < MINIMUM_CONTACT_DIGITS:
        raise DomainValidationError(
            "contact number must be at least 10 digits", details={"field": "contact_number"}
        )
    if not (first_name or "").strip():
        raise DomainValidationError("first name is required", details={"field": "first_name"})
    if not (last_name or "").strip():
        raise DomainValidationError("last name is required", details={"field": "last_name"})
    if not (home_address or "").strip():
        raise DomainValidationError("home address is required", details={"field": "home_address"})


def _like(term: str) -> str:
    return f"%{term.strip()}%"


async def _count_clients(db: AsyncSession, *conditions) -> int:
    stmt = select(func.count()).select_from(Client).where(Client.deleted_at.is_(None), *conditions)
    return int((await db.execute(stmt)).scalar_one() or 0)


async def generate_client_control_number(db: AsyncSession, *, now: datetime | None = None) -> str:
    """MLP-<year>-<sequence>, the sequence being the live client count plus one."""
    year = (now or datetime.now(timezone.utc)).year
    count = await _count_clients(db)
    return f"MLP-{year}-{count + 1:03d}"


async def _find_by_control_number(db: AsyncSession, control_number: str) -> Client | None:
    stmt = select(Client).where(Client.control_number == control_number)
    return (await db.execute(stmt)).scalars().first()


async def create_client(db: AsyncSession, payload: ClientCreateRequest) -> Client:
    validate_client_fields(
        age=payload.age,
        contact_number=payload.contact_number,
        first_name=payload.first_name,
        last_name=payload.last_name,
        home_address=payload.home_address,
    )
    data = payload.model_dump()
    control_number = data.pop("control_number") or await generate_client_control_number(db)
    if await _find_by_control_number(db, control_number) is not None:
        raise ConflictError(
            f"client with control number {control_number} already exists",
            details={"control_number": control_number},
        )
    client = Client(**data, control_number=control_number)
    try:
        async with db.begin_nested():
            db.add(client)
            await db.flush()
    except IntegrityError as exc:
        if CONTROL_NUMBER_CONSTRAINT in str(exc.orig):
            raise ConflictError(
                f"client with control number {control_number} already exists",
                details={"control_number": control_number},
            ) from exc
        raise
    record_audit_event(
        action="client.created",
        resource_type="client",
        resource_id=client.id,
        new_value=model_snapshot(client),
    )
    return client


async def get_client(db: AsyncSession, client_id: int, *, include_deleted: bool = False) -> Client:
    stmt = select(Client).where(Client.id == client_id)
    if not include_deleted:
        stmt = stmt.where(Client.deleted_at.is_(None))
    client = (await db.execute(stmt)).scalars().first()
    if client is None:
        raise NotFoundError(f"client {client_id} not found", details={"client_id": client_id})
    return client


async def get_client_by_control_number(db: AsyncSession, control_number: str) -> Client:
    stmt = select(Client).where(
        Client.control_number == control_number, Client.deleted_at.is_(None)
    )
    client = (await db.execute(stmt)).scalars().first()
    if client is None:
        raise NotFoundError(
            f"client with control number {control_number} not found",
            details={"control_number": control_number},
        )
    return client


async def _page(
    db: AsyncSession, conditions: list, *, limit: int, offset: int
) -> tuple[list[Client], int]:
    total = await _count_clients(db, *conditions)
    stmt = (
        select(Client)
        .where(Client.deleted_at.is_(None), *conditions)
        .order_by(Client.created_at.desc(), Client.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list((await db.execute(stmt)).scalars().all()), total


async def list_clients(
    db: AsyncSession,
    *,
    limit: int,
    offset: int,
    search: str | None = None,
) -> tuple[list[Client], int]:
    conditions = []
    if search and search.strip():
        pattern = _like(search)
        conditions.append(
            or_(
                Client.first_name.ilike(pattern),
                Client.last_name.ilike(pattern),
                Client.control_number.ilike(pattern),
                Client.contact_number.ilike(pattern),
            )
        )
    return await _page(db, conditions, limit=limit, offset=offset)


async def search_clients(
    db: AsyncSession,
    query: str,
    *,
    limit: int,
    offset: int,
) -> tuple[list[Client], int]:
    if not query or not query.strip():
        raise DomainValidationError("search query is required", details={"field": "q"})
    pattern = _like(query)
    condition = or_(
        Client.first_name.ilike(pattern),
        Client.last_name.ilike(pattern),
        Client.control_number.ilike(pattern),
        Client.contact_number.ilike(pattern),
        Client.home_address.ilike(pattern),
        Client.nickname.ilike(pattern),
    )
    return await _page(db, [condition], limit=limit, offset=offset)


async def check_duplicate(db: AsyncSession, name: str) -> DuplicateCheckResponse:
    if not name or not name.strip():
        raise DomainValidationError("name is required", details={"field": "name"})
    pattern = _like(name)
    similar = await _count_clients(
        db,
        or_(
            Client.first_name.ilike(pattern),
            Client.last_name.ilike(pattern),
            (Client.first_name + " " + Client.last_name).ilike(pattern),
        ),
    )
    return DuplicateCheckResponse(
        is_duplicate=similar > 0,
        similar_count=similar,
        searched_name=name.strip(),
    )


async def update_client(db: AsyncSession, client_id: int, payload: ClientUpdateRequest) -> Client:
    client = await get_client(db, client_id)
    before = model_snapshot(client)
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None
    }
    for field, value in changes.items():
        setattr(client, field, value)
    validate_client_fields(
        age=client.age,
        contact_number=client.contact_number,
        first_name=client.first_name,
        last_name=client.last_name,
        home_address=client.home_address,
    )
    db.add(client)
    await db.flush()
    record_audit_event(
        action="client.updated",
        resource_type="client",
        resource_id=client.id,
        old_value=before,
        new_value=model_snapshot(client),
    )
    return client


async def _has_open_loans(db: AsyncSession, client_id: int) -> bool:
    stmt = select(func.count()).select_from(Loan).where(
        Loan.client_id == client_id,
        Loan.deleted_at.is_(None),
        Loan.status.in_(OPEN_LOAN_STATUSES),
    )
    return int((await db.execute(stmt)).scalar_one() or 0) > 0


async def delete_client(db: AsyncSession, client_id: int) -> None:
    client = await get_client(db, client_id)
    if await _has_open_loans(db, client.id):
        raise ConflictError(
            "cannot delete client with active loans", details={"client_id": client.id}
        )
    client.deleted_at = datetime.now(timezone.utc)
    db.add(client)
    await db.flush()
    record_audit_event(action="client.deleted", resource_type="client", resource_id=client.id)


async def restore_client(db: AsyncSession, client_id: int) -> Client:
    client = await get_client(db, client_id, include_deleted=True)
    if client.deleted_at is None:
        return client
    client.deleted_at = None
    db.add(client)
    await db.flush()
    record_audit_event(action="client.restored", resource_type="client", resource_id=client.id)
    return client


async def client_stats(db: AsyncSession, *, now: datetime | None = None) -> ClientStatsResponse:
    now = now or datetime.now(timezone.utc)
    first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    with_loans_stmt = (
        select(func.count(func.distinct(Client.id)))
        .select_from(Client)
        .join(Loan, Loan.client_id == Client.id)
        .where(
            Client.deleted_at.is_(None),
            Loan.deleted_at.is_(None),
            Loan.status.in_(OPEN_LOAN_STATUSES),
        )
    )
    with_active_loans = int((await db.execute(with_loans_stmt)).scalar_one() or 0)
    return ClientStatsResponse(
        total_clients=await _count_clients(db),
        active_clients=await _count_clients(db, Client.updated_at > now - ACTIVE_CLIENT_WINDOW),
        new_this_month=await _count_clients(db, Client.created_at >= first_of_month),
        with_active_loans=with_active_loans,
    )
