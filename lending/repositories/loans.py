from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lending.models.loan import Loan
from lending.repositories.base import LoanStore


class SqlLoanStore(LoanStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    def savepoint(self):
        return self.db.begin_nested()

    async def refresh(self, obj) -> None:
        await self.db.refresh(obj)

    async def get(self, loan_id: int, *, for_update: bool = False) -> Loan | None:
        stmt = select(Loan).where(Loan.id == loan_id, Loan.deleted_at.is_(None))
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.db.execute(stmt)).scalars().first()

    async def update_progress(
        self,
        loan_id: int,
        *,
        outstanding_balance: Decimal,
        paid_weeks: int,
        status: str,
    ) -> None:
        stmt = (
            update(Loan)
            .where(Loan.id == loan_id)
            .values(
                outstanding_balance=outstanding_balance,
                paid_weeks=paid_weeks,
                status=status,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(stmt)
