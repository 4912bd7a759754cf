from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.exceptions import ConflictError
from lending.models.payment import Payment
from lending.repositories.base import PaymentStore
from lending.utils.money import money

FULL_WEEK_INDEX = "uq_payments_full_week"


class SqlPaymentStore(PaymentStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    def savepoint(self):
        return self.db.begin_nested()

    async def refresh(self, obj) -> None:
        await self.db.refresh(obj)

    def _live(self, loan_id: int, week_number: int):
        return select(Payment).where(
            Payment.loan_id == loan_id,
            Payment.week_number == week_number,
            Payment.deleted_at.is_(None),
        )

    async def add(self, payment: Payment) -> Payment:
        try:
            async with self.db.begin_nested():
                self.db.add(payment)
                await self.db.flush()
        except IntegrityError as exc:
            if FULL_WEEK_INDEX in str(exc.orig):
                raise ConflictError(
                    f"full payment already exists for week {payment.week_number}",
                    details={"loan_id": payment.loan_id, "week_number": payment.week_number},
                ) from exc
            raise
        return payment

    async def find_full_payment(self, loan_id: int, week_number: int) -> Payment | None:
        stmt = self._live(loan_id, week_number).where(Payment.is_partial.is_(False)).limit(1)
        return (await self.db.execute(stmt)).scalars().first()

    async def find_settled_payment(self, loan_id: int, week_number: int) -> Payment | None:
        stmt = (
            self._live(loan_id, week_number)
            .where(Payment.is_partial.is_(False), Payment.status == "Paid")
            .limit(1)
        )
        return (await self.db.execute(stmt)).scalars().first()

    async def list_partials(self, loan_id: int, week_number: int) -> list[Payment]:
        stmt = (
            self._live(loan_id, week_number)
            .where(Payment.is_partial.is_(True))
            .order_by(Payment.created_at.asc(), Payment.id.asc())
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def sum_partials(self, loan_id: int, week_number: int) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount_paid), 0)).where(
            Payment.loan_id == loan_id,
            Payment.week_number == week_number,
            Payment.is_partial.is_(True),
            Payment.deleted_at.is_(None),
        )
        return money((await self.db.execute(stmt)).scalar_one())

    async def mark_week_completed(self, loan_id: int, week_number: int) -> int:
        stmt = (
            update(Payment)
            .where(
                Payment.loan_id == loan_id,
                Payment.week_number == week_number,
                Payment.is_partial.is_(True),
                Payment.deleted_at.is_(None),
            )
            .values(completes_week=True, updated_at=func.now())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        return result.rowcount or 0
