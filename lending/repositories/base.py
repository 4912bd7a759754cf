from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, AsyncContextManager

from lending.models.loan import Loan
from lending.models.payment import Payment
from lending.utils.money import total


class Store(ABC):
    @abstractmethod
    def savepoint(self) -> AsyncContextManager[Any]:
        """Nested transaction; rolled back when the block raises."""
        pass

    @abstractmethod
    async def refresh(self, obj: Any) -> None:
        """Reload a row whose in-memory state was discarded by a savepoint rollback."""
        pass


class LoanStore(Store):
    @abstractmethod
    async def get(self, loan_id: int, *, for_update: bool = False) -> Loan | None:
        pass

    @abstractmethod
    async def update_progress(
        self,
        loan_id: int,
        *,
        outstanding_balance: Decimal,
        paid_weeks: int,
        status: str,
    ) -> None:
        """Write balance, paid weeks and status in a single statement."""
        pass


class PaymentStore(Store):
    @abstractmethod
    async def add(self, payment: Payment) -> Payment:
        """Persist and flush; a second full payment for the same week is a conflict."""
        pass

    @abstractmethod
    async def find_full_payment(self, loan_id: int, week_number: int) -> Payment | None:
        pass

    @abstractmethod
    async def find_settled_payment(self, loan_id: int, week_number: int) -> Payment | None:
        """Non-partial payment with status Paid for the week, if any."""
        pass

    @abstractmethod
    async def list_partials(self, loan_id: int, week_number: int) -> list[Payment]:
        """Live partial payments for the week, oldest first."""
        pass

    @abstractmethod
    async def mark_week_completed(self, loan_id: int, week_number: int) -> int:
        pass

    async def sum_partials(self, loan_id: int, week_number: int) -> Decimal:
        partials = await self.list_partials(loan_id, week_number)
        return total(payment.amount_paid for payment in partials)
