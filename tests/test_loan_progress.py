from decimal import Decimal

import pytest

from conftest import BASE_TIME, make_loan, make_payment

from lending.services.loan_progress import advance_loan


@pytest.mark.asyncio
async def test_full_paid_payment_completes_week(ledger, loan_store, payment_store):
    loan = make_loan()
    ledger.loans[loan.id] = loan
    payment = make_payment(week_number=1)

    progress = await advance_loan(loan_store, payment_store, loan, payment)

    assert progress.week_completed is True
    assert progress.paid_weeks == 1
    assert progress.outstanding_balance == Decimal("1500.00")
    assert loan_store.updates == [
        {
            "loan_id": loan.id,
            "outstanding_balance": Decimal("1500.00"),
            "paid_weeks": 1,
            "status": "Active",
        }
    ]


@pytest.mark.asyncio
async def test_zero_balance_marks_loan_paid_before_last_week(ledger, loan_store, payment_store):
    loan = make_loan(outstanding_balance=Decimal("500.00"))
    ledger.loans[loan.id] = loan

    progress = await advance_loan(loan_store, payment_store, loan, make_payment(week_number=1))

    assert progress.outstanding_balance == Decimal("0.00")
    assert progress.paid_weeks == 1
    assert progress.status == "Paid"


@pytest.mark.asyncio
async def test_partial_below_amortization_leaves_weeks_alone(ledger, loan_store, payment_store):
    loan = make_loan(paid_weeks=2)
    ledger.loans[loan.id] = loan
    partial = make_payment(
        week_number=3, amount_paid=Decimal("100.00"), is_partial=True, status="Partial"
    )
    ledger.payments.append(partial)

    progress = await advance_loan(loan_store, payment_store, loan, partial)

    assert progress.week_completed is False
    assert progress.paid_weeks == 2
    assert partial.completes_week is False


@pytest.mark.asyncio
async def test_partial_sum_marks_every_partial_of_the_week(ledger, loan_store, payment_store):
    loan = make_loan()
    ledger.loans[loan.id] = loan
    partials = [
        make_payment(id=1, amount_paid=Decimal("250.00"), is_partial=True, status="Partial"),
        make_payment(id=2, amount_paid=Decimal("250.00"), is_partial=True, status="Partial"),
    ]
    ledger.payments.extend(partials)

    progress = await advance_loan(loan_store, payment_store, loan, partials[-1])

    assert progress.week_completed is True
    assert progress.paid_weeks == 1
    assert all(p.completes_week for p in partials)


@pytest.mark.asyncio
async def test_deleted_partials_do_not_count(ledger, loan_store, payment_store):
    loan = make_loan()
    ledger.loans[loan.id] = loan
    ledger.payments.append(
        make_payment(
            id=1,
            amount_paid=Decimal("400.00"),
            is_partial=True,
            status="Partial",
            deleted_at=BASE_TIME,
        )
    )
    partial = make_payment(id=2, amount_paid=Decimal("200.00"), is_partial=True, status="Partial")
    ledger.payments.append(partial)

    progress = await advance_loan(loan_store, payment_store, loan, partial)

    assert progress.week_completed is False
