import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import BASE_TIME, make_loan, make_payment

from lending.core.exceptions import ConflictError, DomainValidationError, NotFoundError
from lending.schemas.payment import PaymentCreateRequest
from lending.services.payment_engine import PaymentEngine, parse_payment_date


def _request(**overrides) -> PaymentCreateRequest:
    fields = dict(
        loan_id=1,
        amount_due=Decimal("500.00"),
        amount_paid=Decimal("500.00"),
        status="Paid",
        payment_method="Cash",
    )
    fields.update(overrides)
    return PaymentCreateRequest(**fields)


def _partial(amount: str, **overrides) -> PaymentCreateRequest:
    return _request(
        amount_paid=Decimal(amount),
        status="Partial",
        is_partial=True,
        week_number=1,
        **overrides,
    )


@pytest.mark.asyncio
async def test_full_payment_defaults_to_next_week_and_advances_loan(engine, loan, loan_store):
    payment = await engine.apply_payment(_request())

    assert payment.week_number == 1
    assert payment.remaining_balance == Decimal("0.00")
    assert payment.payment_date == BASE_TIME
    assert loan.paid_weeks == 1
    assert loan.outstanding_balance == Decimal("1500.00")
    assert loan.status == "Active"
    assert loan_store.locked == [loan.id]
    assert loan_store.refreshed == []


@pytest.mark.asyncio
async def test_unknown_loan_is_not_found(engine):
    with pytest.raises(NotFoundError):
        await engine.apply_payment(_request(loan_id=99))


@pytest.mark.asyncio
async def test_second_full_payment_for_week_conflicts(engine, loan, ledger):
    await engine.apply_payment(_request(week_number=1))

    with pytest.raises(ConflictError) as excinfo:
        await engine.apply_payment(_request(week_number=1))

    assert "week 1" in excinfo.value.message
    assert len(ledger.payments) == 1
    assert loan.paid_weeks == 1


@pytest.mark.asyncio
async def test_partials_accumulate_until_week_completes(engine, loan, ledger):
    first = await engine.apply_payment(_partial("300.00"))
    assert first.remaining_balance == Decimal("200.00")
    assert loan.paid_weeks == 0
    assert loan.outstanding_balance == Decimal("1700.00")
    assert first.completes_week is False

    second = await engine.apply_payment(_partial("200.00"))
    assert second.remaining_balance == Decimal("0.00")
    assert loan.paid_weeks == 1
    assert loan.outstanding_balance == Decimal("1500.00")
    assert all(payment.completes_week for payment in ledger.payments)


@pytest.mark.asyncio
async def test_partial_larger_than_week_floors_remaining_at_zero(engine, loan):
    payment = await engine.apply_payment(_partial("650.00"))

    assert payment.remaining_balance == Decimal("0.00")
    assert loan.paid_weeks == 1


@pytest.mark.asyncio
async def test_loan_balance_never_goes_negative(engine, ledger):
    ledger.loans[1] = make_loan(outstanding_balance=Decimal("100.00"))

    await engine.apply_payment(_request(amount_paid=Decimal("500.00")))

    assert ledger.loans[1].outstanding_balance == Decimal("0.00")
    assert ledger.loans[1].status == "Paid"


@pytest.mark.asyncio
async def test_out_of_order_full_payment_jumps_paid_weeks(engine, loan):
    await engine.apply_payment(_request(week_number=3))

    assert loan.paid_weeks == 3
    assert loan.status == "Active"


@pytest.mark.asyncio
async def test_explicit_completion_flag_counts_week(engine, loan):
    await engine.apply_payment(
        _request(status="Partial", is_partial=True, completes_week=True, amount_paid=Decimal("100.00"))
    )

    assert loan.paid_weeks == 1


@pytest.mark.asyncio
async def test_pending_full_payment_does_not_complete_week(engine, loan):
    await engine.apply_payment(_request(status="Pending"))

    assert loan.paid_weeks == 0
    assert loan.outstanding_balance == Decimal("1500.00")


@pytest.mark.asyncio
async def test_last_week_marks_loan_paid_despite_rounding_residue(engine, ledger):
    ledger.loans[1] = make_loan(paid_weeks=3, outstanding_balance=Decimal("500.01"))

    await engine.apply_payment(_request(week_number=4))

    loan = ledger.loans[1]
    assert loan.outstanding_balance == Decimal("0.01")
    assert loan.paid_weeks == 4
    assert loan.status == "Paid"


@pytest.mark.asyncio
async def test_remaining_balance_for_week_is_side_effect_free(engine, loan, ledger):
    await engine.apply_payment(_partial("120.00"))
    before = len(ledger.payments)

    first = await engine.remaining_balance_for_week(loan.id, 1)
    second = await engine.remaining_balance_for_week(loan.id, 1)

    assert first == second == Decimal("380.00")
    assert len(ledger.payments) == before
    assert await engine.remaining_balance_for_week(loan.id, 2) == Decimal("500.00")


@pytest.mark.asyncio
async def test_remaining_balance_for_unknown_loan(engine):
    with pytest.raises(NotFoundError):
        await engine.remaining_balance_for_week(42, 1)


@pytest.mark.asyncio
async def test_next_payment_week_skips_settled_weeks(engine, loan, ledger):
    ledger.payments.extend(
        [
            make_payment(id=1, week_number=1),
            make_payment(id=2, week_number=2),
            make_payment(id=3, week_number=3, is_partial=True, status="Partial"),
        ]
    )

    assert await engine.next_payment_week(loan.id) == 3


@pytest.mark.asyncio
async def test_next_payment_week_is_bounded_on_corrupt_data(engine, ledger, caplog):
    ledger.loans[1] = make_loan(payment_period_weeks=2)
    ledger.payments.extend(make_payment(id=week, week_number=week) for week in range(1, 10))

    with caplog.at_level(logging.WARNING, logger="lending.services.payment_engine"):
        week = await engine.next_payment_week(1)

    assert week == 4
    assert "Stopped resolving next payment week" in caplog.text


@pytest.mark.asyncio
async def test_overpayment_rejected_when_policy_rejects(loan_store, payment_store, loan, ledger):
    engine = PaymentEngine(loan_store, payment_store, overpayment_policy="reject")

    with pytest.raises(DomainValidationError):
        await engine.apply_payment(_request(amount_paid=Decimal("600.00")))

    assert ledger.payments == []


@pytest.mark.asyncio
async def test_overpayment_capped_when_policy_caps(loan_store, payment_store, loan):
    engine = PaymentEngine(loan_store, payment_store, overpayment_policy="cap")

    payment = await engine.apply_payment(_request(amount_paid=Decimal("600.00")))

    assert payment.amount_paid == Decimal("500.00")
    assert loan.outstanding_balance == Decimal("1500.00")


@pytest.mark.asyncio
async def test_overpayment_allowed_by_default(engine, loan):
    payment = await engine.apply_payment(_request(amount_paid=Decimal("600.00")))

    assert payment.amount_paid == Decimal("600.00")
    assert loan.outstanding_balance == Decimal("1400.00")


def test_unknown_overpayment_policy_is_refused(loan_store, payment_store):
    with pytest.raises(ValueError):
        PaymentEngine(loan_store, payment_store, overpayment_policy="refund")


@pytest.mark.asyncio
async def test_progress_failure_keeps_payment_and_logs_warning(
    engine, loan, loan_store, payment_store, ledger, monkeypatch, caplog
):
    async def _broken_update(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(loan_store, "update_progress", _broken_update)
    await engine.apply_payment(_partial("300.00"))

    with caplog.at_level(logging.WARNING, logger="lending.services.payment_engine"):
        payment = await engine.apply_payment(_partial("200.00"))

    assert payment.id is not None
    assert len(ledger.payments) == 2
    assert loan.paid_weeks == 0
    assert loan.outstanding_balance == Decimal("2000.00")
    # rolled back with the failed savepoint
    assert not any(p.completes_week for p in ledger.payments)
    assert "progress was not updated" in caplog.text
    assert loan_store.refreshed == [loan, loan]
    assert payment_store.refreshed[-1] is payment


@pytest.mark.asyncio
async def test_payment_progress_reports_current_week(engine, loan):
    await engine.apply_payment(_request(week_number=1))
    await engine.apply_payment(_request(week_number=2, **_partial_fields("150.00")))

    progress = await engine.payment_progress(loan.id)

    assert progress.current_week == 2
    assert progress.paid_weeks == 1
    assert progress.total_weeks == 4
    assert progress.remaining_balance == Decimal("350.00")
    assert [p.amount_paid for p in progress.partial_payments] == [Decimal("150.00")]
    assert progress.is_week_completed is False


def _partial_fields(amount: str) -> dict:
    return {"amount_paid": Decimal(amount), "status": "Partial", "is_partial": True}


def test_parse_payment_date_accepts_plain_dates():
    parsed = parse_payment_date("2026-03-05")
    assert parsed == datetime(2026, 3, 5, tzinfo=timezone.utc)


def test_parse_payment_date_accepts_iso_timestamps():
    parsed = parse_payment_date("2026-03-05T10:30:00Z")
    assert parsed == datetime(2026, 3, 5, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("raw", [None, "", "next tuesday", "05/03/2026"])
def test_parse_payment_date_falls_back_to_now(raw):
    assert parse_payment_date(raw, now=lambda: BASE_TIME) == BASE_TIME
