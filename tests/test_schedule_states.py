"""
Testes da Máquina de Estados da Parcela
=======================================
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from src.api.admin.services.schedules.schedule_states import (
    Paid, Partial, Pending, Skipped, TransactionRef,
    apply_state, register_payment, reopen, skip, state_of, unlink_payment,
)
from src.core.exceptions import ConflictError, InvariantViolation
from src.core.utils.enums import ScheduleStatus

TX = TransactionRef(transaction_id=7, amount=Decimal("105000"), description="TRANSF", timestamp=datetime(2024, 3, 20))


def blank_row(**overrides):
    data = dict(
        id=1, status=ScheduleStatus.PENDING, paid_amount=None, paid_date=None, note=None,
        transaction_id=None, transaction_amount=None, transaction_description=None, transaction_timestamp=None,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


class TestRegisterPayment:

    def test_full_payment_becomes_paid(self):
        state = register_payment(Pending(), Decimal("105000"), date(2024, 3, 20), TX, Decimal("105000"))

        assert isinstance(state, Paid)
        assert state.paid_amount == Decimal("105000")

    def test_overpayment_becomes_paid(self):
        state = register_payment(Pending(), Decimal("200000"), date(2024, 3, 20), TX, Decimal("105000"))

        assert isinstance(state, Paid)

    def test_insufficient_payment_becomes_partial(self):
        state = register_payment(Pending(), Decimal("50000"), date(2024, 3, 20), TX, Decimal("105000"))

        assert isinstance(state, Partial)
        assert state.status == ScheduleStatus.PARTIAL

    def test_partial_can_be_completed(self):
        partial = Partial(Decimal("50000"), date(2024, 3, 20), TX)

        state = register_payment(partial, Decimal("105000"), date(2024, 3, 25), TX, Decimal("105000"))

        assert isinstance(state, Paid)
        assert state.paid_date == date(2024, 3, 25)

    def test_paid_cannot_be_paid_again(self):
        with pytest.raises(ConflictError):
            register_payment(Paid(Decimal("1"), date(2024, 1, 1), TX), Decimal("1"), date(2024, 1, 1), TX, Decimal("1"))

    def test_skipped_cannot_be_paid(self):
        with pytest.raises(ConflictError):
            register_payment(Skipped("dispensado"), Decimal("1"), date(2024, 1, 1), TX, Decimal("1"))


class TestOtherTransitions:

    def test_unlink_only_from_paid(self):
        assert isinstance(unlink_payment(Paid(Decimal("1"), date(2024, 1, 1), TX)), Pending)

        for state in (Pending(), Partial(Decimal("1"), date(2024, 1, 1), TX), Skipped()):
            with pytest.raises(ConflictError):
                unlink_payment(state)

    def test_skip_only_from_pending(self):
        assert skip(Pending(), "mês sem uso") == Skipped("mês sem uso")

        with pytest.raises(ConflictError):
            skip(Paid(Decimal("1"), date(2024, 1, 1), TX), "x")

    def test_reopen_only_from_skipped(self):
        assert isinstance(reopen(Skipped("x")), Pending)

        with pytest.raises(ConflictError):
            reopen(Pending())


class TestRowMapping:

    def test_paid_row_without_amount_is_invariant_violation(self):
        row = blank_row(status=ScheduleStatus.PAID, paid_date=date(2024, 1, 1), transaction_id=7)

        with pytest.raises(InvariantViolation):
            state_of(row)

    def test_apply_paid_then_pending_clears_payment(self):
        row = blank_row()

        apply_state(row, Paid(Decimal("105000"), date(2024, 3, 20), TX, note="ok"))
        assert row.status == ScheduleStatus.PAID
        assert row.transaction_id == 7
        assert row.transaction_description == "TRANSF"
        assert state_of(row) == Paid(Decimal("105000"), date(2024, 3, 20), TX, note="ok")

        apply_state(row, Pending())
        assert row.status == ScheduleStatus.PENDING
        assert row.paid_amount is None
        assert row.paid_date is None
        assert row.transaction_id is None
        assert row.transaction_amount is None
        assert row.note is None

    def test_skipped_keeps_reason_in_note(self):
        row = blank_row()

        apply_state(row, Skipped("dispensado pelo fornecedor"))

        assert row.status == ScheduleStatus.SKIPPED
        assert row.note == "dispensado pelo fornecedor"
        assert state_of(row) == Skipped("dispensado pelo fornecedor")
