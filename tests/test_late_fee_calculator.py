"""
Testes do Cálculo de Atraso e Multa
===================================
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from src.api.admin.services.schedules.late_fee_calculator import (
    compute_charges, compute_late_fee, compute_overdue_days,
)
from src.core.utils.enums import LateFeeMode, ScheduleStatus

DUE = date(2024, 3, 10)


def charges(today, status=ScheduleStatus.PENDING, mode=LateFeeMode.PERCENTAGE, value=Decimal("5"),
            grace=3, expected=Decimal("100000"), paid=None):
    return compute_charges(
        due_date=DUE,
        today=today,
        status=status,
        late_fee_mode=mode,
        late_fee_value=value,
        grace_days=grace,
        expected_amount=expected,
        paid_amount=paid,
    )


class TestOverdueDays:

    def test_never_negative(self):
        assert compute_overdue_days(DUE, DUE - timedelta(days=5)) == 0
        assert compute_overdue_days(DUE, DUE) == 0
        assert compute_overdue_days(DUE, DUE + timedelta(days=1)) == 1


class TestComputeCharges:

    def test_percentage_fee_after_grace(self):
        """Testa 5% sobre 100.000, 10 dias de atraso e 3 de carência"""
        result = charges(DUE + timedelta(days=10))

        assert result.overdue_days == 10
        assert result.late_fee_amount == Decimal("5000")
        assert result.effective_amount == Decimal("105000")

    def test_no_fee_within_grace(self):
        result = charges(DUE + timedelta(days=3))

        assert result.overdue_days == 3
        assert result.late_fee_amount == Decimal("0")
        assert result.effective_amount == Decimal("100000")

    def test_fee_starts_one_day_after_grace(self):
        assert charges(DUE + timedelta(days=4)).late_fee_amount == Decimal("5000")

    def test_fixed_fee_is_verbatim(self):
        result = charges(DUE + timedelta(days=30), mode=LateFeeMode.FIXED, value=Decimal("2500"))

        assert result.late_fee_amount == Decimal("2500")
        assert result.effective_amount == Decimal("102500")

    def test_mode_none_never_charges(self):
        result = charges(DUE + timedelta(days=90), mode=LateFeeMode.NONE, value=None)

        assert result.overdue_days == 90
        assert result.late_fee_amount == Decimal("0")

    def test_partial_row_still_accrues(self):
        result = charges(DUE + timedelta(days=10), status=ScheduleStatus.PARTIAL)

        assert result.late_fee_amount == Decimal("5000")

    def test_paid_row_has_no_overdue(self):
        result = charges(DUE + timedelta(days=10), status=ScheduleStatus.PAID, paid=Decimal("105000"))

        assert result.overdue_days == 0
        assert result.late_fee_amount == Decimal("0")
        assert result.effective_amount == Decimal("105000")

    def test_skipped_row_has_no_fee(self):
        result = charges(DUE + timedelta(days=10), status=ScheduleStatus.SKIPPED)

        assert result.overdue_days == 0
        assert result.effective_amount == Decimal("100000")

    @pytest.mark.parametrize("days", [0, 1, 3, 4, 30, 365])
    def test_effective_is_expected_plus_fee(self, days):
        result = charges(DUE + timedelta(days=days))

        assert result.effective_amount == Decimal("100000") + result.late_fee_amount


class TestComputeLateFee:

    def test_percentage_rounds_half_up(self):
        """Testa arredondamento para a unidade (CLP sem centavos)"""
        fee = compute_late_fee(10, LateFeeMode.PERCENTAGE, Decimal("2.5"), 0, Decimal("1001"))

        # 1001 * 2.5% = 25.025
        assert fee == Decimal("25")

    def test_grace_none_counts_as_zero(self):
        assert compute_late_fee(1, LateFeeMode.FIXED, Decimal("100"), None, Decimal("1000")) == Decimal("100")
