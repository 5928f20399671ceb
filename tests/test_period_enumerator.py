"""
Testes do Enumerador de Períodos
================================
Janelas de cobrança contíguas, ajuste de fim de mês e limites de quantidade
"""

import pytest
from datetime import date, datetime, timedelta

from src.api.admin.services.schedules.period_enumerator import (
    BillingPeriod, enumerate_periods, is_single_period, parse_anchor,
)
from src.api.admin.utils.date_math import add_months, clamp_day, last_day_of_month
from src.core.exceptions import ValidationError
from src.core.utils.enums import ServiceFrequency, ServiceRecurrenceType


# ═══════════════════════════════════════════════════════════
# ARITMÉTICA DE CALENDÁRIO
# ═══════════════════════════════════════════════════════════

class TestDateMath:

    def test_last_day_of_month_leap_year(self):
        assert last_day_of_month(2024, 2) == 29
        assert last_day_of_month(2023, 2) == 28

    def test_clamp_day(self):
        assert clamp_day(2024, 4, 31) == date(2024, 4, 30)
        assert clamp_day(2024, 4, 15) == date(2024, 4, 15)

    def test_add_months_does_not_compound_clamping(self):
        """Testa que 31/01 + k meses volta ao dia 31 quando o mês permite"""
        anchor = date(2024, 1, 31)
        assert add_months(anchor, 1) == date(2024, 2, 29)
        assert add_months(anchor, 2) == date(2024, 3, 31)
        assert add_months(anchor, 3) == date(2024, 4, 30)


# ═══════════════════════════════════════════════════════════
# ENUMERAÇÃO
# ═══════════════════════════════════════════════════════════

class TestEnumeratePeriods:

    def test_monthly_from_end_of_month(self):
        """Testa mensal começando em 31/01 de ano bissexto"""
        periods = enumerate_periods(date(2024, 1, 31), ServiceFrequency.MONTHLY, 3)

        assert [p.period_start for p in periods] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31),
        ]
        assert periods[-1].period_end == date(2024, 4, 29)

    def test_periods_are_contiguous(self):
        """Testa que o fim de cada período + 1 dia é o início do próximo"""
        for frequency in (
                ServiceFrequency.WEEKLY,
                ServiceFrequency.BIWEEKLY,
                ServiceFrequency.MONTHLY,
                ServiceFrequency.QUARTERLY,
                ServiceFrequency.ANNUAL,
        ):
            periods = enumerate_periods(date(2024, 1, 31), frequency, 12)
            assert len(periods) == 12
            for current, following in zip(periods, periods[1:]):
                assert current.period_end + timedelta(days=1) == following.period_start
                assert current.period_start <= current.period_end

    def test_weekly_steps_are_seven_days(self):
        periods = enumerate_periods(date(2024, 3, 4), ServiceFrequency.WEEKLY, 2)

        assert periods[0] == BillingPeriod(date(2024, 3, 4), date(2024, 3, 10))
        assert periods[1] == BillingPeriod(date(2024, 3, 11), date(2024, 3, 17))

    def test_biweekly_and_semiannual_steps(self):
        biweekly = enumerate_periods(date(2024, 1, 1), ServiceFrequency.BIWEEKLY, 2)
        semiannual = enumerate_periods(date(2024, 1, 1), ServiceFrequency.SEMIANNUAL, 2)

        assert biweekly[1].period_start == date(2024, 1, 15)
        assert semiannual[1].period_start == date(2024, 7, 1)
        assert semiannual[1].period_end == date(2024, 12, 31)

    def test_once_yields_single_day_period(self):
        periods = enumerate_periods(date(2024, 5, 10), ServiceFrequency.ONCE, 12)

        assert periods == [BillingPeriod(date(2024, 5, 10), date(2024, 5, 10))]

    def test_one_off_forces_single_period(self):
        periods = enumerate_periods(
            date(2024, 5, 1), ServiceFrequency.MONTHLY, 12, ServiceRecurrenceType.ONE_OFF
        )

        assert len(periods) == 1
        assert periods[0].period_end == date(2024, 5, 31)

    def test_accepts_iso_string_anchor(self):
        periods = enumerate_periods("2024-02-01", ServiceFrequency.MONTHLY, 1)

        assert periods[0] == BillingPeriod(date(2024, 2, 1), date(2024, 2, 29))

    @pytest.mark.parametrize("count", [0, -1, 121, 1000])
    def test_count_out_of_range_raises(self, count):
        with pytest.raises(ValidationError):
            enumerate_periods(date(2024, 1, 1), ServiceFrequency.MONTHLY, count)

    def test_count_upper_bound_is_accepted(self):
        periods = enumerate_periods(date(2024, 1, 1), ServiceFrequency.MONTHLY, 120)

        assert len(periods) == 120
        assert periods[-1].period_start == date(2033, 12, 1)

    def test_malformed_anchor_raises(self):
        with pytest.raises(ValidationError):
            enumerate_periods("31/01/2024", ServiceFrequency.MONTHLY, 3)

        with pytest.raises(ValidationError):
            parse_anchor(20240131)

    def test_datetime_anchor_is_truncated_to_date(self):
        assert parse_anchor(datetime(2024, 1, 31, 23, 59)) == date(2024, 1, 31)


class TestBillingPeriod:

    def test_overlaps_is_inclusive(self):
        period = BillingPeriod(date(2024, 1, 1), date(2024, 1, 31))

        assert period.overlaps(date(2024, 1, 31), date(2024, 2, 29))
        assert not period.overlaps(date(2024, 2, 1), date(2024, 2, 29))
        assert period.contains(date(2024, 1, 31))

    def test_is_single_period(self):
        assert is_single_period(ServiceFrequency.ONCE, ServiceRecurrenceType.RECURRING)
        assert is_single_period(ServiceFrequency.MONTHLY, ServiceRecurrenceType.ONE_OFF)
        assert not is_single_period(ServiceFrequency.MONTHLY, ServiceRecurrenceType.RECURRING)
