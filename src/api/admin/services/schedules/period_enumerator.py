# src/api/admin/services/schedules/period_enumerator.py
"""
Enumerador de Períodos
======================

Dada uma data âncora, uma frequência e uma quantidade N, produz N janelas
de cobrança ordenadas, contíguas e sem sobreposição:

    period_end(k) + 1 dia == period_start(k + 1)

Passos em meses são sempre calculados a partir da âncora original, então
o ajuste de fim de mês (31/01 → 29/02) não "contamina" os meses seguintes.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from src.api.admin.utils.date_math import add_months
from src.core.config import config
from src.core.exceptions import ValidationError
from src.core.utils.enums import ServiceFrequency, ServiceRecurrenceType

# Frequências em dias fixos
DAY_STEPS = {
    ServiceFrequency.WEEKLY: 7,
    ServiceFrequency.BIWEEKLY: 14,
}

# Frequências em meses de calendário
MONTH_STEPS = {
    ServiceFrequency.MONTHLY: 1,
    ServiceFrequency.BIMONTHLY: 2,
    ServiceFrequency.QUARTERLY: 3,
    ServiceFrequency.SEMIANNUAL: 6,
    ServiceFrequency.ANNUAL: 12,
}


@dataclass(frozen=True)
class BillingPeriod:
    period_start: date
    period_end: date  # inclusivo

    def contains(self, value: date) -> bool:
        return self.period_start <= value <= self.period_end

    def overlaps(self, start: date, end: date) -> bool:
        return self.period_start <= end and start <= self.period_end


def is_single_period(frequency: ServiceFrequency, recurrence_type: ServiceRecurrenceType) -> bool:
    return recurrence_type == ServiceRecurrenceType.ONE_OFF or frequency == ServiceFrequency.ONCE


def parse_anchor(anchor) -> date:
    """Aceita date ou string ISO (YYYY-MM-DD)."""
    if isinstance(anchor, datetime):
        return anchor.date()
    if isinstance(anchor, date):
        return anchor
    if isinstance(anchor, str):
        try:
            return date.fromisoformat(anchor)
        except ValueError:
            raise ValidationError(f"Data âncora inválida: '{anchor}'", {"anchor": anchor})
    raise ValidationError("Data âncora inválida", {"anchor": repr(anchor)})


def _nth_start(anchor: date, frequency: ServiceFrequency, k: int) -> date:
    if frequency in DAY_STEPS:
        return anchor + timedelta(days=DAY_STEPS[frequency] * k)
    return add_months(anchor, MONTH_STEPS[frequency] * k)


def enumerate_periods(
        anchor,
        frequency: ServiceFrequency,
        count: int,
        recurrence_type: ServiceRecurrenceType = ServiceRecurrenceType.RECURRING,
) -> list[BillingPeriod]:
    """
    Gera a sequência de períodos a partir da âncora.

    Raises:
        ValidationError: count fora de [1, MAX_GENERATION_MONTHS] ou âncora inválida
    """
    start = parse_anchor(anchor)
    frequency = ServiceFrequency(frequency)

    if frequency == ServiceFrequency.ONCE:
        return [BillingPeriod(period_start=start, period_end=start)]

    if recurrence_type == ServiceRecurrenceType.ONE_OFF:
        count = 1

    if isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= config.MAX_GENERATION_MONTHS:
        raise ValidationError(
            f"Quantidade de períodos deve estar entre 1 e {config.MAX_GENERATION_MONTHS}",
            {"count": count},
        )

    starts = [_nth_start(start, frequency, k) for k in range(count + 1)]

    return [
        BillingPeriod(period_start=starts[k], period_end=starts[k + 1] - timedelta(days=1))
        for k in range(count)
    ]
