# src/api/admin/services/schedules/due_date_resolver.py
"""
Resolução de vencimento e emissão
=================================

- Vencimento: dia fixo do mês (due_day) ou o último dia do período.
- Emissão: apenas informativa (exibição/relatórios), nunca altera o vencimento.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from src.api.admin.services.schedules.period_enumerator import BillingPeriod
from src.api.admin.utils.date_math import clamp_day, month_after
from src.core.utils.enums import EmissionMode


@dataclass(frozen=True)
class EmissionWindow:
    start: date
    end: date


def _day_in_period(period: BillingPeriod, day: int) -> date:
    """
    Dia do mês ancorado no mês de início do período.
    Se cair antes do início, passa para o mês seguinte; nunca passa do fim do período.
    """
    candidate = clamp_day(period.period_start.year, period.period_start.month, day)
    if candidate < period.period_start:
        year, month = month_after(period.period_start)
        candidate = clamp_day(year, month, day)
    return min(candidate, period.period_end)


def resolve_due_date(period: BillingPeriod, due_day: Optional[int]) -> date:
    if due_day is None:
        return period.period_end
    return _day_in_period(period, due_day)


def resolve_emission(
        period: BillingPeriod,
        emission_mode: EmissionMode,
        emission_day: Optional[int] = None,
        emission_start_day: Optional[int] = None,
        emission_end_day: Optional[int] = None,
        emission_exact_date: Optional[date] = None,
) -> Optional[EmissionWindow]:
    """Retorna a janela de emissão, ou None se o modo estiver incompleto."""
    if emission_mode == EmissionMode.FIXED_DAY:
        if emission_day is None:
            return None
        day = _day_in_period(period, emission_day)
        return EmissionWindow(start=day, end=day)

    if emission_mode == EmissionMode.DATE_RANGE:
        if emission_start_day is None or emission_end_day is None:
            return None
        start = _day_in_period(period, emission_start_day)
        end = max(start, _day_in_period(period, emission_end_day))
        return EmissionWindow(start=start, end=end)

    if emission_mode == EmissionMode.SPECIFIC_DATE:
        if emission_exact_date is None:
            return None
        return EmissionWindow(start=emission_exact_date, end=emission_exact_date)

    return None
