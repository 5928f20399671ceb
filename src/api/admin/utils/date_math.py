# Arquivo: src/api/admin/utils/date_math.py

"""
Utilitários de aritmética de calendário
=======================================
Soma de meses com ajuste para o último dia válido do mês.
"""

from calendar import monthrange
from datetime import date

from dateutil.relativedelta import relativedelta


def last_day_of_month(year: int, month: int) -> int:
    """
    Retorna o último dia do mês.

    Examples:
        >>> last_day_of_month(2024, 2)
        29
        >>> last_day_of_month(2023, 2)
        28
    """
    return monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """
    Monta a data com o dia pedido, limitado ao último dia do mês.

    Examples:
        >>> clamp_day(2024, 2, 31)
        datetime.date(2024, 2, 29)
    """
    return date(year, month, min(day, last_day_of_month(year, month)))


def add_months(anchor: date, months: int) -> date:
    """
    Soma meses a uma data. Dias inexistentes no mês de destino
    (31/01 + 1 mês) caem no último dia válido (29/02 em ano bissexto).

    Sempre calcule a partir da âncora original (anchor + k meses)
    para o ajuste não acumular: 31/01 → 29/02 → 31/03.
    """
    return anchor + relativedelta(months=months)


def month_after(value: date) -> tuple[int, int]:
    """Retorna (ano, mês) do mês seguinte."""
    following = value + relativedelta(months=1)
    return following.year, following.month
