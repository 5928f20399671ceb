# src/api/admin/services/schedules/late_fee_calculator.py
"""
Cálculo de atraso e multa
=========================

Função pura: recalculada toda vez que uma parcela é exibida ou regenerada.
O valor persistido é apenas cache.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from src.api.admin.services.schedules.amount_resolver import round_currency
from src.core.utils.enums import LateFeeMode, ScheduleStatus

ZERO = Decimal("0")

OPEN_STATUSES = (ScheduleStatus.PENDING, ScheduleStatus.PARTIAL)


@dataclass(frozen=True)
class ScheduleCharges:
    overdue_days: int
    late_fee_amount: Decimal
    effective_amount: Decimal


def compute_overdue_days(due_date: date, today: date) -> int:
    return max(0, (today - due_date).days)


def compute_late_fee(
        overdue_days: int,
        late_fee_mode: LateFeeMode,
        late_fee_value: Optional[Decimal],
        grace_days: Optional[int],
        expected_amount: Decimal,
) -> Decimal:
    if late_fee_mode == LateFeeMode.NONE or late_fee_value is None:
        return ZERO

    if overdue_days <= (grace_days or 0):
        return ZERO

    if late_fee_mode == LateFeeMode.FIXED:
        return Decimal(late_fee_value)

    if late_fee_mode == LateFeeMode.PERCENTAGE:
        return round_currency(Decimal(expected_amount) * Decimal(late_fee_value) / Decimal(100))

    return ZERO


def compute_charges(
        due_date: date,
        today: date,
        status: ScheduleStatus,
        late_fee_mode: LateFeeMode,
        late_fee_value: Optional[Decimal],
        grace_days: Optional[int],
        expected_amount: Decimal,
        paid_amount: Optional[Decimal] = None,
) -> ScheduleCharges:
    """
    Atraso e multa só se aplicam a parcelas abertas (PENDING/PARTIAL).
    PAID vale o que foi pago; SKIPPED vale o esperado, sem multa.
    """
    expected_amount = Decimal(expected_amount)

    if status == ScheduleStatus.PAID:
        return ScheduleCharges(0, ZERO, Decimal(paid_amount if paid_amount is not None else expected_amount))

    if status not in OPEN_STATUSES:
        return ScheduleCharges(0, ZERO, expected_amount)

    overdue_days = compute_overdue_days(due_date, today)
    late_fee = compute_late_fee(overdue_days, late_fee_mode, late_fee_value, grace_days, expected_amount)

    return ScheduleCharges(
        overdue_days=overdue_days,
        late_fee_amount=late_fee,
        effective_amount=expected_amount + late_fee,
    )


def compute_row_charges(row, service, today: date) -> ScheduleCharges:
    """Atalho para uma linha ORM + seu serviço."""
    return compute_charges(
        due_date=row.due_date,
        today=today,
        status=row.status,
        late_fee_mode=service.late_fee_mode,
        late_fee_value=service.late_fee_value,
        grace_days=service.late_fee_grace_days,
        expected_amount=row.expected_amount,
        paid_amount=row.paid_amount,
    )


def apply_charges(row, charges: ScheduleCharges) -> None:
    """Atualiza o cache de atraso/multa gravado na linha."""
    row.overdue_days = charges.overdue_days
    row.late_fee_amount = charges.late_fee_amount
    row.effective_amount = charges.effective_amount
