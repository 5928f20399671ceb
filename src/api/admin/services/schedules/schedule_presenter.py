# src/api/admin/services/schedules/schedule_presenter.py
"""
Leitura de parcelas com atraso/multa recalculados para a data de hoje.
Nada aqui grava no banco.
"""

from datetime import date
from decimal import Decimal

from src.api.admin.services.schedules.due_date_resolver import resolve_emission
from src.api.admin.services.schedules.late_fee_calculator import OPEN_STATUSES, compute_row_charges
from src.api.admin.services.schedules.period_enumerator import BillingPeriod
from src.api.schemas.services import ServiceResponse, ServiceScheduleResponse
from src.core import models
from src.core.utils.enums import ScheduleStatus


def present_schedule(row: models.ServiceSchedule, service: models.Service, today: date) -> ServiceScheduleResponse:
    charges = compute_row_charges(row, service, today)
    emission = resolve_emission(
        BillingPeriod(row.period_start, row.period_end),
        service.emission_mode,
        emission_day=service.emission_day,
        emission_start_day=service.emission_start_day,
        emission_end_day=service.emission_end_day,
        emission_exact_date=service.emission_exact_date,
    )

    return ServiceScheduleResponse.model_validate(row).model_copy(update={
        "overdue_days": charges.overdue_days,
        "late_fee_amount": charges.late_fee_amount,
        "effective_amount": charges.effective_amount,
        "emission_start": emission.start if emission else None,
        "emission_end": emission.end if emission else None,
    })


def summarize_service(
        service: models.Service,
        rows: list[models.ServiceSchedule],
        today: date,
) -> ServiceResponse:
    """Agregados: pendentes, vencidas, total esperado e total pago."""
    pending_count = 0
    overdue_count = 0
    total_expected = Decimal("0")
    total_paid = Decimal("0")

    for row in rows:
        charges = compute_row_charges(row, service, today)

        if row.status in OPEN_STATUSES:
            if charges.overdue_days > 0:
                overdue_count += 1
            else:
                pending_count += 1

        if row.status != ScheduleStatus.SKIPPED:
            total_expected += charges.effective_amount

        if row.paid_amount is not None:
            total_paid += row.paid_amount

    return ServiceResponse.model_validate(service).model_copy(update={
        "pending_count": pending_count,
        "overdue_count": overdue_count,
        "total_expected": total_expected,
        "total_paid": total_paid,
    })


def present_service_with_schedules(
        service: models.Service,
        rows: list[models.ServiceSchedule],
        today: date,
) -> dict:
    ordered = sorted(rows, key=lambda r: r.period_start)
    return {
        "service": summarize_service(service, ordered, today),
        "schedules": [present_schedule(row, service, today) for row in ordered],
    }
