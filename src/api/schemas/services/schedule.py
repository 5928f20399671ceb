# schemas/services/schedule.py
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field

from ..base_schema import AppBaseModel
from .service import ServiceResponse
from src.core.utils.enums import ScheduleStatus


class RegisterPaymentRequest(AppBaseModel):
    transaction_id: int = Field(..., gt=0)
    paid_amount: Decimal = Field(..., gt=0, description="Valor pago na moeda de liquidação")
    paid_date: date
    note: Optional[str] = Field(None, max_length=500)

    # Concorrência otimista: o que o chamador viu por último
    expected_status: Optional[ScheduleStatus] = None
    expected_version: Optional[int] = Field(None, ge=1)


class ScheduleEditRequest(AppBaseModel):
    due_date: Optional[date] = None
    expected_amount: Optional[Decimal] = Field(None, gt=0)
    note: Optional[str] = Field(None, max_length=500)


class SkipScheduleRequest(AppBaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class ServiceScheduleResponse(AppBaseModel):
    id: int
    service_id: int
    period_start: date
    period_end: date
    due_date: date

    expected_amount: Decimal
    late_fee_amount: Decimal
    effective_amount: Decimal
    overdue_days: int
    indexation_rate: Optional[Decimal] = None
    amount_provisional: bool = False

    status: ScheduleStatus
    paid_amount: Optional[Decimal] = None
    paid_date: Optional[date] = None
    note: Optional[str] = None

    transaction_id: Optional[int] = None
    transaction_amount: Optional[Decimal] = None
    transaction_description: Optional[str] = None
    transaction_timestamp: Optional[datetime] = None

    version: int
    is_locked: bool

    # Informativo: janela de emissão do documento
    emission_start: Optional[date] = None
    emission_end: Optional[date] = None

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class ServiceWithSchedulesResponse(AppBaseModel):
    service: ServiceResponse
    schedules: list[ServiceScheduleResponse]
