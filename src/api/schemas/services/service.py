# schemas/services/service.py
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, ConfigDict, Field, model_validator

from ..base_schema import AppBaseModel
from src.core.utils.enums import (
    AmountIndexation, EmissionMode, LateFeeMode, ServiceFrequency, ServiceObligationType,
    ServiceOwnership, ServiceRecurrenceType, ServiceStatus, ServiceType,
)

MAX_MONTHS = 120


class ServiceCreate(AppBaseModel):
    # Informações básicas
    name: str = Field(..., min_length=1, max_length=255)
    detail: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=2000)

    # Classificação
    service_type: ServiceType = ServiceType.BUSINESS
    ownership: ServiceOwnership = ServiceOwnership.COMPANY
    obligation_type: ServiceObligationType = ServiceObligationType.SERVICE
    recurrence_type: ServiceRecurrenceType = ServiceRecurrenceType.RECURRING

    # Contraparte
    counterpart_id: Optional[int] = Field(None, gt=0)
    counterpart_account_id: Optional[int] = Field(None, gt=0)
    account_reference: Optional[str] = Field(None, max_length=100)

    # Agenda
    frequency: ServiceFrequency = ServiceFrequency.MONTHLY
    start_date: date
    end_date: Optional[date] = None
    due_day: Optional[int] = Field(None, ge=1, le=31)
    months_to_generate: int = Field(12, ge=1, le=MAX_MONTHS)

    # Emissão
    emission_mode: EmissionMode = EmissionMode.FIXED_DAY
    emission_day: Optional[int] = Field(None, ge=1, le=31)
    emission_start_day: Optional[int] = Field(None, ge=1, le=31)
    emission_end_day: Optional[int] = Field(None, ge=1, le=31)
    emission_exact_date: Optional[date] = None

    # Financeiro
    default_amount: Decimal = Field(..., ge=0)
    amount_indexation: AmountIndexation = AmountIndexation.NONE
    late_fee_mode: LateFeeMode = LateFeeMode.NONE
    late_fee_value: Optional[Decimal] = Field(None, ge=0)
    late_fee_grace_days: Optional[int] = Field(None, ge=0, le=365)

    @model_validator(mode="after")
    def check_policies(self):
        if self.late_fee_mode != LateFeeMode.NONE and self.late_fee_value is None:
            raise ValueError("late_fee_value é obrigatório quando late_fee_mode não é NONE")

        if self.emission_mode == EmissionMode.FIXED_DAY and self.emission_day is None:
            raise ValueError("emission_day é obrigatório no modo FIXED_DAY")

        if self.emission_mode == EmissionMode.DATE_RANGE:
            if self.emission_start_day is None or self.emission_end_day is None:
                raise ValueError("emission_start_day e emission_end_day são obrigatórios no modo DATE_RANGE")
            if self.emission_start_day > self.emission_end_day:
                raise ValueError("emission_start_day deve ser menor ou igual a emission_end_day")

        if self.emission_mode == EmissionMode.SPECIFIC_DATE and self.emission_exact_date is None:
            raise ValueError("emission_exact_date é obrigatório no modo SPECIFIC_DATE")

        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date não pode ser anterior a start_date")

        return self


class GenerateSchedulesRequest(AppBaseModel):
    """Overrides opcionais; os enviados viram o novo padrão do serviço."""
    months: Optional[int] = Field(None, ge=1, le=MAX_MONTHS)
    from_date: Optional[date] = Field(
        None, validation_alias=AliasChoices("from_date", "start_date", "fromDate", "startDate")
    )
    default_amount: Optional[Decimal] = Field(None, ge=0)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    frequency: Optional[ServiceFrequency] = None
    emission_day: Optional[int] = Field(None, ge=1, le=31)


class ServiceResponse(AppBaseModel):
    id: int
    public_id: str
    name: str
    detail: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None

    service_type: ServiceType
    ownership: ServiceOwnership
    obligation_type: ServiceObligationType
    recurrence_type: ServiceRecurrenceType

    frequency: ServiceFrequency
    default_amount: Decimal
    amount_indexation: AmountIndexation

    due_day: Optional[int] = None
    emission_mode: EmissionMode
    emission_day: Optional[int] = None
    emission_start_day: Optional[int] = None
    emission_end_day: Optional[int] = None
    emission_exact_date: Optional[date] = None

    late_fee_mode: LateFeeMode
    late_fee_value: Optional[Decimal] = None
    late_fee_grace_days: Optional[int] = None

    counterpart_id: Optional[int] = None
    counterpart_account_id: Optional[int] = None
    account_reference: Optional[str] = None

    start_date: date
    end_date: Optional[date] = None
    next_generation_months: int
    status: ServiceStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Agregados calculados a partir das parcelas
    pending_count: int = 0
    overdue_count: int = 0
    total_expected: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")

    model_config = ConfigDict(from_attributes=True, extra="ignore")
