from __future__ import annotations
from decimal import Decimal

from datetime import datetime, date, timezone
import uuid

from sqlalchemy import DateTime, Date, Index, UniqueConstraint, CheckConstraint, Text
from sqlalchemy import Integer, ForeignKey, String, Enum, Numeric, Boolean
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from src.core.utils.enums import (
    ServiceType, ServiceOwnership, ServiceObligationType, ServiceRecurrenceType, ServiceFrequency,
    AmountIndexation, EmissionMode, LateFeeMode, ServiceStatus, ScheduleStatus,
)

# Valores monetários: DECIMAL(15,2), mesmo formato do banco original
Money = Numeric(15, 2, asdecimal=True)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


def generate_public_id() -> str:
    return f"srv_{uuid.uuid4().hex[:16]}"


class Service(Base, TimestampMixin):
    """Definição de uma obrigação recorrente (conta de luz, aluguel, parcela de empréstimo...)"""
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(primary_key=True)
    public_id: Mapped[str] = mapped_column(String(40), unique=True, index=True, default=generate_public_id)

    # Descrição
    name: Mapped[str] = mapped_column(String(255))
    detail: Mapped[str | None] = mapped_column(String(500))
    category: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)

    # Classificação
    service_type: Mapped[ServiceType] = mapped_column(
        Enum(ServiceType, name="service_type"), default=ServiceType.BUSINESS
    )
    ownership: Mapped[ServiceOwnership] = mapped_column(
        Enum(ServiceOwnership, name="service_ownership"), default=ServiceOwnership.COMPANY
    )
    obligation_type: Mapped[ServiceObligationType] = mapped_column(
        Enum(ServiceObligationType, name="service_obligation_type"), default=ServiceObligationType.SERVICE
    )
    recurrence_type: Mapped[ServiceRecurrenceType] = mapped_column(
        Enum(ServiceRecurrenceType, name="service_recurrence_type"), default=ServiceRecurrenceType.RECURRING
    )

    # Política de cobrança
    frequency: Mapped[ServiceFrequency] = mapped_column(
        Enum(ServiceFrequency, name="service_frequency"), default=ServiceFrequency.MONTHLY
    )
    default_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    amount_indexation: Mapped[AmountIndexation] = mapped_column(
        Enum(AmountIndexation, name="service_amount_indexation"), default=AmountIndexation.NONE
    )

    # Vencimento e emissão
    due_day: Mapped[int | None] = mapped_column(Integer)
    emission_mode: Mapped[EmissionMode] = mapped_column(
        Enum(EmissionMode, name="service_emission_mode"), default=EmissionMode.FIXED_DAY
    )
    emission_day: Mapped[int | None] = mapped_column(Integer)
    emission_start_day: Mapped[int | None] = mapped_column(Integer)
    emission_end_day: Mapped[int | None] = mapped_column(Integer)
    emission_exact_date: Mapped[date | None] = mapped_column(Date)

    # Multa por atraso
    late_fee_mode: Mapped[LateFeeMode] = mapped_column(
        Enum(LateFeeMode, name="service_late_fee_mode"), default=LateFeeMode.NONE
    )
    late_fee_value: Mapped[Decimal | None] = mapped_column(Money)
    late_fee_grace_days: Mapped[int | None] = mapped_column(Integer)

    # Contraparte (pertence a outro módulo, guardamos apenas as referências)
    counterpart_id: Mapped[int | None] = mapped_column(Integer)
    counterpart_account_id: Mapped[int | None] = mapped_column(Integer)
    account_reference: Mapped[str | None] = mapped_column(String(100))

    # Ciclo de vida
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date | None] = mapped_column(Date)
    next_generation_months: Mapped[int] = mapped_column(Integer, default=12)
    status: Mapped[ServiceStatus] = mapped_column(
        Enum(ServiceStatus, name="service_status"), default=ServiceStatus.ACTIVE
    )

    schedules: Mapped[list["ServiceSchedule"]] = relationship(
        back_populates="service",
        cascade="all, delete-orphan",
        order_by="ServiceSchedule.period_start",
    )

    __table_args__ = (
        CheckConstraint("due_day IS NULL OR (due_day BETWEEN 1 AND 31)", name="services_due_day_between_1_31_chk"),
        CheckConstraint("emission_day IS NULL OR (emission_day BETWEEN 1 AND 31)", name="services_emission_day_chk"),
        CheckConstraint("next_generation_months > 0", name="services_generation_months_positive_chk"),
        Index('idx_services_status', 'status'),
    )


class Transaction(Base):
    """
    Movimento financeiro externo (extrato).
    Somente leitura para o motor de agenda: checamos existência e copiamos um snapshot.
    """
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    amount: Mapped[Decimal] = mapped_column(Money)
    description: Mapped[str | None] = mapped_column(String(500))
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class ServiceSchedule(Base, TimestampMixin):
    """Uma parcela projetada de um serviço"""
    __tablename__ = "service_schedules"

    id: Mapped[int] = mapped_column(primary_key=True)
    service_id: Mapped[int] = mapped_column(ForeignKey("services.id", ondelete="CASCADE"))
    service: Mapped["Service"] = relationship(back_populates="schedules")

    # Janela de cobrança (period_end inclusivo)
    period_start: Mapped[date] = mapped_column(Date)
    period_end: Mapped[date] = mapped_column(Date)
    due_date: Mapped[date] = mapped_column(Date)

    # Valores
    expected_amount: Mapped[Decimal] = mapped_column(Money)
    late_fee_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    effective_amount: Mapped[Decimal] = mapped_column(Money)
    overdue_days: Mapped[int] = mapped_column(Integer, default=0)
    indexation_rate: Mapped[Decimal | None] = mapped_column(Numeric(15, 4, asdecimal=True))
    amount_provisional: Mapped[bool] = mapped_column(Boolean, default=False)

    # Pagamento
    status: Mapped[ScheduleStatus] = mapped_column(
        Enum(ScheduleStatus, name="service_schedule_status"), default=ScheduleStatus.PENDING
    )
    paid_amount: Mapped[Decimal | None] = mapped_column(Money)
    paid_date: Mapped[date | None] = mapped_column(Date)
    note: Mapped[str | None] = mapped_column(Text)

    # Referência à transação externa + snapshot para exibição
    transaction_id: Mapped[int | None] = mapped_column(ForeignKey("transactions.id", ondelete="SET NULL"))
    transaction_amount: Mapped[Decimal | None] = mapped_column(Money)
    transaction_description: Mapped[str | None] = mapped_column(String(500))
    transaction_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Concorrência otimista
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_locked(self) -> bool:
        """Linha paga/parcial ou vinculada a transação: a regeneração nunca toca."""
        return (
            self.status in (ScheduleStatus.PAID, ScheduleStatus.PARTIAL)
            or self.transaction_id is not None
        )

    __table_args__ = (
        UniqueConstraint('service_id', 'period_start', name='service_schedules_service_id_period_start_key'),
        CheckConstraint("period_end >= period_start", name="service_schedules_period_order_chk"),
        CheckConstraint(
            "expected_amount >= 0 AND late_fee_amount >= 0 AND effective_amount >= 0 "
            "AND (paid_amount IS NULL OR paid_amount >= 0)",
            name="service_schedules_amounts_non_negative_chk",
        ),
        Index('idx_service_schedules_service_due_date', 'service_id', 'due_date'),
        Index('idx_service_schedules_status_due_date', 'status', 'due_date'),
        Index('idx_service_schedules_transaction', 'transaction_id'),
    )
