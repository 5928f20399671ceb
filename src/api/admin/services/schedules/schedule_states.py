# src/api/admin/services/schedules/schedule_states.py
"""
Máquina de estados da parcela
=============================

    PENDING ──register──▶ PARTIAL ──register──▶ PAID
       │  └────────────register────────────────▶ PAID ──unlink──▶ PENDING
       └──skip──▶ SKIPPED ──reopen──▶ PENDING

Cada estado carrega somente os dados que fazem sentido para ele:
um Paid sem valor pago não existe.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from src.core import models
from src.core.exceptions import ConflictError, InvariantViolation
from src.core.utils.enums import ScheduleStatus


@dataclass(frozen=True)
class TransactionRef:
    transaction_id: int
    amount: Optional[Decimal]
    description: Optional[str]
    timestamp: Optional[datetime]


@dataclass(frozen=True)
class Pending:
    status = ScheduleStatus.PENDING


@dataclass(frozen=True)
class Partial:
    paid_amount: Decimal
    paid_date: date
    transaction: TransactionRef
    note: Optional[str] = None
    status = ScheduleStatus.PARTIAL


@dataclass(frozen=True)
class Paid:
    paid_amount: Decimal
    paid_date: date
    transaction: TransactionRef
    note: Optional[str] = None
    status = ScheduleStatus.PAID


@dataclass(frozen=True)
class Skipped:
    reason: Optional[str] = None
    status = ScheduleStatus.SKIPPED


ScheduleState = Union[Pending, Partial, Paid, Skipped]


# ═══════════════════════════════════════════════════════════
# LINHA ORM ⇄ ESTADO
# ═══════════════════════════════════════════════════════════

def _transaction_ref(row: models.ServiceSchedule) -> TransactionRef:
    return TransactionRef(
        transaction_id=row.transaction_id,
        amount=row.transaction_amount,
        description=row.transaction_description,
        timestamp=row.transaction_timestamp,
    )


def state_of(row: models.ServiceSchedule) -> ScheduleState:
    status = ScheduleStatus(row.status)

    if status == ScheduleStatus.PENDING:
        return Pending()

    if status == ScheduleStatus.SKIPPED:
        return Skipped(reason=row.note)

    if row.paid_amount is None or row.paid_date is None or row.transaction_id is None:
        raise InvariantViolation(
            f"Parcela {row.id} em {status.value} sem dados de pagamento",
            {"schedule_id": row.id, "status": status.value},
        )

    if status == ScheduleStatus.PARTIAL:
        return Partial(row.paid_amount, row.paid_date, _transaction_ref(row), row.note)

    return Paid(row.paid_amount, row.paid_date, _transaction_ref(row), row.note)


def apply_state(row: models.ServiceSchedule, state: ScheduleState) -> None:
    """Grava o estado na linha, limpando tudo que o estado não carrega."""
    row.status = state.status

    if isinstance(state, (Partial, Paid)):
        row.paid_amount = state.paid_amount
        row.paid_date = state.paid_date
        row.note = state.note
        row.transaction_id = state.transaction.transaction_id
        row.transaction_amount = state.transaction.amount
        row.transaction_description = state.transaction.description
        row.transaction_timestamp = state.transaction.timestamp
        return

    row.paid_amount = None
    row.paid_date = None
    row.transaction_id = None
    row.transaction_amount = None
    row.transaction_description = None
    row.transaction_timestamp = None
    row.note = state.reason if isinstance(state, Skipped) else None


# ═══════════════════════════════════════════════════════════
# TRANSIÇÕES
# ═══════════════════════════════════════════════════════════

def register_payment(
        state: ScheduleState,
        paid_amount: Decimal,
        paid_date: date,
        transaction: TransactionRef,
        effective_amount: Decimal,
        note: Optional[str] = None,
) -> ScheduleState:
    """PENDING/PARTIAL → PAID (valor suficiente) ou PARTIAL (insuficiente)."""
    if isinstance(state, Paid):
        raise ConflictError("Parcela já está paga", {"status": state.status.value})

    if isinstance(state, Skipped):
        raise ConflictError("Parcela omitida não pode receber pagamento; reabra antes", {"status": state.status.value})

    if isinstance(state, (Pending, Partial)):
        if paid_amount >= effective_amount:
            return Paid(paid_amount, paid_date, transaction, note)
        return Partial(paid_amount, paid_date, transaction, note)

    raise InvariantViolation(f"Estado desconhecido: {state!r}")


def unlink_payment(state: ScheduleState) -> ScheduleState:
    """PAID → PENDING. PARTIAL é corrigido com novo registro, não com unlink."""
    if isinstance(state, Paid):
        return Pending()

    if isinstance(state, (Pending, Partial, Skipped)):
        raise ConflictError(
            "Só é possível desvincular pagamento de parcela paga",
            {"status": state.status.value},
        )

    raise InvariantViolation(f"Estado desconhecido: {state!r}")


def skip(state: ScheduleState, reason: Optional[str]) -> ScheduleState:
    if isinstance(state, Pending):
        return Skipped(reason=reason)

    if isinstance(state, (Partial, Paid, Skipped)):
        raise ConflictError("Só parcelas pendentes podem ser omitidas", {"status": state.status.value})

    raise InvariantViolation(f"Estado desconhecido: {state!r}")


def reopen(state: ScheduleState) -> ScheduleState:
    if isinstance(state, Skipped):
        return Pending()

    if isinstance(state, (Pending, Partial, Paid)):
        raise ConflictError("Só parcelas omitidas podem ser reabertas", {"status": state.status.value})

    raise InvariantViolation(f"Estado desconhecido: {state!r}")

