# src/api/admin/services/schedules/payment_linker.py
"""
Vínculo de pagamentos às parcelas.

A linha é relida com trava imediatamente antes da mutação; a coluna
`version` garante que duas requisições concorrentes não gravem ambas.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from src.api.admin.services.schedules.late_fee_calculator import apply_charges, compute_charges, compute_row_charges
from src.api.admin.services.schedules.schedule_states import (
    TransactionRef, apply_state, register_payment, state_of, unlink_payment,
)
from src.api.schemas.services import RegisterPaymentRequest
from src.core import models
from src.core.clock import Clock
from src.core.exceptions import ConflictError, NotFoundError, ServiceEngineError
from src.core.utils.enums import ScheduleStatus

logger = logging.getLogger(__name__)


def lock_schedule(db: Session, schedule_id: int) -> models.ServiceSchedule:
    """Relê a parcela com SELECT ... FOR UPDATE, descartando o que estiver em cache."""
    row = (
        db.query(models.ServiceSchedule)
        .filter(models.ServiceSchedule.id == schedule_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if not row:
        raise NotFoundError("Parcela não encontrada", {"schedule_id": schedule_id})
    return row


def check_expectations(
        row: models.ServiceSchedule,
        expected_status: Optional[ScheduleStatus] = None,
        expected_version: Optional[int] = None,
) -> None:
    if expected_status is not None and row.status != expected_status:
        raise ConflictError(
            "O status da parcela mudou desde a última leitura",
            {"schedule_id": row.id, "expected_status": expected_status.value, "current_status": row.status.value},
        )

    if expected_version is not None and row.version != expected_version:
        raise ConflictError(
            "A parcela foi alterada desde a última leitura",
            {"schedule_id": row.id, "expected_version": expected_version, "current_version": row.version},
        )


def commit_or_conflict(db: Session, schedule_id: int) -> None:
    """Commit traduzindo perda de corrida de versão em ConflictError."""
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"⚠️ Conflito de versão na parcela {schedule_id}: {e}")
        raise ConflictError(
            "A parcela foi alterada por outra operação; recarregue e tente novamente",
            {"schedule_id": schedule_id},
        ) from e


class PaymentLinker:

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def register(self, schedule_id: int, payload: RegisterPaymentRequest) -> models.ServiceSchedule:
        """
        Vincula uma transação à parcela.

        O valor devido é o efetivo na data do pagamento: multa incluída
        se `paid_date` passou do vencimento + carência.
        """
        try:
            row = lock_schedule(self.db, schedule_id)
            check_expectations(row, payload.expected_status, payload.expected_version)

            transaction = self.db.get(models.Transaction, payload.transaction_id)
            if not transaction:
                raise NotFoundError("Transação não encontrada", {"transaction_id": payload.transaction_id})

            service = row.service
            due_at_payment = compute_charges(
                due_date=row.due_date,
                today=payload.paid_date,
                status=row.status,
                late_fee_mode=service.late_fee_mode,
                late_fee_value=service.late_fee_value,
                grace_days=service.late_fee_grace_days,
                expected_amount=row.expected_amount,
            )

            new_state = register_payment(
                state_of(row),
                paid_amount=payload.paid_amount,
                paid_date=payload.paid_date,
                transaction=TransactionRef(
                    transaction_id=transaction.id,
                    amount=transaction.amount,
                    description=transaction.description,
                    timestamp=transaction.timestamp,
                ),
                effective_amount=due_at_payment.effective_amount,
                note=payload.note,
            )
            apply_state(row, new_state)

            if new_state.status == ScheduleStatus.PAID:
                apply_charges(row, compute_row_charges(row, service, self.clock.today()))
            else:
                apply_charges(row, due_at_payment)

            commit_or_conflict(self.db, schedule_id)

        except ServiceEngineError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Erro ao registrar pagamento na parcela {schedule_id}: {e}", exc_info=True)
            raise

        logger.info(
            f"💰 Parcela {schedule_id} → {row.status.value} "
            f"(transação {payload.transaction_id}, pago {payload.paid_amount})"
        )
        return row

    def unlink(self, schedule_id: int, expected_version: Optional[int] = None) -> models.ServiceSchedule:
        """PAID → PENDING, limpando pagamento e snapshot da transação."""
        try:
            row = lock_schedule(self.db, schedule_id)
            check_expectations(row, expected_version=expected_version)

            apply_state(row, unlink_payment(state_of(row)))
            apply_charges(row, compute_row_charges(row, row.service, self.clock.today()))

            commit_or_conflict(self.db, schedule_id)

        except ServiceEngineError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Erro ao desvincular pagamento da parcela {schedule_id}: {e}", exc_info=True)
            raise

        logger.info(f"↩️ Pagamento desvinculado da parcela {schedule_id}")
        return row
