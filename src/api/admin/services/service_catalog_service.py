# src/api/admin/services/service_catalog_service.py
"""
Cadastro de serviços e operações manuais sobre parcelas
(omitir, reabrir, editar), além da sincronização com o extrato.
Regeneração e pagamentos ficam em `schedules/`.
"""

import logging
from datetime import datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from src.api.admin.services.schedules.amount_resolver import AmountResolver
from src.api.admin.services.schedules.late_fee_calculator import apply_charges, compute_row_charges
from src.api.admin.services.schedules.payment_linker import PaymentLinker, commit_or_conflict, lock_schedule
from src.api.admin.services.schedules.schedule_presenter import (
    present_service_with_schedules, summarize_service,
)
from src.api.admin.services.schedules.schedule_reconciler import ScheduleReconciler
from src.api.admin.services.schedules.schedule_states import apply_state, reopen, skip, state_of
from src.api.admin.services.schedules.transaction_matcher import (
    MatchWindow, is_open_for_matching, match_transactions,
)
from src.api.schemas.services import (
    GenerateSchedulesRequest, RegisterPaymentRequest, ScheduleEditRequest, ServiceCreate, ServiceResponse,
    TransactionLinkResponse, TransactionSyncResponse, TransactionSyncSummary,
)
from src.core import models
from src.core.clock import Clock
from src.core.exceptions import ConflictError, NotFoundError, ServiceEngineError, ValidationError
from src.core.utils.enums import ScheduleStatus, ServiceStatus

logger = logging.getLogger(__name__)


class ServiceCatalogService:

    def __init__(
            self,
            db: Session,
            clock: Clock,
            amount_resolver: AmountResolver,
            match_window: MatchWindow = MatchWindow(),
    ):
        self.db = db
        self.clock = clock
        self.reconciler = ScheduleReconciler(db, clock, amount_resolver)
        self.linker = PaymentLinker(db, clock)
        self.match_window = match_window

    # ═══════════════════════════════════════════════════════════
    # SERVIÇOS
    # ═══════════════════════════════════════════════════════════

    def create_service(self, payload: ServiceCreate) -> dict:
        """Cria o serviço e já gera a agenda inicial, na mesma transação."""
        data = payload.model_dump(exclude={"months_to_generate"})

        try:
            service = models.Service(
                **data,
                next_generation_months=payload.months_to_generate,
                status=ServiceStatus.ACTIVE,
            )
            self.db.add(service)
            self.db.flush()

            schedules = self.reconciler.regenerate_in_transaction(
                service, GenerateSchedulesRequest(months=payload.months_to_generate)
            )
            self.db.commit()

        except ServiceEngineError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Erro ao criar serviço '{payload.name}': {e}", exc_info=True)
            raise

        logger.info(f"✅ Serviço {service.id} ({service.public_id}) criado com {len(schedules)} parcelas")
        return present_service_with_schedules(service, schedules, self.clock.today())

    def _get_service_or_404(self, service_id: int) -> models.Service:
        service = (
            self.db.query(models.Service)
            .options(selectinload(models.Service.schedules))
            .filter(models.Service.id == service_id)
            .populate_existing()
            .first()
        )
        if not service:
            raise NotFoundError("Serviço não encontrado", {"service_id": service_id})
        return service

    def get_service(self, service_id: int) -> dict:
        service = self._get_service_or_404(service_id)
        return present_service_with_schedules(service, list(service.schedules), self.clock.today())

    def list_services(self, status: ServiceStatus | None = None) -> list[ServiceResponse]:
        query = self.db.query(models.Service).options(selectinload(models.Service.schedules)).populate_existing()
        if status:
            query = query.filter(models.Service.status == status)

        today = self.clock.today()
        return [
            summarize_service(service, list(service.schedules), today)
            for service in query.order_by(models.Service.name.asc()).all()
        ]

    def generate_schedules(self, service_id: int, overrides: GenerateSchedulesRequest | None = None) -> dict:
        service, schedules = self.reconciler.generate(service_id, overrides)
        return present_service_with_schedules(service, schedules, self.clock.today())

    # ═══════════════════════════════════════════════════════════
    # PARCELAS
    # ═══════════════════════════════════════════════════════════

    def _transition(self, schedule_id: int, transition, *args) -> models.ServiceSchedule:
        try:
            row = lock_schedule(self.db, schedule_id)
            if row.transaction_id is not None:
                raise ConflictError(
                    "Parcela vinculada a uma transação; desvincule antes",
                    {"schedule_id": schedule_id, "transaction_id": row.transaction_id},
                )
            apply_state(row, transition(state_of(row), *args))
            apply_charges(row, compute_row_charges(row, row.service, self.clock.today()))
            commit_or_conflict(self.db, schedule_id)
        except ServiceEngineError:
            self.db.rollback()
            raise
        return row

    def skip_schedule(self, schedule_id: int, reason: str) -> models.ServiceSchedule:
        row = self._transition(schedule_id, skip, reason)
        logger.info(f"⏭️ Parcela {schedule_id} omitida: {reason}")
        return row

    def reopen_schedule(self, schedule_id: int) -> models.ServiceSchedule:
        row = self._transition(schedule_id, reopen)
        logger.info(f"🔄 Parcela {schedule_id} reaberta")
        return row

    def edit_schedule(self, schedule_id: int, payload: ScheduleEditRequest) -> models.ServiceSchedule:
        """Ajuste manual de vencimento/valor. Só parcelas PENDING sem vínculo."""
        try:
            row = lock_schedule(self.db, schedule_id)

            if row.is_locked or row.status != ScheduleStatus.PENDING:
                raise ConflictError(
                    "Só parcelas pendentes e sem pagamento podem ser editadas",
                    {"schedule_id": schedule_id, "status": row.status.value},
                )

            update_data = payload.model_dump(exclude_unset=True)

            due_date = update_data.get("due_date")
            if due_date is not None and not (row.period_start <= due_date <= row.period_end):
                raise ValidationError(
                    "O vencimento deve ficar dentro do período da parcela",
                    {
                        "due_date": due_date.isoformat(),
                        "period_start": row.period_start.isoformat(),
                        "period_end": row.period_end.isoformat(),
                    },
                )

            for key, value in update_data.items():
                if key in ("due_date", "expected_amount") and value is None:
                    continue
                setattr(row, key, value)

            apply_charges(row, compute_row_charges(row, row.service, self.clock.today()))
            commit_or_conflict(self.db, schedule_id)

        except ServiceEngineError:
            self.db.rollback()
            raise

        logger.info(f"✏️ Parcela {schedule_id} editada: {sorted(update_data)}")
        return row

    # ═══════════════════════════════════════════════════════════
    # SINCRONIZAÇÃO COM O EXTRATO
    # ═══════════════════════════════════════════════════════════

    def _unlinked_transactions(self, open_rows: list[models.ServiceSchedule]) -> list[models.Transaction]:
        """Transações ainda sem parcela, dentro da janela de todas as parcelas abertas."""
        first_start, _ = self.match_window.bounds(min(r.due_date for r in open_rows))
        _, last_end = self.match_window.bounds(max(r.due_date for r in open_rows))

        # Margem de um dia: o recorte exato é feito na data local, no matcher
        lower = datetime.combine(first_start - timedelta(days=1), time.min)
        upper = datetime.combine(last_end + timedelta(days=2), time.min)

        linked_ids = (
            select(models.ServiceSchedule.transaction_id)
            .where(models.ServiceSchedule.transaction_id.isnot(None))
        )
        return (
            self.db.query(models.Transaction)
            .filter(
                models.Transaction.id.notin_(linked_ids),
                models.Transaction.timestamp >= lower,
                models.Transaction.timestamp < upper,
            )
            .order_by(models.Transaction.timestamp.asc(), models.Transaction.id.asc())
            .all()
        )

    def _sync_service(self, service: models.Service) -> TransactionSyncResponse:
        result = TransactionSyncResponse(service_id=service.id, public_id=service.public_id)

        open_rows = [r for r in service.schedules if is_open_for_matching(r)]
        if not open_rows:
            return result

        transactions = self._unlinked_transactions(open_rows)
        result.scanned_transactions = len(transactions)

        for match in match_transactions(open_rows, service, transactions, self.match_window):
            try:
                row = self.linker.register(match.schedule_id, RegisterPaymentRequest(
                    transaction_id=match.transaction_id,
                    paid_amount=match.paid_amount,
                    paid_date=match.paid_date,
                    note="Vinculado automaticamente pela sincronização",
                    expected_status=ScheduleStatus.PENDING,
                ))
            except (ConflictError, NotFoundError) as e:
                logger.warning(f"⚠️ Sincronização: parcela {match.schedule_id} ignorada ({e.message})")
                result.conflicts.append(match.schedule_id)
                continue

            result.linked.append(TransactionLinkResponse(
                schedule_id=row.id,
                transaction_id=match.transaction_id,
                paid_amount=match.paid_amount,
                paid_date=match.paid_date,
                status=row.status,
            ))

        logger.info(
            f"🔗 Serviço {service.id}: {len(result.linked)} transações vinculadas "
            f"({result.scanned_transactions} candidatas, {len(result.conflicts)} conflitos)"
        )
        return result

    def sync_transactions(self, service_id: int) -> TransactionSyncResponse:
        """Vincula transações do extrato às parcelas abertas de um serviço."""
        return self._sync_service(self._get_service_or_404(service_id))

    def sync_all_transactions(self) -> TransactionSyncSummary:
        """Mesma sincronização para todos os serviços ativos."""
        service_ids = [
            service_id
            for (service_id,) in (
                self.db.query(models.Service.id)
                .filter(models.Service.status == ServiceStatus.ACTIVE)
                .order_by(models.Service.name.asc(), models.Service.id.asc())
                .all()
            )
        ]

        results = [self.sync_transactions(service_id) for service_id in service_ids]
        linked_count = sum(len(r.linked) for r in results)

        logger.info(f"🔗 Sincronização geral: {linked_count} vínculos em {len(results)} serviços")
        return TransactionSyncSummary(services=len(results), linked_count=linked_count, results=results)
