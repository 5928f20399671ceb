# src/api/admin/services/schedules/schedule_reconciler.py
"""
Reconciliação / Regeneração da agenda de um serviço
===================================================

Regenera as parcelas futuras sem tocar no histórico liquidado:

1. Trava o serviço e carrega as parcelas (ordenadas por period_start)
2. Separa travadas (PAID/PARTIAL ou com transação) das livres
3. Âncora = max(fim da última travada + 1, from_date, start_date se não há travadas)
4. Apaga as livres
5. Enumera os novos períodos a partir da âncora (até end_date, se houver;
   parcela única já travada não gera nada)
6. Mescla com as travadas (travadas mandam) e insere as novas como PENDING
7. Grava os overrides como novos padrões do serviço
8. Devolve serviço + agenda mesclada

Tudo numa única transação: ou tudo muda, ou nada muda.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from src.api.admin.services.schedules.amount_resolver import AmountResolver
from src.api.admin.services.schedules.due_date_resolver import resolve_due_date
from src.api.admin.services.schedules.late_fee_calculator import apply_charges, compute_charges
from src.api.admin.services.schedules.period_enumerator import (
    BillingPeriod, enumerate_periods, is_single_period,
)
from src.api.schemas.services import GenerateSchedulesRequest
from src.core import models
from src.core.clock import Clock
from src.core.config import config
from src.core.exceptions import ConflictError, InvariantViolation, NotFoundError, ServiceEngineError
from src.core.utils.enums import ScheduleStatus, ServiceFrequency

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════
# PASSO DE MERGE (PURO)
# ═══════════════════════════════════════════════════════════

def partition_rows(
        rows: Iterable[models.ServiceSchedule],
) -> tuple[list[models.ServiceSchedule], list[models.ServiceSchedule]]:
    """Retorna (travadas, livres), ambas ordenadas por period_start."""
    ordered = sorted(rows, key=lambda r: r.period_start)
    locked = [r for r in ordered if r.is_locked]
    unlocked = [r for r in ordered if not r.is_locked]
    return locked, unlocked


def compute_anchor(
        start_date: date,
        locked: list[models.ServiceSchedule],
        from_date: Optional[date] = None,
) -> date:
    candidates = []
    if locked:
        candidates.append(max(r.period_end for r in locked) + timedelta(days=1))
    else:
        candidates.append(start_date)
    if from_date is not None:
        candidates.append(from_date)
    return max(candidates)


def merge_periods(
        locked: list[models.ServiceSchedule],
        periods: list[BillingPeriod],
) -> list[BillingPeriod]:
    """
    Cruza os períodos novos com a "arena" de parcelas travadas.

    - colide com exatamente uma travada: pula (a travada é a fonte da verdade)
    - colide com duas ou mais: InvariantViolation
    - sem colisão: entra na lista de inserção
    """
    arena = {row.period_start: row for row in locked}
    to_insert = []

    for period in periods:
        if period.period_start in arena:
            continue

        hits = [r for r in locked if period.overlaps(r.period_start, r.period_end)]

        if len(hits) > 1:
            raise InvariantViolation(
                "Período calculado colide com mais de uma parcela travada",
                {
                    "period_start": period.period_start.isoformat(),
                    "period_end": period.period_end.isoformat(),
                    "locked_schedule_ids": [r.id for r in hits],
                },
            )

        if hits:
            continue

        to_insert.append(period)

    return to_insert


def clip_to_end_date(periods: list[BillingPeriod], end_date: Optional[date]) -> list[BillingPeriod]:
    """Descarta períodos que começam depois do fim do contrato."""
    if end_date is None:
        return periods
    return [p for p in periods if p.period_start <= end_date]


@dataclass(frozen=True)
class GenerationPolicy:
    frequency: ServiceFrequency
    default_amount: Decimal
    due_day: Optional[int]
    emission_day: Optional[int]
    months: int


def resolve_policy(service: models.Service, overrides: GenerateSchedulesRequest) -> GenerationPolicy:
    """Mescla os padrões do serviço com os overrides enviados."""
    sent = overrides.model_fields_set

    frequency = overrides.frequency if overrides.frequency is not None else service.frequency
    default_amount = overrides.default_amount if overrides.default_amount is not None else service.default_amount
    due_day = overrides.due_day if "due_day" in sent else service.due_day
    emission_day = overrides.emission_day if "emission_day" in sent else service.emission_day

    if is_single_period(frequency, service.recurrence_type):
        months = 1
    elif overrides.months is not None:
        # Valor explícito fora do intervalo é erro do chamador (enumerate_periods valida)
        months = overrides.months
    else:
        fallback = service.next_generation_months or config.DEFAULT_GENERATION_MONTHS
        months = min(max(fallback, 1), config.MAX_GENERATION_MONTHS)

    return GenerationPolicy(
        frequency=ServiceFrequency(frequency),
        default_amount=Decimal(default_amount),
        due_day=due_day,
        emission_day=emission_day,
        months=months,
    )


# ═══════════════════════════════════════════════════════════
# SERVIÇO
# ═══════════════════════════════════════════════════════════

class ScheduleReconciler:
    """Orquestra enumerador, resolvedores e calculadora de multa"""

    def __init__(
            self,
            db: Session,
            clock: Clock,
            amount_resolver: AmountResolver,
            allow_provisional: bool = config.UF_ALLOW_PROVISIONAL_FALLBACK,
    ):
        self.db = db
        self.clock = clock
        self.amount_resolver = amount_resolver
        self.allow_provisional = allow_provisional

    def _lock_service(self, service_id: int) -> models.Service:
        service = (
            self.db.query(models.Service)
            .filter(models.Service.id == service_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not service:
            raise NotFoundError("Serviço não encontrado", {"service_id": service_id})
        return service

    def _load_rows(self, service_id: int) -> list[models.ServiceSchedule]:
        return (
            self.db.query(models.ServiceSchedule)
            .filter(models.ServiceSchedule.service_id == service_id)
            .order_by(models.ServiceSchedule.period_start.asc())
            .populate_existing()
            .all()
        )

    def _build_row(
            self,
            service: models.Service,
            policy: GenerationPolicy,
            period: BillingPeriod,
    ) -> models.ServiceSchedule:
        due_date = resolve_due_date(period, policy.due_day)
        resolved = self.amount_resolver.resolve(
            policy.default_amount,
            service.amount_indexation,
            due_date,
            allow_provisional=self.allow_provisional,
        )

        row = models.ServiceSchedule(
            service_id=service.id,
            period_start=period.period_start,
            period_end=period.period_end,
            due_date=due_date,
            expected_amount=resolved.amount,
            indexation_rate=resolved.rate,
            amount_provisional=resolved.provisional,
            status=ScheduleStatus.PENDING,
        )

        # Linha de base de atraso/multa contra "agora"
        apply_charges(row, compute_charges(
            due_date=due_date,
            today=self.clock.today(),
            status=ScheduleStatus.PENDING,
            late_fee_mode=service.late_fee_mode,
            late_fee_value=service.late_fee_value,
            grace_days=service.late_fee_grace_days,
            expected_amount=resolved.amount,
        ))
        return row

    @staticmethod
    def _persist_overrides(service: models.Service, overrides: GenerateSchedulesRequest, policy: GenerationPolicy):
        sent = overrides.model_fields_set
        if overrides.frequency is not None:
            service.frequency = policy.frequency
        if overrides.default_amount is not None:
            service.default_amount = policy.default_amount
        if "due_day" in sent:
            service.due_day = policy.due_day
        if "emission_day" in sent:
            service.emission_day = policy.emission_day
        if overrides.months is not None:
            service.next_generation_months = overrides.months

    def regenerate_in_transaction(
            self,
            service: models.Service,
            overrides: GenerateSchedulesRequest,
    ) -> list[models.ServiceSchedule]:
        """Passos 2–7 sem commit; quem chama decide o limite da transação."""
        existing = self._load_rows(service.id)
        locked, unlocked = partition_rows(existing)

        policy = resolve_policy(service, overrides)
        anchor = compute_anchor(service.start_date, locked, overrides.from_date)

        if locked and is_single_period(policy.frequency, service.recurrence_type):
            # Obrigação de parcela única já liquidada: nada a gerar
            periods = []
        else:
            periods = enumerate_periods(anchor, policy.frequency, policy.months, service.recurrence_type)
            periods = clip_to_end_date(periods, service.end_date)

        for row in unlocked:
            self.db.delete(row)
        # Libera a chave única (service_id, period_start) antes de inserir
        self.db.flush()

        try:
            to_insert = merge_periods(locked, periods)
        except InvariantViolation as e:
            logger.critical(
                f"🔴 Invariante violado ao regenerar serviço {service.id}: {e.message} | {e.details}",
                exc_info=True,
            )
            raise

        new_rows = [self._build_row(service, policy, period) for period in to_insert]
        self.db.add_all(new_rows)

        self._persist_overrides(service, overrides, policy)
        self.db.flush()

        logger.info(
            f"📅 Serviço {service.id}: {len(unlocked)} parcelas livres removidas, "
            f"{len(locked)} travadas mantidas, {len(new_rows)} novas a partir de {anchor.isoformat()}"
        )

        return sorted(locked + new_rows, key=lambda r: r.period_start)

    def generate(
            self,
            service_id: int,
            overrides: Optional[GenerateSchedulesRequest] = None,
    ) -> tuple[models.Service, list[models.ServiceSchedule]]:
        overrides = overrides or GenerateSchedulesRequest()

        try:
            service = self._lock_service(service_id)
            schedules = self.regenerate_in_transaction(service, overrides)
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Conflito concorrente ao regenerar serviço {service_id}: {e}")
            raise ConflictError(
                "A agenda foi alterada por outra operação; recarregue e tente novamente",
                {"service_id": service_id},
            ) from e
        except ServiceEngineError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Erro ao regenerar serviço {service_id}: {e}", exc_info=True)
            raise

        return service, schedules
