# src/api/admin/services/schedules/transaction_matcher.py
"""
Casamento automático de transações do extrato com parcelas abertas
==================================================================

Uma transação casa com uma parcela PENDING sem vínculo quando:

- a data da transação cai em [vencimento - dias_antes, vencimento + dias_depois]
- o valor absoluto bate com o valor esperado, ou com o valor efetivo
  (com multa) na data da transação, dentro da tolerância

Cada transação é usada uma única vez. As parcelas são percorridas por
vencimento e cada uma fica com a candidata mais próxima do vencimento
(empate: menor id).
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Iterable
from zoneinfo import ZoneInfo

from src.api.admin.services.schedules.late_fee_calculator import compute_charges
from src.core import models
from src.core.config import config
from src.core.utils.enums import ScheduleStatus


@dataclass(frozen=True)
class MatchWindow:
    days_before: int = config.SYNC_DAYS_BEFORE_DUE
    days_after: int = config.SYNC_DAYS_AFTER_DUE
    tolerance: Decimal = config.SYNC_AMOUNT_TOLERANCE

    def bounds(self, due_date: date) -> tuple[date, date]:
        return due_date - timedelta(days=self.days_before), due_date + timedelta(days=self.days_after)


@dataclass(frozen=True)
class TransactionMatch:
    schedule_id: int
    transaction_id: int
    paid_amount: Decimal
    paid_date: date


def transaction_date(timestamp: datetime, tz_name: str = config.TIMEZONE) -> date:
    """Data local da transação (timestamps sem fuso já estão no horário local)."""
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone(ZoneInfo(tz_name)).date()


def is_open_for_matching(row: models.ServiceSchedule) -> bool:
    return row.status == ScheduleStatus.PENDING and row.transaction_id is None


def _accepted_amounts(row: models.ServiceSchedule, service: models.Service, paid_date: date) -> tuple[Decimal, ...]:
    charges = compute_charges(
        due_date=row.due_date,
        today=paid_date,
        status=ScheduleStatus.PENDING,
        late_fee_mode=service.late_fee_mode,
        late_fee_value=service.late_fee_value,
        grace_days=service.late_fee_grace_days,
        expected_amount=row.expected_amount,
    )
    return Decimal(row.expected_amount), charges.effective_amount


def amount_matches(amount: Decimal, targets: Iterable[Decimal], tolerance: Decimal) -> bool:
    return any(abs(amount - target) <= tolerance for target in targets)


def match_transactions(
        rows: Iterable[models.ServiceSchedule],
        service: models.Service,
        transactions: Iterable[models.Transaction],
        window: MatchWindow = MatchWindow(),
) -> list[TransactionMatch]:
    open_rows = sorted((r for r in rows if is_open_for_matching(r)), key=lambda r: (r.due_date, r.id))
    pool = [
        (tx, transaction_date(tx.timestamp), abs(Decimal(tx.amount)))
        for tx in transactions
        if tx.amount is not None and Decimal(tx.amount) != 0
    ]

    used: set[int] = set()
    matches = []

    for row in open_rows:
        start, end = window.bounds(row.due_date)
        candidates = [
            (tx, tx_date, amount)
            for tx, tx_date, amount in pool
            if tx.id not in used
            and start <= tx_date <= end
            and amount_matches(amount, _accepted_amounts(row, service, tx_date), window.tolerance)
        ]
        if not candidates:
            continue

        tx, tx_date, amount = min(candidates, key=lambda c: (abs((c[1] - row.due_date).days), c[0].id))
        used.add(tx.id)
        matches.append(TransactionMatch(
            schedule_id=row.id,
            transaction_id=tx.id,
            paid_amount=amount,
            paid_date=tx_date,
        ))

    return matches
