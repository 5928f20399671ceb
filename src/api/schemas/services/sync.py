# schemas/services/sync.py
from datetime import date
from decimal import Decimal

from ..base_schema import AppBaseModel
from src.core.utils.enums import ScheduleStatus


class TransactionLinkResponse(AppBaseModel):
    schedule_id: int
    transaction_id: int
    paid_amount: Decimal
    paid_date: date
    status: ScheduleStatus


class TransactionSyncResponse(AppBaseModel):
    service_id: int
    public_id: str
    scanned_transactions: int = 0
    linked: list[TransactionLinkResponse] = []
    conflicts: list[int] = []  # ids de parcelas que mudaram durante a sincronização


class TransactionSyncSummary(AppBaseModel):
    services: int
    linked_count: int
    results: list[TransactionSyncResponse]
