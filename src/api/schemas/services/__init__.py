# schemas/services/__init__.py
from .service import ServiceCreate, GenerateSchedulesRequest, ServiceResponse
from .schedule import (
    RegisterPaymentRequest,
    ScheduleEditRequest,
    SkipScheduleRequest,
    ServiceScheduleResponse,
    ServiceWithSchedulesResponse,
)
from .sync import TransactionLinkResponse, TransactionSyncResponse, TransactionSyncSummary

__all__ = [
    'ServiceCreate',
    'GenerateSchedulesRequest',
    'ServiceResponse',
    'RegisterPaymentRequest',
    'ScheduleEditRequest',
    'SkipScheduleRequest',
    'ServiceScheduleResponse',
    'ServiceWithSchedulesResponse',
    'TransactionLinkResponse',
    'TransactionSyncResponse',
    'TransactionSyncSummary',
]
