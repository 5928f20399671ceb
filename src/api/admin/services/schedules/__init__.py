# src/api/admin/services/schedules/__init__.py
from .schedule_reconciler import ScheduleReconciler
from .payment_linker import PaymentLinker

__all__ = ['ScheduleReconciler', 'PaymentLinker']
