from fastapi import APIRouter, Query

from src.api.admin.services.schedules.schedule_presenter import present_schedule
from src.api.schemas.services import (
    RegisterPaymentRequest, ScheduleEditRequest, ServiceScheduleResponse, SkipScheduleRequest,
)
from src.core.dependencies import GetCatalogServiceDep, GetClockDep, GetPaymentLinkerDep

router = APIRouter(prefix="/services/schedules", tags=["Service Schedules"])


@router.post("/{schedule_id}/payment", response_model=ServiceScheduleResponse)
def register_payment(
        schedule_id: int,
        payload: RegisterPaymentRequest,
        linker: GetPaymentLinkerDep,
        clock: GetClockDep,
):
    row = linker.register(schedule_id, payload)
    return present_schedule(row, row.service, clock.today())


@router.delete("/{schedule_id}/payment", response_model=ServiceScheduleResponse)
def unlink_payment(
        schedule_id: int,
        linker: GetPaymentLinkerDep,
        clock: GetClockDep,
        expected_version: int | None = Query(None, ge=1),
):
    row = linker.unlink(schedule_id, expected_version)
    return present_schedule(row, row.service, clock.today())


@router.post("/{schedule_id}/skip", response_model=ServiceScheduleResponse)
def skip_schedule(
        schedule_id: int,
        payload: SkipScheduleRequest,
        catalog: GetCatalogServiceDep,
        clock: GetClockDep,
):
    row = catalog.skip_schedule(schedule_id, payload.reason)
    return present_schedule(row, row.service, clock.today())


@router.post("/{schedule_id}/reopen", response_model=ServiceScheduleResponse)
def reopen_schedule(schedule_id: int, catalog: GetCatalogServiceDep, clock: GetClockDep):
    row = catalog.reopen_schedule(schedule_id)
    return present_schedule(row, row.service, clock.today())


@router.patch("/{schedule_id}", response_model=ServiceScheduleResponse)
def edit_schedule(
        schedule_id: int,
        payload: ScheduleEditRequest,
        catalog: GetCatalogServiceDep,
        clock: GetClockDep,
):
    row = catalog.edit_schedule(schedule_id, payload)
    return present_schedule(row, row.service, clock.today())
