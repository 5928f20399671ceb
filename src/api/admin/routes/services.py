from fastapi import APIRouter, Query

from src.api.schemas.services import (
    GenerateSchedulesRequest, ServiceCreate, ServiceResponse, ServiceWithSchedulesResponse,
    TransactionSyncResponse, TransactionSyncSummary,
)
from src.core.dependencies import GetCatalogServiceDep
from src.core.utils.enums import ServiceStatus

router = APIRouter(prefix="/services", tags=["Services"])


@router.post("", response_model=ServiceWithSchedulesResponse, status_code=201)
def create_service(payload: ServiceCreate, catalog: GetCatalogServiceDep):
    return catalog.create_service(payload)


@router.get("", response_model=list[ServiceResponse])
def list_services(
        catalog: GetCatalogServiceDep,
        status: ServiceStatus | None = Query(None),
):
    return catalog.list_services(status)


@router.post("/transactions/sync", response_model=TransactionSyncSummary)
def sync_all_transactions(catalog: GetCatalogServiceDep):
    return catalog.sync_all_transactions()


@router.get("/{service_id}", response_model=ServiceWithSchedulesResponse)
def get_service(service_id: int, catalog: GetCatalogServiceDep):
    return catalog.get_service(service_id)


@router.post("/{service_id}/schedules/generate", response_model=ServiceWithSchedulesResponse)
def generate_schedules(
        service_id: int,
        catalog: GetCatalogServiceDep,
        payload: GenerateSchedulesRequest | None = None,
):
    # Corpo vazio = regenerar com os padrões gravados no serviço
    return catalog.generate_schedules(service_id, payload)


@router.post("/{service_id}/transactions/sync", response_model=TransactionSyncResponse)
def sync_service_transactions(service_id: int, catalog: GetCatalogServiceDep):
    return catalog.sync_transactions(service_id)
