# src/core/dependencies.py
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.api.admin.services.schedules.amount_resolver import AmountResolver
from src.api.admin.services.schedules.payment_linker import PaymentLinker
from src.api.admin.services.service_catalog_service import ServiceCatalogService
from src.api.admin.services.uf_rate_provider import MindicadorUFRateProvider, RateProvider
from src.core.clock import Clock, system_clock
from src.core.config import config
from src.core.database import GetDBDep


def get_clock() -> Clock:
    return system_clock


@lru_cache
def get_rate_provider() -> RateProvider:
    """Um provedor por processo, para o cache de cotações ser compartilhado."""
    return MindicadorUFRateProvider(
        base_url=config.UF_API_URL,
        timeout=config.UF_API_TIMEOUT,
        max_retries=config.UF_API_MAX_RETRIES,
        cache_ttl=config.UF_CACHE_TTL,
    )


def get_amount_resolver(
        rate_provider: Annotated[RateProvider, Depends(get_rate_provider)],
) -> AmountResolver:
    return AmountResolver(rate_provider)


GetClockDep = Annotated[Clock, Depends(get_clock)]
GetAmountResolverDep = Annotated[AmountResolver, Depends(get_amount_resolver)]


def get_catalog_service(
        db: GetDBDep,
        clock: GetClockDep,
        amount_resolver: GetAmountResolverDep,
) -> ServiceCatalogService:
    return ServiceCatalogService(db, clock, amount_resolver)


def get_payment_linker(db: GetDBDep, clock: GetClockDep) -> PaymentLinker:
    return PaymentLinker(db, clock)


GetCatalogServiceDep = Annotated[ServiceCatalogService, Depends(get_catalog_service)]
GetPaymentLinkerDep = Annotated[PaymentLinker, Depends(get_payment_linker)]
