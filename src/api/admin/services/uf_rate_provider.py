# src/api/admin/services/uf_rate_provider.py
"""
Provedor de cotação da UF
=========================

A UF tem valor diário em pesos. O motor de agenda só depende da interface
RateProvider; a implementação padrão consulta uma API no formato do
mindicador.cl:

    GET {UF_API_URL}/uf/{dd-mm-yyyy}  ->  {"serie": [{"fecha": "...", "valor": 37000.12}]}
    GET {UF_API_URL}/uf               ->  série recente, mais nova primeiro
"""

import logging
import threading
import time
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx
from cachetools import TTLCache

from src.core.config import config
from src.core.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class RateProvider:
    """Contrato consumido pelo AmountResolver."""

    def rate(self, on: date) -> Decimal:
        """Valor da UF vigente na data. Levanta UpstreamUnavailable se não houver."""
        raise NotImplementedError

    def latest(self) -> Decimal:
        """Último valor publicado (usado apenas como fallback provisório)."""
        raise NotImplementedError


class MindicadorUFRateProvider(RateProvider):

    def __init__(
            self,
            base_url: str = config.UF_API_URL,
            timeout: float = config.UF_API_TIMEOUT,
            max_retries: int = config.UF_API_MAX_RETRIES,
            cache_ttl: int = config.UF_CACHE_TTL,
            transport: Optional[httpx.BaseTransport] = None,
            backoff_seconds: float = 0.5,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.max_retries = max_retries
        self.transport = transport
        self.backoff_seconds = backoff_seconds
        # ✅ Cache por dia: a UF de uma data não muda depois de publicada
        self._cache: TTLCache = TTLCache(maxsize=512, ttl=cache_ttl)
        self._lock = threading.Lock()

    def _get_json(self, path: str) -> dict[str, Any]:
        """GET com retry e backoff exponencial para falhas transitórias"""
        url = f"{self.base_url}{path}"

        for attempt in range(self.max_retries):
            try:
                with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                    response = client.get(url)

                if response.status_code == 404:
                    raise UpstreamUnavailable("UF não publicada para a data", {"url": url})

                if response.status_code >= 500:
                    raise httpx.HTTPStatusError(
                        f"Server error: {response.status_code}",
                        request=response.request,
                        response=response
                    )

                response.raise_for_status()
                return response.json()

            except (httpx.TimeoutException, httpx.ConnectError, httpx.HTTPStatusError) as e:
                logger.warning(f"⚠️ Provedor de UF falhou (tentativa {attempt + 1}/{self.max_retries}): {e}")
                if attempt == self.max_retries - 1:
                    raise UpstreamUnavailable(
                        f"Provedor de UF indisponível após {self.max_retries} tentativas",
                        {"url": url},
                    ) from e
                time.sleep(self.backoff_seconds * (2 ** attempt))

            except ValueError as e:
                raise UpstreamUnavailable("Resposta inválida do provedor de UF", {"url": url}) from e

        raise UpstreamUnavailable("Provedor de UF indisponível", {"url": url})

    @staticmethod
    def _first_value(payload: dict[str, Any]) -> Optional[Decimal]:
        serie = payload.get("serie") or []
        if not serie:
            return None
        try:
            return Decimal(str(serie[0]["valor"]))
        except (KeyError, TypeError, InvalidOperation):
            return None

    def rate(self, on: date) -> Decimal:
        with self._lock:
            cached = self._cache.get(on)
        if cached is not None:
            return cached

        payload = self._get_json(f"/uf/{on.strftime('%d-%m-%Y')}")
        value = self._first_value(payload)
        if value is None:
            raise UpstreamUnavailable(
                f"UF sem valor para {on.isoformat()}",
                {"date": on.isoformat()},
            )

        with self._lock:
            self._cache[on] = value
        logger.info(f"💱 UF {on.isoformat()} = {value}")
        return value

    def latest(self) -> Decimal:
        value = self._first_value(self._get_json("/uf"))
        if value is None:
            raise UpstreamUnavailable("Nenhum valor recente de UF disponível")
        return value
