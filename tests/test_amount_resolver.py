"""
Testes de Resolução de Valor e do Provedor de UF
================================================
O provedor HTTP é testado com httpx.MockTransport, sem rede.
"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import Mock

import httpx

from src.api.admin.services.schedules.amount_resolver import AmountResolver, round_currency
from src.api.admin.services.uf_rate_provider import MindicadorUFRateProvider, RateProvider
from src.core.exceptions import UpstreamUnavailable
from src.core.utils.enums import AmountIndexation


# ═══════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════

@pytest.fixture
def rate_provider():
    provider = Mock(spec=RateProvider)
    provider.rate.return_value = Decimal("37000.50")
    provider.latest.return_value = Decimal("37100.00")
    return provider


def make_provider(handler, max_retries=3):
    return MindicadorUFRateProvider(
        base_url="https://uf.test/api",
        timeout=1.0,
        max_retries=max_retries,
        cache_ttl=60,
        transport=httpx.MockTransport(handler),
        backoff_seconds=0,
    )


# ═══════════════════════════════════════════════════════════
# AMOUNT RESOLVER
# ═══════════════════════════════════════════════════════════

class TestAmountResolver:

    def test_no_indexation_returns_amount_verbatim(self, rate_provider):
        resolved = AmountResolver(rate_provider).resolve(
            Decimal("45990"), AmountIndexation.NONE, date(2024, 1, 10)
        )

        assert resolved.amount == Decimal("45990")
        assert resolved.rate is None
        assert resolved.provisional is False
        rate_provider.rate.assert_not_called()

    def test_uf_uses_rate_of_due_date(self, rate_provider):
        """Testa 2 UF × 37.000,50 = 74.001"""
        resolved = AmountResolver(rate_provider).resolve(
            Decimal("2"), AmountIndexation.UF, date(2024, 1, 10)
        )

        rate_provider.rate.assert_called_once_with(date(2024, 1, 10))
        assert resolved.amount == Decimal("74001")
        assert resolved.rate == Decimal("37000.50")
        assert resolved.provisional is False

    def test_uf_unavailable_propagates(self, rate_provider):
        rate_provider.rate.side_effect = UpstreamUnavailable("sem UF")

        with pytest.raises(UpstreamUnavailable):
            AmountResolver(rate_provider).resolve(Decimal("1"), AmountIndexation.UF, date(2030, 1, 1))

        rate_provider.latest.assert_not_called()

    def test_uf_provisional_fallback(self, rate_provider):
        rate_provider.rate.side_effect = UpstreamUnavailable("sem UF")

        resolved = AmountResolver(rate_provider).resolve(
            Decimal("1"), AmountIndexation.UF, date(2030, 1, 1), allow_provisional=True
        )

        assert resolved.amount == Decimal("37100")
        assert resolved.provisional is True

    def test_uf_without_provider_is_unavailable(self):
        with pytest.raises(UpstreamUnavailable):
            AmountResolver(None).resolve(Decimal("1"), AmountIndexation.UF, date(2024, 1, 1))

    def test_round_currency(self):
        assert round_currency(Decimal("10.5")) == Decimal("11")
        assert round_currency(Decimal("10.49")) == Decimal("10")
        assert round_currency(Decimal("10.005"), decimals=2) == Decimal("10.01")


# ═══════════════════════════════════════════════════════════
# PROVEDOR HTTP
# ═══════════════════════════════════════════════════════════

class TestMindicadorUFRateProvider:

    def test_rate_reads_first_value_of_serie(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"serie": [{"fecha": "2024-01-10T03:00:00.000Z", "valor": 36789.36}]})

        provider = make_provider(handler)

        assert provider.rate(date(2024, 1, 10)) == Decimal("36789.36")
        assert calls == ["/api/uf/10-01-2024"]

    def test_rate_is_cached_per_day(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(request.url.path)
            return httpx.Response(200, json={"serie": [{"valor": 36000}]})

        provider = make_provider(handler)
        provider.rate(date(2024, 1, 10))
        provider.rate(date(2024, 1, 10))
        provider.rate(date(2024, 1, 11))

        assert len(calls) == 2

    def test_empty_serie_is_unavailable(self):
        provider = make_provider(lambda request: httpx.Response(200, json={"serie": []}))

        with pytest.raises(UpstreamUnavailable):
            provider.rate(date(2099, 1, 1))

    def test_not_found_is_unavailable_without_retry(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(1)
            return httpx.Response(404)

        with pytest.raises(UpstreamUnavailable):
            make_provider(handler).rate(date(2024, 1, 1))

        assert len(calls) == 1

    def test_server_errors_are_retried(self):
        responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"serie": [{"valor": 1}]})])

        provider = make_provider(lambda request: next(responses))

        assert provider.rate(date(2024, 1, 1)) == Decimal("1")

    def test_gives_up_after_max_retries(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(1)
            raise httpx.ConnectError("sem rede", request=request)

        with pytest.raises(UpstreamUnavailable):
            make_provider(handler, max_retries=2).rate(date(2024, 1, 1))

        assert len(calls) == 2

    def test_invalid_json_is_unavailable(self):
        provider = make_provider(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(UpstreamUnavailable):
            provider.rate(date(2024, 1, 1))

    def test_latest(self):
        provider = make_provider(
            lambda request: httpx.Response(200, json={"serie": [{"valor": 37001.1}, {"valor": 36990}]})
        )

        assert provider.latest() == Decimal("37001.1")
