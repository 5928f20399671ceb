# src/api/admin/services/schedules/amount_resolver.py
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from src.api.admin.services.uf_rate_provider import RateProvider
from src.core.config import config
from src.core.exceptions import UpstreamUnavailable, ValidationError
from src.core.utils.enums import AmountIndexation

logger = logging.getLogger(__name__)


def round_currency(value: Decimal, decimals: int = config.CURRENCY_DECIMALS) -> Decimal:
    """Arredonda para a menor unidade da moeda (CLP: inteiro)."""
    quantum = Decimal(1).scaleb(-decimals)
    return Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ResolvedAmount:
    amount: Decimal
    rate: Optional[Decimal] = None
    provisional: bool = False


class AmountResolver:
    """
    Valor esperado de uma parcela na moeda de liquidação.

    NONE: o valor padrão do serviço, sem alteração.
    UF: valor padrão = quantidade de UF; multiplica pela cotação do dia do vencimento.
    """

    def __init__(self, rate_provider: Optional[RateProvider] = None):
        self.rate_provider = rate_provider

    def resolve(
            self,
            default_amount: Decimal,
            indexation: AmountIndexation,
            due_date: date,
            allow_provisional: bool = False,
    ) -> ResolvedAmount:
        amount = Decimal(default_amount)

        if indexation == AmountIndexation.NONE:
            return ResolvedAmount(amount=amount)

        if indexation != AmountIndexation.UF:
            raise ValidationError(f"Indexação desconhecida: {indexation}")

        if self.rate_provider is None:
            raise UpstreamUnavailable("Nenhum provedor de UF configurado")

        try:
            rate = self.rate_provider.rate(due_date)
            provisional = False
        except UpstreamUnavailable:
            if not allow_provisional:
                raise
            # Fallback: última UF conhecida, marcando a parcela como provisória
            rate = self.rate_provider.latest()
            provisional = True
            logger.warning(f"⚠️ UF de {due_date.isoformat()} indisponível, usando última cotação {rate} (provisório)")

        return ResolvedAmount(
            amount=round_currency(amount * rate),
            rate=rate,
            provisional=provisional,
        )
