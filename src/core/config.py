# src/core/config.py
"""
Configurações da Aplicação - Agenda de Serviços Recorrentes
===========================================================

Gerencia variáveis de ambiente de forma centralizada e tipada.
"""

from decimal import Decimal
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Carrega .env do diretório raiz
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent.parent / ".env")


class Config(BaseSettings):
    """Configurações centralizadas da aplicação"""

    # ═══════════════════════════════════════════════════════════
    # 🌍 AMBIENTE
    # ═══════════════════════════════════════════════════════════

    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # ═══════════════════════════════════════════════════════════
    # 🗄️ BANCO DE DADOS
    # ═══════════════════════════════════════════════════════════

    DATABASE_URL: str = "sqlite:///./services.db"

    # ═══════════════════════════════════════════════════════════
    # 📅 AGENDA DE COBRANÇAS
    # ═══════════════════════════════════════════════════════════

    TIMEZONE: str = "America/Santiago"
    CURRENCY_DECIMALS: int = 0  # CLP não tem centavos
    DEFAULT_GENERATION_MONTHS: int = 12
    MAX_GENERATION_MONTHS: int = 120

    # ═══════════════════════════════════════════════════════════
    # 💱 UF (PROVEDOR DE COTAÇÃO)
    # ═══════════════════════════════════════════════════════════

    UF_API_URL: str = "https://mindicador.cl/api"
    UF_API_TIMEOUT: float = 10.0
    UF_API_MAX_RETRIES: int = 3
    UF_CACHE_TTL: int = 86400
    UF_ALLOW_PROVISIONAL_FALLBACK: bool = False

    # ═══════════════════════════════════════════════════════════
    # 🔗 SINCRONIZAÇÃO COM TRANSAÇÕES
    # ═══════════════════════════════════════════════════════════

    SYNC_DAYS_BEFORE_DUE: int = 5
    SYNC_DAYS_AFTER_DUE: int = 30
    SYNC_AMOUNT_TOLERANCE: Decimal = Decimal("0")

    # ═══════════════════════════════════════════════════════════
    # 🌐 CORS
    # ═══════════════════════════════════════════════════════════

    ALLOWED_ORIGINS: str = "http://localhost:3000"

    def get_allowed_origins_list(self) -> list[str]:
        """Retorna lista de origens permitidas para CORS"""
        origins = [
            origin.strip()
            for origin in self.ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]

        if self.is_development:
            origins.extend([
                "http://localhost:3000",
                "http://127.0.0.1:3000",
            ])

        # Remove duplicatas mantendo ordem
        return list(dict.fromkeys(origins))

    # ═══════════════════════════════════════════════════════════
    # 🖥️ SERVIDOR
    # ═══════════════════════════════════════════════════════════

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # ═══════════════════════════════════════════════════════════
    # 🔧 PROPRIEDADES ÚTEIS
    # ═══════════════════════════════════════════════════════════

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def is_test(self) -> bool:
        return self.ENVIRONMENT.lower() == "test"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# ✅ Instância global
config = Config()


# ✅ Validação básica no startup
def validate_config():
    """Valida configurações críticas"""
    errors = []

    if config.ENVIRONMENT not in ["development", "test", "production"]:
        errors.append("ENVIRONMENT deve ser: development, test ou production")

    if not 1 <= config.DEFAULT_GENERATION_MONTHS <= config.MAX_GENERATION_MONTHS:
        errors.append("DEFAULT_GENERATION_MONTHS deve estar entre 1 e MAX_GENERATION_MONTHS")

    if config.MAX_GENERATION_MONTHS > 120:
        errors.append("MAX_GENERATION_MONTHS não pode passar de 120")

    if config.CURRENCY_DECIMALS < 0:
        errors.append("CURRENCY_DECIMALS não pode ser negativo")

    if config.UF_API_MAX_RETRIES < 1:
        errors.append("UF_API_MAX_RETRIES deve ser pelo menos 1")

    if config.SYNC_DAYS_BEFORE_DUE < 0 or config.SYNC_DAYS_AFTER_DUE < 0:
        errors.append("SYNC_DAYS_BEFORE_DUE e SYNC_DAYS_AFTER_DUE não podem ser negativos")

    if errors:
        raise ValueError(
            "❌ Erros de configuração:\n" + "\n".join(f"  • {e}" for e in errors)
        )


validate_config()
