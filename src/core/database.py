"""
Camada de Banco de Dados
========================

- ✅ Engine configurado por ambiente (PostgreSQL em produção, SQLite em dev/teste)
- ✅ Retry automático ao abrir sessão
- ✅ Rollback em erro
- ✅ Health check
"""

import logging
import time
from contextlib import contextmanager
from typing import Annotated
from functools import wraps

from fastapi import Depends
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, NullPool
from sqlalchemy.exc import DBAPIError, OperationalError, DisconnectionError

from src.core.config import config

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """Configurações centralizadas do banco de dados"""

    PRODUCTION_POOL_SIZE = 20
    PRODUCTION_MAX_OVERFLOW = 20
    PRODUCTION_POOL_TIMEOUT = 10
    PRODUCTION_POOL_RECYCLE = 1800

    # Retry Logic
    MAX_RETRIES = 3
    RETRY_DELAY = 0.5  # segundos


# ═══════════════════════════════════════════════════════════
# ENGINE CONFIGURATION
# ═══════════════════════════════════════════════════════════

def get_engine_config() -> dict:
    """
    Retorna configuração do engine baseada no ambiente

    Returns:
        dict: Configuração do SQLAlchemy engine
    """

    if config.is_sqlite:
        return {
            "connect_args": {"check_same_thread": False},
            "echo": config.DEBUG,
        }

    if config.is_production:
        return {
            "poolclass": QueuePool,
            "pool_size": DatabaseConfig.PRODUCTION_POOL_SIZE,
            "max_overflow": DatabaseConfig.PRODUCTION_MAX_OVERFLOW,
            "pool_timeout": DatabaseConfig.PRODUCTION_POOL_TIMEOUT,
            "pool_recycle": DatabaseConfig.PRODUCTION_POOL_RECYCLE,
            "pool_pre_ping": True,
            "echo": False,
            "connect_args": {
                "connect_timeout": 10,
                "options": "-c statement_timeout=30000",  # 30s query timeout
                "application_name": "services_schedule_api",
            },
        }

    if config.is_test:
        return {
            "poolclass": NullPool,
            "echo": False,
        }

    return {
        "pool_pre_ping": True,
        "echo": config.DEBUG,
    }


engine_config = get_engine_config()
engine = create_engine(config.DATABASE_URL, **engine_config)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)


# ═══════════════════════════════════════════════════════════
# RETRY LOGIC
# ═══════════════════════════════════════════════════════════

def retry_on_db_error(max_retries: int = DatabaseConfig.MAX_RETRIES):
    """
    Decorator para retry ao abrir a sessão.

    Compatível com geradores de dependência do FastAPI: apenas a
    obtenção da sessão é repetida, nunca o corpo da rota.
    """

    def decorator(func_gen):
        @wraps(func_gen)
        def wrapper(*args, **kwargs):
            last_exception = None
            gen = None
            resource = None

            for attempt in range(max_retries):
                try:
                    gen = func_gen(*args, **kwargs)
                    resource = next(gen)
                    last_exception = None
                    break

                except (OperationalError, DisconnectionError, DBAPIError) as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = DatabaseConfig.RETRY_DELAY * (2 ** attempt)  # Backoff
                        logger.warning(
                            f"⚠️ Erro de banco (tentativa {attempt + 1}/{max_retries}). "
                            f"Retentando em {delay}s... Erro: {str(e)}"
                        )
                        time.sleep(delay)
                    else:
                        logger.error(f"❌ Falha ao obter sessão após {max_retries} tentativas: {str(e)}")

            if last_exception:
                raise last_exception

            try:
                yield resource
            except Exception as e:
                # Devolve o erro ao gerador original para acionar rollback/close
                try:
                    gen.throw(e)
                except StopIteration:
                    pass
                except type(e):
                    pass
                raise
            else:
                try:
                    next(gen)
                except StopIteration:
                    pass

        return wrapper

    return decorator


# ═══════════════════════════════════════════════════════════
# DATABASE DEPENDENCIES
# ═══════════════════════════════════════════════════════════

@retry_on_db_error()
def get_db():
    """
    Dependency para operações de leitura e escrita

    - ✅ Retry automático
    - ✅ Rollback em erro
    - ✅ Logging de exceções
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"❌ Erro na sessão: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


get_db_manager = contextmanager(get_db)

GetDBDep = Annotated[Session, Depends(get_db)]


# ═══════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════

def check_database_health() -> dict:
    """
    Verifica saúde do banco de dados

    Returns:
        dict: Status de saúde detalhado
    """
    health_status = {
        "healthy": True,
        "timestamp": time.time(),
        "checks": {}
    }

    started = time.perf_counter()
    try:
        with get_db_manager() as db:
            db.execute(text("SELECT 1")).scalar()
        health_status["checks"]["connection"] = {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - started) * 1000, 2)
        }
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        health_status["healthy"] = False
        health_status["checks"]["connection"] = {
            "status": "unhealthy",
            "error": str(e)
        }

    return health_status
