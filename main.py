"""
Aplicação Principal - Agenda de Serviços Recorrentes
====================================================
Cadastro de obrigações recorrentes, geração de parcelas e vínculo de pagamentos
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
import uvicorn

from src.core.config import config

# Configuração de logging
_handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if config.LOG_FILE:
    _handlers.append(logging.FileHandler(config.LOG_FILE))

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=_handlers,
)
logger = logging.getLogger(__name__)

from src.core.database import engine, check_database_health
from src.core import models
from src.core.exceptions import InvariantViolation, ServiceEngineError
from src.core.middleware.correlation import CorrelationIdMiddleware


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gerencia o ciclo de vida da aplicação"""

    # STARTUP
    logger.info("=" * 60)
    logger.info("🚀 INICIANDO AGENDA DE SERVIÇOS")
    logger.info("=" * 60)

    logger.info("📊 Criando tabelas do banco de dados...")
    models.Base.metadata.create_all(bind=engine)

    logger.info(f"🌍 Ambiente: {config.ENVIRONMENT}")
    logger.info(f"🔐 Debug Mode: {config.DEBUG}")
    logger.info(f"🕒 Fuso horário: {config.TIMEZONE}")
    logger.info(f"💱 Provedor de UF: {config.UF_API_URL}")

    logger.info("=" * 60)
    logger.info("✅ APLICAÇÃO PRONTA!")
    logger.info("=" * 60)

    yield

    # SHUTDOWN
    logger.info("=" * 60)
    logger.info("👋 ENCERRANDO APLICAÇÃO")
    logger.info("=" * 60)


app = FastAPI(
    title="Services Schedule API",
    description="Obrigações recorrentes: agenda de parcelas, multas e vínculo de pagamentos",
    version="1.0.0",
    docs_url="/docs" if config.DEBUG else None,
    redoc_url="/redoc" if config.DEBUG else None,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

# ═══════════════════════════════════════════════════════════
# ROTAS DA API
# ═══════════════════════════════════════════════════════════

from src.api.admin import router as admin_router

app.include_router(admin_router)

# ═══════════════════════════════════════════════════════════
# ROTAS BÁSICAS
# ═══════════════════════════════════════════════════════════

@app.get("/")
async def root():
    """Endpoint raiz"""
    return {
        "name": "Services Schedule API",
        "version": "1.0.0",
        "status": "operational",
        "environment": config.ENVIRONMENT
    }


@app.get("/health")
def health_check():
    """Health check para monitoramento"""
    db_health = check_database_health()
    db_status = "healthy" if db_health["healthy"] else "unhealthy"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "services": {
            "database": db_status,
        },
        "checks": db_health["checks"],
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# ═══════════════════════════════════════════════════════════
# TRATAMENTO DE ERROS GLOBAL
# ═══════════════════════════════════════════════════════════

@app.exception_handler(ServiceEngineError)
async def service_engine_error_handler(request: Request, exc: ServiceEngineError):
    """Erros de domínio → status HTTP da própria exceção"""

    if isinstance(exc, InvariantViolation):
        logger.critical(f"🔴 Invariante violado em {request.url.path}: {exc.message} | {exc.details}")
    elif exc.status_code >= 500:
        logger.error(f"❌ {exc.error} em {request.url.path}: {exc.message}")
    else:
        logger.warning(f"⚠️ {exc.error} em {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "details": exc.details,
            "request_id": getattr(request.state, "correlation_id", "unknown")
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Payload fora do contrato (meses fora de 1..120, datas malformadas...)"""
    return JSONResponse(
        status_code=400,
        content={
            "error": "Validation Error",
            "message": "Requisição inválida",
            "details": jsonable_encoder(exc.errors()),
        }
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    """Handler para 404"""
    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": getattr(exc, "detail", None) or "O recurso solicitado não foi encontrado",
            "path": str(request.url.path)
        }
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    """Handler para erros internos"""

    logger.error(f"❌ Erro interno: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "Ocorreu um erro interno. Por favor, tente novamente mais tarde.",
            "request_id": getattr(request.state, "correlation_id", "unknown")
        }
    )


# ═══════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════

def main():
    """Função principal para executar o servidor"""

    uvicorn_config = {
        "app": "main:app",
        "host": config.HOST,
        "port": config.PORT,
        "reload": config.DEBUG,
        "log_level": "info" if config.DEBUG else "warning",
        "access_log": config.DEBUG,
    }

    logger.info(f"🌐 Servidor iniciando em http://{config.HOST}:{config.PORT}")
    uvicorn.run(**uvicorn_config)


if __name__ == "__main__":
    main()
