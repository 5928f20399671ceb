# src/core/exceptions.py
"""
Hierarquia de erros do motor de agenda
======================================

Cada classe corresponde a um código HTTP (ver handlers em main.py).
"""

from typing import Any, Optional


class ServiceEngineError(Exception):
    """Exceção base para erros do motor de agenda"""

    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ServiceEngineError):
    """Meses fora do intervalo, datas malformadas, payload incoerente"""

    status_code = 400
    error = "Validation Error"


class NotFoundError(ServiceEngineError):
    """Serviço, parcela ou transação inexistente"""

    status_code = 404
    error = "Not Found"


class ConflictError(ServiceEngineError):
    """Estado mudou ou transição inválida; o chamador deve recarregar"""

    status_code = 409
    error = "Conflict"


class UpstreamUnavailable(ServiceEngineError):
    """Provedor de cotação (UF) indisponível para a data pedida"""

    status_code = 503
    error = "Upstream Unavailable"


class InvariantViolation(ServiceEngineError):
    """Bug: a agenda violaria um invariante. Nunca é recuperável pelo usuário."""

    status_code = 500
    error = "Invariant Violation"
