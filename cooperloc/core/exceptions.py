"""
CooperLoc - Domain Errors
Erros de regra de negócio, convertidos em JSON pelo handler registrado em main.py
"""
from typing import Optional


class TrackerServiceError(Exception):
    """Erro base das regras de negócio"""
    status_code = 400

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"detail": self.message, **self.extra}


class NotFoundError(TrackerServiceError):
    status_code = 404


class ConflictError(TrackerServiceError):
    status_code = 409


class InvalidTransitionError(ConflictError):
    """Transição de status não prevista no ciclo de vida do rastreador"""

    def __init__(self, from_status: str, to_status: str):
        super().__init__(
            f"Transição inválida: {from_status} -> {to_status}",
            from_status=from_status,
            to_status=to_status
        )


class ValidationFailedError(TrackerServiceError):
    status_code = 422


class PermissionDeniedError(TrackerServiceError):
    status_code = 403


class AccessRedirectError(PermissionDeniedError):
    """Acesso negado com página informativa para onde o cliente deve ir"""

    def __init__(self, message: str, redirect_to: str, status: Optional[str] = None):
        extra = {"redirect_to": redirect_to}
        if status:
            extra["status"] = status
        super().__init__(message, **extra)
        self.redirect_to = redirect_to


class AuthenticationError(TrackerServiceError):
    status_code = 401
