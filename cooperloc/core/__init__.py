from .config import settings, get_settings
from .security import (
    verify_password,
    get_password_hash,
    create_access_token,
    verify_access_token,
    create_session_token,
    create_recovery_token,
    TOKEN_PURPOSE_ACCESS,
    TOKEN_PURPOSE_RECOVERY
)

__all__ = [
    "settings",
    "get_settings",
    "verify_password",
    "get_password_hash",
    "create_access_token",
    "verify_access_token",
    "create_session_token",
    "create_recovery_token",
    "TOKEN_PURPOSE_ACCESS",
    "TOKEN_PURPOSE_RECOVERY"
]
