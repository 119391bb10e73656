"""
CooperLoc - Security
Hash de senhas (bcrypt) e tokens de sessão/recuperação (JWT)
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
import bcrypt

from .config import settings

TOKEN_PURPOSE_ACCESS = "access"
TOKEN_PURPOSE_RECOVERY = "recovery"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verifica password usando bcrypt"""
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """Gera hash bcrypt do password"""
    return bcrypt.hashpw(
        password.encode('utf-8'),
        bcrypt.gensalt()
    ).decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Cria JWT token de sessão"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "purpose": to_encode.get("purpose", TOKEN_PURPOSE_ACCESS)})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str, purpose: str = TOKEN_PURPOSE_ACCESS) -> Optional[dict]:
    """Verifica JWT token e a finalidade para a qual foi emitido"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("purpose") != purpose:
        return None
    return payload


def create_session_token(user_id: str, session_version: int) -> str:
    """Token de sessão; deixa de valer quando session_version muda"""
    return create_access_token({"sub": user_id, "ver": session_version})


def create_recovery_token(user_id: str, session_version: int) -> str:
    """Token de redefinição de senha enviado por email"""
    return create_access_token(
        {"sub": user_id, "ver": session_version, "purpose": TOKEN_PURPOSE_RECOVERY},
        expires_delta=timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES)
    )
