"""
CooperLoc - API Dependencies
Sessão do chamador e checagem de ações via Depends
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.core import verify_access_token
from cooperloc.core.capabilities import Action
from cooperloc.core.exceptions import AuthenticationError
from cooperloc.core.session import AuthEventBus, SessionContext
from cooperloc.models import AuthUser

security = HTTPBearer(auto_error=False)


def get_auth_events(request: Request) -> AuthEventBus:
    return request.app.state.auth_events


async def get_optional_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    events: AuthEventBus = Depends(get_auth_events)
):
    """SessionContext do token (ou anônimo se não houver token válido)"""
    user_id = None
    version = None
    if credentials:
        payload = verify_access_token(credentials.credentials)
        if payload:
            user_id = payload.get("sub")
            version = payload.get("ver")

    # Token emitido antes do último sign-out / troca de senha
    if user_id:
        user = await db.get(AuthUser, user_id)
        if not user or user.session_version != version:
            user_id = None

    session = SessionContext(db, events, user_id)
    await session.init()

    try:
        yield session
    finally:
        await session.close()


async def get_session(session: SessionContext = Depends(get_optional_session)) -> SessionContext:
    """SessionContext autenticado"""
    if not session.is_authenticated:
        raise AuthenticationError("Invalid or expired token")
    return session


def require(action: Action, allow_pending: bool = False):
    """Dependency que exige status ativo e a ação no papel do usuário"""

    async def dependency(session: SessionContext = Depends(get_session)) -> SessionContext:
        session.require(action, allow_pending=allow_pending)
        return session

    return dependency
