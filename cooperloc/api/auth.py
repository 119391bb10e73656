"""
CooperLoc - Auth API
Cadastro, login, logout e recuperação de senha
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.models import AuthUser, Profile, UserRole, UserStatus
from cooperloc.schemas import (
    SignUpRequest,
    SignInRequest,
    SignInResponse,
    SessionResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest
)
from cooperloc.core import (
    verify_password,
    get_password_hash,
    verify_access_token,
    create_session_token,
    create_recovery_token,
    TOKEN_PURPOSE_RECOVERY,
    settings
)
from cooperloc.core.access import status_redirect
from cooperloc.core.capabilities import ROLE_LABELS, allowed_actions, menu_for, parse_role
from cooperloc.core.email import email_service
from cooperloc.core.session import AuthEvent, AuthEventBus, SessionContext
from cooperloc.api.deps import get_auth_events, get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def session_payload(user: AuthUser, profile: Profile) -> dict:
    """Usuário, perfil, papel, capacidades e menu do papel"""
    role = parse_role(profile.role) if profile else None
    redirect = status_redirect(profile) if profile else None
    return {
        "user": user.to_dict(),
        "profile": profile.to_dict() if profile else None,
        "role": role.value if role else None,
        "role_label": ROLE_LABELS.get(role),
        "capabilities": sorted(action.value for action in allowed_actions(role)),
        "menu": menu_for(role),
        "redirect_to": redirect.redirect_to if redirect else None,
    }


async def _find_user(db: AsyncSession, email: str):
    result = await db.execute(
        select(AuthUser).where(AuthUser.email == email.lower())
    )
    return result.scalar_one_or_none()


@router.post("/sign-up", response_model=SignInResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(
    request: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    events: AuthEventBus = Depends(get_auth_events)
):
    """Cadastro: perfil franqueado pendente, sem franquia, até aprovação do admin"""
    email = request.email.lower()
    if await _find_user(db, email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = AuthUser(email=email, hashed_password=get_password_hash(request.password))
    db.add(user)
    await db.flush()

    profile = Profile(
        id=user.id,
        email=email,
        full_name=request.full_name,
        role=UserRole.FRANQUEADO.value,
        status=UserStatus.PENDING.value,
        franchise_id=None,
        franchise=None
    )
    db.add(profile)
    await db.commit()

    logger.info("New sign-up %s awaiting approval", email)
    await events.publish(AuthEvent.SIGNED_IN, user.id)

    return {
        "access_token": create_session_token(user.id, user.session_version),
        "token_type": "bearer",
        **session_payload(user, profile)
    }


@router.post("/sign-in", response_model=SignInResponse)
@limiter.limit(settings.SIGN_IN_RATE_LIMIT)
async def sign_in(
    request: Request,
    credentials: SignInRequest,
    db: AsyncSession = Depends(get_db),
    events: AuthEventBus = Depends(get_auth_events)
):
    """Login com email e senha"""
    user = await _find_user(db, credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha incorretos"
        )

    user.last_sign_in_at = datetime.utcnow()
    await db.commit()

    profile = await db.get(Profile, user.id)
    await events.publish(AuthEvent.SIGNED_IN, user.id)

    return {
        "access_token": create_session_token(user.id, user.session_version),
        "token_type": "bearer",
        **session_payload(user, profile)
    }


@router.post("/sign-out")
async def sign_out(
    session: SessionContext = Depends(get_session),
    db: AsyncSession = Depends(get_db)
):
    """Encerra a sessão; tokens emitidos antes deixam de valer"""
    user_id = session.user_id
    session.user.session_version += 1
    await db.commit()

    await session.events.publish(AuthEvent.SIGNED_OUT, user_id)
    return {"message": "Sessão encerrada"}


@router.get("/me", response_model=SessionResponse)
async def get_me(session: SessionContext = Depends(get_session)):
    """Estado da sessão, disponível também para contas pendentes ou bloqueadas"""
    return session_payload(session.user, session.profile)


@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    events: AuthEventBus = Depends(get_auth_events)
):
    """Envia link de redefinição; a resposta não revela se o email existe"""
    user = await _find_user(db, request.email)
    if user:
        profile = await db.get(Profile, user.id)
        token = create_recovery_token(user.id, user.session_version)
        email_service.send_password_reset_email(
            user.email,
            profile.full_name if profile else None,
            token
        )
        await events.publish(AuthEvent.PASSWORD_RECOVERY, user.id)

    return {"message": "Se o email estiver cadastrado, você receberá um link para redefinir a senha"}


@router.post("/reset-password")
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    events: AuthEventBus = Depends(get_auth_events)
):
    """Define nova senha a partir do token recebido por email"""
    payload = verify_access_token(request.token, purpose=TOKEN_PURPOSE_RECOVERY)
    user = await db.get(AuthUser, payload.get("sub")) if payload else None

    if not user or user.session_version != payload.get("ver"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Link de redefinição inválido ou expirado"
        )

    user.hashed_password = get_password_hash(request.new_password)
    user.session_version += 1
    await db.commit()

    await events.publish(AuthEvent.USER_UPDATED, user.id)
    return {"message": "Senha redefinida com sucesso"}


@router.put("/password", response_model=SignInResponse)
async def update_password(
    request: UpdatePasswordRequest,
    session: SessionContext = Depends(get_session),
    db: AsyncSession = Depends(get_db)
):
    """Troca a senha do usuário logado e devolve um novo token"""
    user = session.user
    user.hashed_password = get_password_hash(request.new_password)
    user.session_version += 1
    await db.commit()

    await session.events.publish(AuthEvent.USER_UPDATED, user.id)

    return {
        "access_token": create_session_token(user.id, user.session_version),
        "token_type": "bearer",
        **session_payload(session.user, session.profile)
    }


@router.post("/setup")
async def initial_setup(db: AsyncSession = Depends(get_db)):
    """Setup inicial - cria admin padrão se não existir"""
    result = await db.execute(
        select(Profile).where(Profile.role == UserRole.ADMIN.value).limit(1)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Setup already completed"
        )

    email = settings.ADMIN_EMAIL.lower()
    user = await _find_user(db, email)
    if not user:
        user = AuthUser(email=email, hashed_password=get_password_hash(settings.ADMIN_PASSWORD))
        db.add(user)
        await db.flush()

    profile = await db.get(Profile, user.id)
    if not profile:
        profile = Profile(id=user.id, email=email, full_name=settings.ADMIN_NAME)
        db.add(profile)
    profile.role = UserRole.ADMIN.value
    profile.status = UserStatus.ACTIVE.value
    await db.commit()

    logger.info("Initial admin %s created", email)
    return {"message": "Setup completed", "email": email}
