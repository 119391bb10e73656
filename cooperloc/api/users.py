"""
CooperLoc - Users API
Aprovação, bloqueio, papel e franquia dos usuários (somente admin)
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.models import Franchise, Profile, UserRole, UserStatus
from cooperloc.schemas import (
    ProfileResponse,
    UserStatusUpdate,
    UserRoleUpdate,
    UserFranchiseUpdate,
    UserSummaryResponse
)
from cooperloc.core.capabilities import Action
from cooperloc.core.email import email_service
from cooperloc.core.session import AuthEvent, SessionContext
from cooperloc.api.deps import require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


async def _get_profile(db: AsyncSession, user_id: str) -> Profile:
    result = await db.execute(
        select(Profile)
        .where(Profile.id == user_id)
        .execution_options(populate_existing=True)
    )
    profile = result.scalar_one_or_none()

    if not profile:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Usuário não encontrado"
        )
    return profile


async def _save(db: AsyncSession, session: SessionContext, profile: Profile, change: str) -> dict:
    await db.commit()
    logger.info("Profile %s updated (%s) by %s", profile.email, change, session.user_id)

    await session.events.publish(AuthEvent.USER_UPDATED, profile.id)
    profile = await _get_profile(db, profile.id)
    return profile.to_dict()


@router.get("", response_model=List[ProfileResponse])
async def list_users(
    search: Optional[str] = Query(None),
    status_filter: Optional[UserStatus] = Query(None, alias="status"),
    role: Optional[UserRole] = Query(None),
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_USERS))
):
    """Lista usuários, mais recentes primeiro"""
    query = select(Profile)

    if search:
        query = query.where(
            or_(
                Profile.full_name.ilike(f"%{search}%"),
                Profile.email.ilike(f"%{search}%")
            )
        )
    if status_filter:
        query = query.where(Profile.status == status_filter.value)
    if role:
        query = query.where(Profile.role == role.value)

    result = await db.execute(query.order_by(Profile.created_at.desc()))
    return [p.to_dict() for p in result.scalars().all()]


@router.get("/summary", response_model=UserSummaryResponse)
async def users_summary(
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_USERS))
):
    """Quantidade de usuários por status"""
    result = await db.execute(
        select(Profile.status, func.count(Profile.id)).group_by(Profile.status)
    )
    by_status = {row[0]: row[1] for row in result.all()}

    return {
        "total": sum(by_status.values()),
        **{s.value: by_status.get(s.value, 0) for s in UserStatus}
    }


@router.patch("/{user_id}/status", response_model=ProfileResponse)
async def update_user_status(
    user_id: str,
    request: UserStatusUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_USERS))
):
    """Aprova, bloqueia, desativa ou reativa um usuário"""
    profile = await _get_profile(db, user_id)
    previous = profile.status
    profile.status = request.status.value

    data = await _save(db, session, profile, f"status {previous} -> {profile.status}")

    if previous != profile.status:
        email_service.send_account_status_email(profile.email, profile.full_name, profile.status)
    return data


@router.patch("/{user_id}/role", response_model=ProfileResponse)
async def update_user_role(
    user_id: str,
    request: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_USERS))
):
    """Altera o papel do usuário"""
    profile = await _get_profile(db, user_id)
    profile.role = request.role.value
    return await _save(db, session, profile, f"role {profile.role}")


@router.patch("/{user_id}/franchise", response_model=ProfileResponse)
async def update_user_franchise(
    user_id: str,
    request: UserFranchiseUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_USERS))
):
    """Vincula o usuário a uma franquia (ou remove o vínculo com null)"""
    profile = await _get_profile(db, user_id)

    if request.franchise_id:
        franchise = await db.get(Franchise, request.franchise_id)
        if not franchise:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Franquia não encontrada"
            )

    profile.franchise_id = request.franchise_id or None
    return await _save(db, session, profile, f"franchise {profile.franchise_id}")
