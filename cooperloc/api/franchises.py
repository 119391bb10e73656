"""
CooperLoc - Franchises API
CRUD de franquias
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.models import Franchise, Profile, Tracker
from cooperloc.schemas import FranchiseCreate, FranchiseUpdate, FranchiseResponse
from cooperloc.core.capabilities import Action
from cooperloc.core.session import SessionContext
from cooperloc.api.deps import require

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/franchises", tags=["Franchises"])


async def _get_franchise(db: AsyncSession, franchise_id: str) -> Franchise:
    franchise = await db.get(Franchise, franchise_id)
    if not franchise:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Franquia não encontrada"
        )
    return franchise


async def _tracker_count(db: AsyncSession, franchise_id: str) -> int:
    result = await db.execute(
        select(func.count(Tracker.id)).where(Tracker.franchise_id == franchise_id)
    )
    return result.scalar() or 0


async def _check_unique_cnpj(db: AsyncSession, cnpj: Optional[str], exclude_id: Optional[str] = None):
    if not cnpj:
        return
    query = select(Franchise.id).where(Franchise.cnpj == cnpj)
    if exclude_id:
        query = query.where(Franchise.id != exclude_id)
    result = await db.execute(query)
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CNPJ já cadastrado"
        )


@router.get("", response_model=List[FranchiseResponse])
async def list_franchises(
    search: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_FRANCHISES))
):
    """Lista franquias com a quantidade de rastreadores de cada uma"""
    query = select(Franchise)

    if search:
        query = query.where(
            or_(
                Franchise.name.ilike(f"%{search}%"),
                Franchise.city.ilike(f"%{search}%"),
                Franchise.cnpj.ilike(f"%{search}%")
            )
        )

    if active is not None:
        query = query.where(Franchise.active == active)

    result = await db.execute(query.order_by(Franchise.name))
    franchises = result.scalars().all()

    result = await db.execute(
        select(Tracker.franchise_id, func.count(Tracker.id))
        .where(Tracker.franchise_id.isnot(None))
        .group_by(Tracker.franchise_id)
    )
    counts = {row[0]: row[1] for row in result.all()}

    return [f.to_dict(tracker_count=counts.get(f.id, 0)) for f in franchises]


@router.get("/{franchise_id}", response_model=FranchiseResponse)
async def get_franchise(
    franchise_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_FRANCHISES))
):
    """Retorna uma franquia específica"""
    franchise = await _get_franchise(db, franchise_id)
    return franchise.to_dict(tracker_count=await _tracker_count(db, franchise.id))


@router.post("", response_model=FranchiseResponse, status_code=status.HTTP_201_CREATED)
async def create_franchise(
    request: FranchiseCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_FRANCHISES))
):
    """Cria nova franquia"""
    await _check_unique_cnpj(db, request.cnpj)

    franchise = Franchise(**request.model_dump(), active=True)
    db.add(franchise)
    await db.commit()
    await db.refresh(franchise)

    logger.info("Franchise %s created by %s", franchise.name, session.user_id)
    return franchise.to_dict(tracker_count=0)


@router.put("/{franchise_id}", response_model=FranchiseResponse)
async def update_franchise(
    franchise_id: str,
    request: FranchiseUpdate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_FRANCHISES))
):
    """Atualiza franquia"""
    franchise = await _get_franchise(db, franchise_id)
    update_data = request.model_dump(exclude_unset=True)

    if update_data.get("cnpj") and update_data["cnpj"] != franchise.cnpj:
        await _check_unique_cnpj(db, update_data["cnpj"], exclude_id=franchise.id)

    for field, value in update_data.items():
        setattr(franchise, field, value)

    await db.commit()
    await db.refresh(franchise)

    return franchise.to_dict(tracker_count=await _tracker_count(db, franchise.id))


@router.patch("/{franchise_id}/toggle-active", response_model=FranchiseResponse)
async def toggle_franchise(
    franchise_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MANAGE_FRANCHISES))
):
    """Ativa/desativa a franquia"""
    franchise = await _get_franchise(db, franchise_id)
    franchise.active = not franchise.active
    await db.commit()
    await db.refresh(franchise)

    logger.info(
        "Franchise %s %s by %s",
        franchise.name, "activated" if franchise.active else "deactivated", session.user_id
    )
    return franchise.to_dict(tracker_count=await _tracker_count(db, franchise.id))


@router.delete("/{franchise_id}")
async def delete_franchise(
    franchise_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.DELETE_FRANCHISE))
):
    """Remove franquia sem rastreadores nem usuários vinculados"""
    franchise = await _get_franchise(db, franchise_id)

    if await _tracker_count(db, franchise.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Franquia possui rastreadores; desative-a em vez de excluir"
        )

    result = await db.execute(
        select(func.count(Profile.id)).where(Profile.franchise_id == franchise.id)
    )
    if result.scalar():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Franquia possui usuários vinculados"
        )

    await db.delete(franchise)
    await db.commit()

    logger.info("Franchise %s deleted by %s", franchise.name, session.user_id)
    return {"message": "Franquia excluída"}
