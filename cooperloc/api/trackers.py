"""
CooperLoc - Trackers API
Cadastro, envio, instalação e defeito de rastreadores
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.models import Tracker, TrackerMovement, TrackerStatus
from cooperloc.schemas import (
    TrackerCreate,
    TrackerSendRequest,
    InstallationRequest,
    DefectRequest,
    TrackerResponse,
    MovementResponse
)
from cooperloc.core.capabilities import Action
from cooperloc.core.exceptions import PermissionDeniedError
from cooperloc.core.session import SessionContext
from cooperloc.services.dashboard import count_by_status
from cooperloc.services.lifecycle import TrackerLifecycle, get_tracker
from cooperloc.api.deps import require

router = APIRouter(prefix="/trackers", tags=["Trackers"])


def _filter(query, search: Optional[str], status_filter: Optional[TrackerStatus]):
    if search:
        query = query.where(
            or_(
                Tracker.serial_number.ilike(f"%{search}%"),
                Tracker.model.ilike(f"%{search}%")
            )
        )
    if status_filter:
        query = query.where(Tracker.status == status_filter.value)
    return query


def _check_visible(session: SessionContext, tracker: Tracker):
    """Matriz/admin veem todos; franqueado só os da própria franquia"""
    if session.can(Action.VIEW_TRACKERS):
        return
    if not session.franchise_id or tracker.franchise_id != session.franchise_id:
        raise PermissionDeniedError("Rastreador não pertence à sua franquia")


@router.get("", response_model=List[TrackerResponse])
async def list_trackers(
    search: Optional[str] = Query(None),
    status_filter: Optional[TrackerStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_TRACKERS))
):
    """Lista todos os rastreadores, mais recentes primeiro"""
    query = _filter(select(Tracker), search, status_filter)
    result = await db.execute(query.order_by(Tracker.created_at.desc()))
    return [t.to_dict() for t in result.scalars().all()]


@router.get("/mine")
async def list_my_trackers(
    search: Optional[str] = Query(None),
    status_filter: Optional[TrackerStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_OWN_TRACKERS))
):
    """Rastreadores recebidos pela franquia do usuário, com totais por status"""
    if not session.franchise_id:
        trackers = []
    else:
        query = select(Tracker).where(Tracker.franchise_id == session.franchise_id)
        result = await db.execute(query.order_by(Tracker.sent_at.desc()))
        trackers = result.scalars().all()

    # Totais sobre a franquia inteira, antes dos filtros da listagem
    counts = count_by_status(t.status for t in trackers)

    if search or status_filter:
        needle = (search or "").lower()
        trackers = [
            t for t in trackers
            if (not status_filter or t.status == status_filter.value)
            and (not needle
                 or needle in t.serial_number.lower()
                 or needle in (t.model or "").lower())
        ]

    return {
        "trackers": [t.to_dict() for t in trackers],
        "stats": {
            "total": sum(counts.values()),
            "received": counts[TrackerStatus.ENVIADO.value],
            "installed": counts[TrackerStatus.INSTALADO.value],
            "defective": counts[TrackerStatus.DEFEITO.value],
        }
    }


@router.get("/{tracker_id}", response_model=TrackerResponse)
async def get_tracker_detail(
    tracker_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_DASHBOARD))
):
    """Retorna um rastreador"""
    tracker = await get_tracker(db, tracker_id)
    _check_visible(session, tracker)
    return tracker.to_dict()


@router.post("", response_model=TrackerResponse, status_code=status.HTTP_201_CREATED)
async def create_tracker(
    request: TrackerCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.CREATE_TRACKER))
):
    """Cadastra rastreador no estoque"""
    tracker = await TrackerLifecycle(db, session).create(
        serial_number=request.serial_number,
        model=request.model,
        notes=request.notes,
        status=request.status
    )
    return tracker.to_dict()


@router.delete("/{tracker_id}")
async def delete_tracker(
    tracker_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.DELETE_TRACKER))
):
    """Remove rastreador sem movimentações"""
    await TrackerLifecycle(db, session).delete(tracker_id)
    return {"message": "Rastreador excluído"}


@router.post("/{tracker_id}/send", response_model=TrackerResponse)
async def send_tracker(
    tracker_id: str,
    request: TrackerSendRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.SEND_TRACKER))
):
    """Envia rastreador do estoque para uma franquia"""
    tracker = await TrackerLifecycle(db, session).send(
        tracker_id, request.franchise_id, notes=request.notes
    )
    return tracker.to_dict()


@router.post("/{tracker_id}/install", response_model=TrackerResponse)
async def install_tracker(
    tracker_id: str,
    request: InstallationRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.INSTALL_TRACKER))
):
    """Registra a instalação no cliente"""
    tracker = await TrackerLifecycle(db, session).install(tracker_id, request.model_dump())
    return tracker.to_dict()


@router.post("/{tracker_id}/defect", response_model=TrackerResponse)
async def mark_tracker_defective(
    tracker_id: str,
    request: Optional[DefectRequest] = None,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.MARK_DEFECTIVE))
):
    """Marca rastreador recebido como defeituoso"""
    notes = request.notes if request else None
    tracker = await TrackerLifecycle(db, session).mark_defective(tracker_id, notes=notes)
    return tracker.to_dict()


@router.get("/{tracker_id}/movements", response_model=List[MovementResponse])
async def list_tracker_movements(
    tracker_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_DASHBOARD))
):
    """Histórico de movimentações do rastreador, mais recente primeiro"""
    tracker = await get_tracker(db, tracker_id)
    if not session.can(Action.VIEW_MOVEMENTS):
        _check_visible(session, tracker)

    result = await db.execute(
        select(TrackerMovement)
        .where(TrackerMovement.tracker_id == tracker.id)
        .order_by(TrackerMovement.created_at.desc())
    )
    return [m.to_dict() for m in result.scalars().all()]
