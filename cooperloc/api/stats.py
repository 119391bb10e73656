"""
CooperLoc - Statistics API
Dashboard, mapa de envios por estado e movimentações recentes
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.database import get_db
from cooperloc.models import Tracker
from cooperloc.core.capabilities import Action
from cooperloc.core.session import SessionContext
from cooperloc.services.aggregation import build_state_map, overall_totals
from cooperloc.services.dashboard import get_dashboard, recent_movements
from cooperloc.api.deps import require

router = APIRouter(prefix="/stats", tags=["Statistics"])


@router.get("/dashboard")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_DASHBOARD))
):
    """Estatísticas do dashboard, no escopo do papel do usuário"""
    return await get_dashboard(db, session)


@router.get("/map")
async def get_shipments_map(
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_SHIPMENTS))
):
    """Envios por estado e franquia"""
    result = await db.execute(select(Tracker).where(Tracker.franchise_id.isnot(None)))
    states = build_state_map(result.scalars().all())

    return {
        "states": {code: state.to_dict() for code, state in states.items()},
        "totals": overall_totals(states).to_dict()
    }


@router.get("/movements/recent")
async def get_recent_movements(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(require(Action.VIEW_DASHBOARD))
):
    """Movimentações mais recentes"""
    return await recent_movements(db, session, limit=limit)
