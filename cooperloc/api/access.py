"""
CooperLoc - Access API
Menu do papel e verificação de acesso a páginas
"""
from fastapi import APIRouter, Depends, Query

from cooperloc.core.access import resolve_access
from cooperloc.core.capabilities import menu_for
from cooperloc.core.session import SessionContext
from cooperloc.api.deps import get_optional_session, get_session

router = APIRouter(prefix="/access", tags=["Access"])


@router.get("/menu")
async def get_menu(session: SessionContext = Depends(get_session)):
    """Itens de menu do papel do usuário"""
    return menu_for(session.role)


@router.get("/check")
async def check_page(
    path: str = Query(..., min_length=1),
    session: SessionContext = Depends(get_optional_session)
):
    """Diz se a página pode ser aberta ou para onde redirecionar"""
    decision = resolve_access(path, session.is_authenticated, session.profile)
    return {"path": path, **decision.to_dict()}
