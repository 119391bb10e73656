"""
CooperLoc - Tracker Lifecycle

Ciclo de vida do rastreador:

    estoque -> enviado -> instalado
                       -> defeito

Cada transição atualiza o rastreador e grava exatamente uma movimentação,
no mesmo commit. Não há transição a partir de instalado ou defeito.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.core.capabilities import Action
from cooperloc.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailedError
)
from cooperloc.core.session import SessionContext
from cooperloc.models import (
    Franchise,
    Tracker,
    TrackerMovement,
    TrackerStatus,
    INSTALLATION_FIELDS
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    TrackerStatus.ESTOQUE: frozenset({TrackerStatus.ENVIADO}),
    TrackerStatus.ENVIADO: frozenset({TrackerStatus.INSTALADO, TrackerStatus.DEFEITO}),
    TrackerStatus.INSTALADO: frozenset(),
    TrackerStatus.DEFEITO: frozenset(),
}

# Ação exigida do ator para chegar em cada status
TRANSITION_ACTIONS = {
    TrackerStatus.ENVIADO: Action.SEND_TRACKER,
    TrackerStatus.INSTALADO: Action.INSTALL_TRACKER,
    TrackerStatus.DEFEITO: Action.MARK_DEFECTIVE,
}


def allowed_transitions(status) -> frozenset:
    return TRANSITIONS[TrackerStatus(status)]


def check_transition(from_status, to_status):
    """Levanta InvalidTransitionError se a transição não existir"""
    from_status = TrackerStatus(from_status)
    to_status = TrackerStatus(to_status)
    if to_status not in allowed_transitions(from_status):
        raise InvalidTransitionError(from_status.value, to_status.value)


async def get_tracker(db: AsyncSession, tracker_id: str) -> Tracker:
    """Busca rastreador (com franquia) ou NotFoundError"""
    result = await db.execute(
        select(Tracker)
        .where(Tracker.id == tracker_id)
        .execution_options(populate_existing=True)
    )
    tracker = result.scalar_one_or_none()
    if not tracker:
        raise NotFoundError("Rastreador não encontrado")
    return tracker


class TrackerLifecycle:
    """Operações de negócio sobre rastreadores"""

    def __init__(self, db: AsyncSession, session: SessionContext):
        self.db = db
        self.session = session

    async def create(self, serial_number: str, model: Optional[str] = None,
                     notes: Optional[str] = None,
                     status: TrackerStatus = TrackerStatus.ESTOQUE) -> Tracker:
        """Cadastra rastreador novo no estoque"""
        self.session.require(Action.CREATE_TRACKER)

        if TrackerStatus(status) != TrackerStatus.ESTOQUE:
            raise ValidationFailedError("Rastreadores novos entram em estoque")

        result = await self.db.execute(
            select(Tracker.id).where(Tracker.serial_number == serial_number)
        )
        if result.scalar_one_or_none():
            raise ConflictError("Número de série já cadastrado", serial_number=serial_number)

        tracker = Tracker(
            serial_number=serial_number,
            model=model,
            notes=notes,
            status=TrackerStatus.ESTOQUE.value
        )
        self.db.add(tracker)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Número de série já cadastrado", serial_number=serial_number)

        logger.info("Tracker %s created by %s", serial_number, self.session.user_id)
        return await get_tracker(self.db, tracker.id)

    async def delete(self, tracker_id: str):
        """Remove rastreador que nunca foi movimentado"""
        self.session.require(Action.DELETE_TRACKER)
        tracker = await get_tracker(self.db, tracker_id)

        result = await self.db.execute(
            select(func.count(TrackerMovement.id)).where(TrackerMovement.tracker_id == tracker.id)
        )
        if result.scalar():
            raise ConflictError(
                "Rastreador possui movimentações e não pode ser excluído",
                serial_number=tracker.serial_number
            )

        await self.db.delete(tracker)
        await self.db.commit()
        logger.info("Tracker %s deleted by %s", tracker.serial_number, self.session.user_id)

    async def send(self, tracker_id: str, franchise_id: str, notes: Optional[str] = None) -> Tracker:
        """estoque -> enviado, para uma franquia ativa"""
        if not franchise_id:
            raise ValidationFailedError("Selecione a franquia de destino")

        tracker = await self._prepare(tracker_id, TrackerStatus.ENVIADO)

        franchise = await self.db.get(Franchise, franchise_id)
        if not franchise:
            raise NotFoundError("Franquia não encontrada")
        if not franchise.active:
            raise ValidationFailedError("Franquia inativa não pode receber rastreadores")

        now = datetime.utcnow()
        return await self._apply(
            tracker,
            TrackerStatus.ENVIADO,
            changes={"franchise_id": franchise.id, "sent_at": now},
            notes=notes
        )

    async def install(self, tracker_id: str, installation: dict) -> Tracker:
        """
        enviado -> instalado.

        Grava os campos de instalação informados; os ausentes ficam nulos.
        """
        tracker = await self._prepare(tracker_id, TrackerStatus.INSTALADO)

        changes = {field: installation.get(field) or None for field in INSTALLATION_FIELDS}
        changes["installed_at"] = datetime.utcnow()

        return await self._apply(
            tracker,
            TrackerStatus.INSTALADO,
            changes=changes,
            notes=installation.get("notes")
        )

    async def mark_defective(self, tracker_id: str, notes: Optional[str] = None) -> Tracker:
        """enviado -> defeito (terminal)"""
        tracker = await self._prepare(tracker_id, TrackerStatus.DEFEITO)
        return await self._apply(tracker, TrackerStatus.DEFEITO, changes={}, notes=notes)

    async def _prepare(self, tracker_id: str, to_status: TrackerStatus) -> Tracker:
        """Permissão do ator, existência, escopo de franquia e transição"""
        self.session.require(TRANSITION_ACTIONS[to_status])

        tracker = await get_tracker(self.db, tracker_id)

        if to_status in (TrackerStatus.INSTALADO, TrackerStatus.DEFEITO):
            if not self.session.franchise_id or tracker.franchise_id != self.session.franchise_id:
                raise PermissionDeniedError("Rastreador não pertence à sua franquia")

        check_transition(tracker.status, to_status)
        return tracker

    async def _apply(self, tracker: Tracker, to_status: TrackerStatus,
                     changes: dict, notes: Optional[str] = None) -> Tracker:
        from_status = tracker.status
        from_franchise_id = tracker.franchise_id

        for field, value in changes.items():
            setattr(tracker, field, value)
        tracker.status = to_status.value

        movement = TrackerMovement(
            tracker_id=tracker.id,
            from_status=from_status,
            to_status=to_status.value,
            from_franchise_id=from_franchise_id,
            to_franchise_id=tracker.franchise_id,
            quantity=1,
            notes=notes,
            created_by=self.session.user_id
        )
        self.db.add(movement)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            logger.exception(
                "Transition %s -> %s failed for tracker %s",
                from_status, to_status.value, tracker.serial_number
            )
            raise

        logger.info(
            "Tracker %s: %s -> %s by %s",
            tracker.serial_number, from_status, to_status.value, self.session.user_id
        )
        return await get_tracker(self.db, tracker.id)
