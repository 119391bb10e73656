"""
CooperLoc - Session Context
Contexto explícito do usuário atual, com ciclo init/close e assinatura
nos eventos de autenticação.
"""
import enum
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cooperloc.models import AuthUser, Profile
from .access import check_action, LOGIN_PAGE
from .capabilities import Action, can, parse_role
from .exceptions import AccessRedirectError

logger = logging.getLogger(__name__)


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


Listener = Callable[[AuthEvent, str], Awaitable[None]]


class Subscription:
    """Handle devolvido por AuthEventBus.subscribe"""

    def __init__(self, bus: "AuthEventBus", listener: Listener):
        self._bus = bus
        self._listener = listener
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._bus._remove(self._listener)
            self.active = False


class AuthEventBus:
    """Notificações de mudança de autenticação (um por aplicação)"""

    def __init__(self):
        self._listeners = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def publish(self, event: AuthEvent, user_id: str):
        logger.info("Auth event %s for user %s", event.value, user_id)
        for listener in list(self._listeners):
            try:
                await listener(event, user_id)
            except Exception:
                logger.exception("Auth listener failed on %s", event.value)


_DENIAL_MESSAGES = {
    "pending": "Seu cadastro está aguardando aprovação",
    "blocked": "Sua conta está bloqueada",
    "inactive": "Sua conta está inativa",
    "missing_profile": "Perfil não encontrado",
    "role": "Você não tem permissão para esta ação",
}


class SessionContext:
    """
    Usuário, perfil e papel do chamador.

    Criado por requisição e injetado nos handlers. init() carrega os dados
    e assina o barramento de eventos; close() cancela a assinatura.
    """

    def __init__(self, db: AsyncSession, events: AuthEventBus, user_id: Optional[str]):
        self.db = db
        self.events = events
        self._user_id = user_id
        self.user: Optional[AuthUser] = None
        self.profile: Optional[Profile] = None
        self._subscription: Optional[Subscription] = None

    async def init(self) -> "SessionContext":
        await self.refresh()
        self._subscription = self.events.subscribe(self._on_auth_event)
        return self

    async def close(self):
        if self._subscription:
            self._subscription.unsubscribe()
            self._subscription = None

    async def __aenter__(self):
        return await self.init()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def refresh(self):
        """Recarrega usuário e perfil do banco"""
        if not self._user_id:
            self.user = None
            self.profile = None
            return
        self.user = await self.db.get(AuthUser, self._user_id, populate_existing=True)
        self.profile = await self.db.get(Profile, self._user_id, populate_existing=True)

    async def _on_auth_event(self, event: AuthEvent, user_id: str):
        if user_id != self._user_id:
            return
        if event == AuthEvent.SIGNED_OUT:
            self.user = None
            self.profile = None
        elif event in (AuthEvent.USER_UPDATED, AuthEvent.SIGNED_IN):
            await self.refresh()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def role(self):
        return parse_role(self.profile.role) if self.profile else None

    @property
    def status(self) -> Optional[str]:
        return self.profile.status if self.profile else None

    @property
    def franchise_id(self) -> Optional[str]:
        return self.profile.franchise_id if self.profile else None

    def can(self, action: Action) -> bool:
        return self.role is not None and can(self.role, action)

    def require(self, action: Action, allow_pending: bool = False):
        """Levanta AccessRedirectError se status ou papel não permitirem a ação"""
        if not self.is_authenticated:
            raise AccessRedirectError("Sessão expirada", redirect_to=LOGIN_PAGE)

        decision = check_action(self.profile, action, allow_pending=allow_pending)
        if not decision.allowed:
            raise AccessRedirectError(
                _DENIAL_MESSAGES.get(decision.reason, "Acesso negado"),
                redirect_to=decision.redirect_to,
                status=self.status
            )
