"""
CooperLoc - Access Gate
Decide se um perfil pode abrir uma página ou usar uma ação, ou para onde deve ir
"""
from dataclasses import dataclass
from typing import Optional

from cooperloc.models import UserStatus
from .capabilities import Action, can

LOGIN_PAGE = "/login"
PENDING_PAGE = "/pending-approval"
BLOCKED_PAGE = "/blocked"
UNAUTHORIZED_PAGE = "/unauthorized"
DEFAULT_PAGE = "/dashboard"

PUBLIC_PAGES = frozenset({
    LOGIN_PAGE,
    "/register",
    "/forgot-password",
    "/reset-password",
    UNAUTHORIZED_PAGE,
    PENDING_PAGE,
    BLOCKED_PAGE,
})


@dataclass(frozen=True)
class PageRule:
    action: Action
    allow_pending: bool = False


PAGES = {
    "/dashboard": PageRule(Action.VIEW_DASHBOARD),
    "/trackers": PageRule(Action.VIEW_TRACKERS),
    "/franchises": PageRule(Action.VIEW_FRANCHISES),
    "/shipments": PageRule(Action.VIEW_SHIPMENTS),
    "/users": PageRule(Action.MANAGE_USERS),
    "/settings": PageRule(Action.VIEW_SETTINGS),
    "/my-trackers": PageRule(Action.VIEW_OWN_TRACKERS),
}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self):
        return {"allowed": self.allowed, "redirect_to": self.redirect_to, "reason": self.reason}


ALLOWED = AccessDecision(allowed=True)


def status_redirect(profile, allow_pending: bool = False) -> Optional[AccessDecision]:
    """Bloqueio por status da conta; None quando o status permite seguir"""
    status = profile.status
    if status == UserStatus.PENDING.value and not allow_pending:
        return AccessDecision(False, PENDING_PAGE, "pending")
    if status in (UserStatus.BLOCKED.value, UserStatus.INACTIVE.value):
        return AccessDecision(False, BLOCKED_PAGE, status)
    return None


def check_action(profile, action: Action, allow_pending: bool = False) -> AccessDecision:
    """Status primeiro, depois papel"""
    if profile is None:
        return AccessDecision(False, UNAUTHORIZED_PAGE, "missing_profile")

    blocked = status_redirect(profile, allow_pending)
    if blocked:
        return blocked

    if not can(profile.role, action):
        return AccessDecision(False, UNAUTHORIZED_PAGE, "role")

    return ALLOWED


def resolve_access(path: str, authenticated: bool, profile, pages: dict = None) -> AccessDecision:
    """
    Avalia uma página na mesma ordem do cliente:
    sessão, perfil, status (pending/blocked/inactive) e papel.
    """
    pages = PAGES if pages is None else pages
    path = path.rstrip("/") or "/"

    if path in PUBLIC_PAGES:
        return ALLOWED

    rule = pages.get(path)
    if rule is None:
        return AccessDecision(False, DEFAULT_PAGE, "unknown_page")

    if not authenticated:
        return AccessDecision(False, LOGIN_PAGE, "unauthenticated")

    return check_action(profile, rule.action, allow_pending=rule.allow_pending)
