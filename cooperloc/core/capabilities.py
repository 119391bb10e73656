"""
CooperLoc - Capabilities
Tabela estática papel -> ações permitidas, consultada em um único lugar
"""
import enum

from cooperloc.models import UserRole


class Action(str, enum.Enum):
    """Ações verificadas pelo servidor"""
    VIEW_DASHBOARD = "view_dashboard"

    VIEW_TRACKERS = "view_trackers"
    CREATE_TRACKER = "create_tracker"
    DELETE_TRACKER = "delete_tracker"
    SEND_TRACKER = "send_tracker"

    VIEW_OWN_TRACKERS = "view_own_trackers"
    INSTALL_TRACKER = "install_tracker"
    MARK_DEFECTIVE = "mark_defective"

    VIEW_FRANCHISES = "view_franchises"
    MANAGE_FRANCHISES = "manage_franchises"
    DELETE_FRANCHISE = "delete_franchise"

    VIEW_SHIPMENTS = "view_shipments"
    VIEW_MOVEMENTS = "view_movements"

    MANAGE_USERS = "manage_users"
    VIEW_SETTINGS = "view_settings"


_HEADQUARTERS = frozenset({
    Action.VIEW_DASHBOARD,
    Action.VIEW_TRACKERS,
    Action.CREATE_TRACKER,
    Action.SEND_TRACKER,
    Action.VIEW_FRANCHISES,
    Action.MANAGE_FRANCHISES,
    Action.VIEW_SHIPMENTS,
    Action.VIEW_MOVEMENTS,
    Action.VIEW_SETTINGS,
})

CAPABILITIES = {
    UserRole.ADMIN: _HEADQUARTERS | {
        Action.DELETE_TRACKER,
        Action.DELETE_FRANCHISE,
        Action.MANAGE_USERS,
    },
    UserRole.MATRIZ: _HEADQUARTERS,
    UserRole.FRANQUEADO: frozenset({
        Action.VIEW_DASHBOARD,
        Action.VIEW_SETTINGS,
        Action.VIEW_OWN_TRACKERS,
        Action.INSTALL_TRACKER,
        Action.MARK_DEFECTIVE,
    }),
}

ROLE_LABELS = {
    UserRole.ADMIN: "Administrador",
    UserRole.MATRIZ: "Matriz",
    UserRole.FRANQUEADO: "Franqueado",
}

# Itens de menu na ordem exibida; cada um aparece se o papel tiver a ação
MENU_ITEMS = [
    ("Dashboard", "/dashboard", Action.VIEW_DASHBOARD),
    ("Rastreadores", "/trackers", Action.VIEW_TRACKERS),
    ("Meus Rastreadores", "/my-trackers", Action.VIEW_OWN_TRACKERS),
    ("Franquias", "/franchises", Action.VIEW_FRANCHISES),
    ("Usuários", "/users", Action.MANAGE_USERS),
    ("Envios", "/shipments", Action.VIEW_SHIPMENTS),
    # No menu lateral só do admin; os demais abrem pelo menu da conta
    ("Configurações", "/settings", Action.MANAGE_USERS),
]


def parse_role(role):
    """Converte string em UserRole; None se desconhecido"""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def allowed_actions(role) -> frozenset:
    role = parse_role(role)
    if role is None:
        return frozenset()
    return CAPABILITIES[role]


def can(role, action: Action) -> bool:
    return action in allowed_actions(role)


def menu_for(role) -> list:
    return [
        {"label": label, "href": href}
        for label, href, action in MENU_ITEMS
        if can(role, action)
    ]
