from .auth_user import AuthUser
from .profile import Profile, UserRole, UserStatus
from .franchise import Franchise
from .tracker import Tracker, TrackerMovement, TrackerStatus, INSTALLATION_FIELDS

__all__ = [
    "AuthUser",
    "Profile",
    "UserRole",
    "UserStatus",
    "Franchise",
    "Tracker",
    "TrackerMovement",
    "TrackerStatus",
    "INSTALLATION_FIELDS"
]
