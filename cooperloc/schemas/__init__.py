from .auth import (
    SignUpRequest,
    SignInRequest,
    SignInResponse,
    SessionResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    ProfileResponse
)
from .franchise import FranchiseCreate, FranchiseUpdate, FranchiseResponse
from .tracker import (
    TrackerCreate,
    TrackerSendRequest,
    InstallationRequest,
    DefectRequest,
    TrackerResponse,
    MovementResponse,
    MONTHS
)
from .user import UserStatusUpdate, UserRoleUpdate, UserFranchiseUpdate, UserSummaryResponse

__all__ = [
    "SignUpRequest",
    "SignInRequest",
    "SignInResponse",
    "SessionResponse",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "UpdatePasswordRequest",
    "ProfileResponse",
    "FranchiseCreate",
    "FranchiseUpdate",
    "FranchiseResponse",
    "TrackerCreate",
    "TrackerSendRequest",
    "InstallationRequest",
    "DefectRequest",
    "TrackerResponse",
    "MovementResponse",
    "MONTHS",
    "UserStatusUpdate",
    "UserRoleUpdate",
    "UserFranchiseUpdate",
    "UserSummaryResponse"
]
