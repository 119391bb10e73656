"""
CooperLoc - User Administration Schemas
"""
from pydantic import BaseModel
from typing import Optional

from cooperloc.models import UserRole, UserStatus


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserFranchiseUpdate(BaseModel):
    franchise_id: Optional[str] = None


class UserSummaryResponse(BaseModel):
    total: int
    pending: int
    active: int
    blocked: int
    inactive: int
