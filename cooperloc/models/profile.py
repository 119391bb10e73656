"""
CooperLoc - Profile Model
Perfil do usuário: papel, status de aprovação e franquia
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import enum

from cooperloc.database import Base


class UserRole(str, enum.Enum):
    """Papéis do sistema"""
    ADMIN = "admin"
    MATRIZ = "matriz"
    FRANQUEADO = "franqueado"


class UserStatus(str, enum.Enum):
    """Status da conta"""
    PENDING = "pending"
    ACTIVE = "active"
    BLOCKED = "blocked"
    INACTIVE = "inactive"


class Profile(Base):
    """Modelo de Perfil"""
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("auth_users.id"), primary_key=True)

    email = Column(String(255), nullable=False, index=True)
    full_name = Column(String(255))

    role = Column(String(20), nullable=False, default=UserRole.FRANQUEADO.value, index=True)
    status = Column(String(20), nullable=False, default=UserStatus.PENDING.value, index=True)

    franchise_id = Column(String(36), ForeignKey("franchises.id"), nullable=True, index=True)
    franchise = relationship("Franchise", lazy="selectin")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "status": self.status,
            "franchise_id": self.franchise_id,
            "franchise_name": self.franchise.name if self.franchise else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
