"""
CooperLoc - Auth User Model
Credenciais de acesso (o perfil de negócio fica em profiles)
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer

from cooperloc.database import Base


class AuthUser(Base):
    """Conta de autenticação"""
    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # Incrementado no sign-out e na troca de senha; tokens antigos deixam de valer
    session_version = Column(Integer, nullable=False, default=0)

    last_sign_in_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "last_sign_in_at": self.last_sign_in_at.isoformat() if self.last_sign_in_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
