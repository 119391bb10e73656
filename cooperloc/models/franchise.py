"""
CooperLoc - Franchise Model
Unidades franqueadas que recebem e instalam rastreadores
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text

from cooperloc.database import Base


class Franchise(Base):
    """Modelo de Franquia"""
    __tablename__ = "franchises"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False, index=True)
    cnpj = Column(String(14), index=True)

    # Endereço
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(2), index=True)

    # Contato
    phone = Column(String(20))
    email = Column(String(255))

    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, tracker_count: int = None):
        data = {
            "id": self.id,
            "name": self.name,
            "cnpj": self.cnpj,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "phone": self.phone,
            "email": self.email,
            "active": self.active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if tracker_count is not None:
            data["tracker_count"] = tracker_count
        return data
