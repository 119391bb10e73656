"""
CooperLoc - Tracker Models
Rastreadores e o histórico de movimentações
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey
from sqlalchemy.orm import relationship
import enum

from cooperloc.database import Base


class TrackerStatus(str, enum.Enum):
    """Status do rastreador no ciclo estoque -> enviado -> instalado/defeito"""
    ESTOQUE = "estoque"
    ENVIADO = "enviado"
    INSTALADO = "instalado"
    DEFEITO = "defeito"


# Campos preenchidos no formulário de instalação
INSTALLATION_FIELDS = (
    "client_cnpj",
    "client_name",
    "client_contact",
    "vehicle_chassis",
    "vehicle_plate",
    "vehicle_type",
    "vehicle_brand",
    "vehicle_model",
    "vehicle_year",
    "installation_month",
)


class Tracker(Base):
    """Modelo de Rastreador"""
    __tablename__ = "trackers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    serial_number = Column(String(100), unique=True, nullable=False, index=True)
    model = Column(String(100))

    status = Column(String(20), nullable=False, default=TrackerStatus.ESTOQUE.value, index=True)

    franchise_id = Column(String(36), ForeignKey("franchises.id"), nullable=True, index=True)
    franchise = relationship("Franchise", lazy="selectin")

    sent_at = Column(DateTime)
    installed_at = Column(DateTime)
    notes = Column(Text)

    # Instalação (cliente)
    client_cnpj = Column(String(20))
    client_name = Column(String(255))
    client_contact = Column(String(255))

    # Instalação (veículo)
    vehicle_chassis = Column(String(50))
    vehicle_plate = Column(String(10))
    vehicle_type = Column(String(50))
    vehicle_brand = Column(String(100))
    vehicle_model = Column(String(100))
    vehicle_year = Column(String(4))
    installation_month = Column(String(20))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        data = {
            "id": self.id,
            "serial_number": self.serial_number,
            "model": self.model,
            "status": self.status,
            "franchise_id": self.franchise_id,
            "franchise": {
                "id": self.franchise.id,
                "name": self.franchise.name,
                "state": self.franchise.state,
            } if self.franchise else None,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "installed_at": self.installed_at.isoformat() if self.installed_at else None,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        for field in INSTALLATION_FIELDS:
            data[field] = getattr(self, field)
        return data


class TrackerMovement(Base):
    """Registro imutável de uma mudança de status/franquia"""
    __tablename__ = "tracker_movements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    tracker_id = Column(String(36), ForeignKey("trackers.id"), nullable=False, index=True)

    from_status = Column(String(20), nullable=False)
    to_status = Column(String(20), nullable=False)
    from_franchise_id = Column(String(36), ForeignKey("franchises.id"), nullable=True)
    to_franchise_id = Column(String(36), ForeignKey("franchises.id"), nullable=True)

    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text)

    created_by = Column(String(36), ForeignKey("auth_users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "tracker_id": self.tracker_id,
            "from_status": self.from_status,
            "to_status": self.to_status,
            "from_franchise_id": self.from_franchise_id,
            "to_franchise_id": self.to_franchise_id,
            "quantity": self.quantity,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None
        }
