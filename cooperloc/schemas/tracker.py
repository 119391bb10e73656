"""
CooperLoc - Tracker Schemas
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional

from cooperloc.models import TrackerStatus

MONTHS = [
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
]


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class TrackerCreate(BaseModel):
    serial_number: str = Field(..., min_length=1, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    status: TrackerStatus = TrackerStatus.ESTOQUE

    @field_validator("serial_number", mode="before")
    @classmethod
    def strip_serial(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("model", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class TrackerSendRequest(BaseModel):
    """Envio para uma franquia; a franquia é obrigatória"""
    franchise_id: str = Field(..., min_length=1)
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class InstallationRequest(BaseModel):
    """Dados do formulário de instalação; strings vazias viram null"""
    client_cnpj: Optional[str] = Field(None, max_length=20)
    client_name: Optional[str] = Field(None, max_length=255)
    client_contact: Optional[str] = Field(None, max_length=255)
    vehicle_chassis: Optional[str] = Field(None, max_length=50)
    vehicle_plate: Optional[str] = Field(None, max_length=10)
    vehicle_type: Optional[str] = Field(None, max_length=50)
    vehicle_brand: Optional[str] = Field(None, max_length=100)
    vehicle_model: Optional[str] = Field(None, max_length=100)
    vehicle_year: Optional[str] = Field(None, max_length=4)
    installation_month: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("installation_month")
    @classmethod
    def validate_month(cls, v):
        if v is not None and v not in MONTHS:
            raise ValueError("Mês de instalação inválido")
        return v


class DefectRequest(BaseModel):
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class FranchiseSummary(BaseModel):
    id: str
    name: str
    state: Optional[str] = None


class TrackerResponse(BaseModel):
    id: str
    serial_number: str
    model: Optional[str] = None
    status: str
    franchise_id: Optional[str] = None
    franchise: Optional[FranchiseSummary] = None
    sent_at: Optional[str] = None
    installed_at: Optional[str] = None
    notes: Optional[str] = None
    client_cnpj: Optional[str] = None
    client_name: Optional[str] = None
    client_contact: Optional[str] = None
    vehicle_chassis: Optional[str] = None
    vehicle_plate: Optional[str] = None
    vehicle_type: Optional[str] = None
    vehicle_brand: Optional[str] = None
    vehicle_model: Optional[str] = None
    vehicle_year: Optional[str] = None
    installation_month: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MovementResponse(BaseModel):
    id: str
    tracker_id: str
    from_status: str
    to_status: str
    from_franchise_id: Optional[str] = None
    to_franchise_id: Optional[str] = None
    quantity: int = 1
    notes: Optional[str] = None
    created_by: str
    created_at: Optional[str] = None
