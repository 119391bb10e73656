"""
CooperLoc - Franchise Schemas
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
import re

from cooperloc.core.brazil_states import normalize_state_code


def _validate_cnpj(cnpj: str) -> bool:
    """Valida dígitos verificadores do CNPJ"""
    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False

    def calc_digit(cnpj, weights):
        total = sum(int(digit) * weight for digit, weight in zip(cnpj, weights))
        remainder = total % 11
        return 0 if remainder < 2 else 11 - remainder

    weights1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    weights2 = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]

    return (calc_digit(cnpj, weights1) == int(cnpj[12]) and
            calc_digit(cnpj, weights2) == int(cnpj[13]))


class _FranchiseFields(BaseModel):
    """Normalização comum a criação e edição"""

    @field_validator("cnpj", "address", "city", "state", "phone", "email", mode="before", check_fields=False)
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("cnpj", check_fields=False)
    @classmethod
    def validate_cnpj(cls, v):
        if v is None:
            return v
        numbers = re.sub(r"\D", "", v)
        if not _validate_cnpj(numbers):
            raise ValueError("CNPJ inválido")
        return numbers

    @field_validator("state", check_fields=False)
    @classmethod
    def validate_state(cls, v):
        if v is None:
            return v
        code = normalize_state_code(v)
        if not code:
            raise ValueError("UF inválida")
        return code


class FranchiseCreate(_FranchiseFields):
    name: str = Field(..., min_length=1, max_length=255)
    cnpj: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None


class FranchiseUpdate(_FranchiseFields):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    cnpj: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    active: Optional[bool] = None

    @field_validator("name", "active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Campo obrigatório")
        return v


class FranchiseResponse(BaseModel):
    id: str
    name: str
    cnpj: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tracker_count: int = 0

    class Config:
        from_attributes = True
