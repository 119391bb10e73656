"""
CooperLoc - Auth Schemas
"""
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List


class SignUpRequest(BaseModel):
    """Cadastro simplificado; papel e franquia são definidos pelo admin"""
    full_name: str = Field(..., min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("As senhas não coincidem")
        return self


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UpdatePasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=6)


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    status: str
    franchise_id: Optional[str] = None
    franchise_name: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    class Config:
        from_attributes = True


class MenuItem(BaseModel):
    label: str
    href: str


class SessionResponse(BaseModel):
    """Estado da sessão: usuário, perfil, papel e o que ele pode fazer"""
    user: dict
    profile: Optional[ProfileResponse] = None
    role: Optional[str] = None
    role_label: Optional[str] = None
    capabilities: List[str] = []
    menu: List[MenuItem] = []
    redirect_to: Optional[str] = None


class SignInResponse(SessionResponse):
    access_token: str
    token_type: str = "bearer"
