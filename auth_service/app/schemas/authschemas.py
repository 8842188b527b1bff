from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID
from pydantic import EmailStr, field_validator, model_validator
from shared.utils.enums import UserRole
from shared.wrappers.empty_string_model_wrapper import CamelOutModel, EmptyStringModel


def _code_as_text(value):
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


# -------- Login --------

class LoginRequest(EmptyStringModel):
    """Admins sign in with email + password, staff and clients with their code + PIN."""
    role: Optional[UserRole] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    unique_code: Optional[str] = None
    login_pin: Optional[str] = None

    @field_validator("unique_code", "login_pin", mode="before")
    @classmethod
    def code_as_text(cls, value):
        return _code_as_text(value)

    @model_validator(mode="after")
    def validate_credential(self):
        if self.role == UserRole.ADMIN or (self.role is None and self.email):
            if not self.email or not self.password:
                raise ValueError("email and password are required for admin login")
        elif not self.unique_code or not self.login_pin:
            raise ValueError("uniqueCode and loginPin are required")
        return self


class LoginUser(CamelOutModel):
    id: UUID
    role: UserRole
    name: str
    locations: List[str] = []


class LoginResponse(CamelOutModel):
    token: str
    token_type: str = "bearer"
    user: LoginUser


# -------- Identity --------

class MeResponse(CamelOutModel):
    id: UUID
    role: UserRole
    name: str
    email: Optional[str] = None
    unique_code: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    locations: List[str] = []
    mapped_location: Optional[str] = None
    is_active: bool = True
    last_login_at: Optional[datetime] = None


class RegisterRequest(EmptyStringModel):
    name: str
    role: UserRole
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    unique_code: Optional[str] = None
    login_pin: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    locations: Optional[List[str]] = None
    mapped_location: Optional[str] = None

    @field_validator("unique_code", "login_pin", mode="before")
    @classmethod
    def code_as_text(cls, value):
        return _code_as_text(value)

    @model_validator(mode="after")
    def validate_identity(self):
        if self.role == UserRole.ADMIN:
            if not self.email:
                raise ValueError("Admin requires email")
        elif not self.unique_code:
            raise ValueError("Staff/Client requires uniqueCode")
        return self


class RegisterResponse(CamelOutModel):
    id: UUID
    type: Literal["create", "update"]
    message: str
