"""Pydantic schemas for login, registration, and the current identity.

Separate "Create" schemas (input) from "Read" schemas (output).
"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from caoguia.auth.principals import Role
from caoguia.schemas.documents import digits_only, is_valid_cnpj

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ─── Login ──────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str) -> str:
        return v.strip().lower()


class TokenResponse(BaseModel):
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    role: Role
    expires_in: int


class IdentityRead(BaseModel):
    id: int
    name: str
    is_admin: bool
    role: Role

    model_config = {"from_attributes": True}


# ─── Address ────────────────────────────────────────────

class AddressFields(BaseModel):
    address_street: str = Field(..., min_length=1, max_length=200)
    address_number: str = Field(..., min_length=1, max_length=10)
    address_complement: Optional[str] = Field(None, max_length=100)
    address_zip: str
    address_city: str = Field(..., min_length=1, max_length=100)
    address_state: str = Field(..., min_length=2, max_length=2)
    address_district: str = Field(..., min_length=1, max_length=100)

    @field_validator("address_zip")
    @classmethod
    def _zip_digits(cls, v: str) -> str:
        v = digits_only(v)
        if len(v) != 8:
            raise ValueError("CEP must have exactly 8 digits")
        return v

    @field_validator("address_state")
    @classmethod
    def _state_upper(cls, v: str) -> str:
        return v.upper()


# ─── User registration ──────────────────────────────────

class UserRegister(AddressFields):
    name: str = Field(..., min_length=1, max_length=150)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=50)
    cpf: str
    sex: Literal["masc", "fem", "nao-bin"]
    birth_date: date
    rg: str
    phone: str
    institution_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("cpf")
    @classmethod
    def _cpf_digits(cls, v: str) -> str:
        v = digits_only(v)
        if len(v) != 11:
            raise ValueError("CPF must have exactly 11 digits")
        return v

    @field_validator("rg")
    @classmethod
    def _rg_digits(cls, v: str) -> str:
        v = digits_only(v)
        if not 7 <= len(v) <= 14:
            raise ValueError("RG must have between 7 and 14 digits")
        return v

    @field_validator("phone")
    @classmethod
    def _phone_digits(cls, v: str) -> str:
        return digits_only(v)


class UserRead(BaseModel):
    id: int
    name: str
    email: str
    is_admin: bool
    is_active: bool
    approval_status: str
    rejection_reason: Optional[str] = None
    cpf: Optional[str] = None
    sex: Optional[str] = None
    birth_date: Optional[date] = None
    phone: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    institution_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    """Profile edit. Only provided fields are written."""

    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    phone: Optional[str] = None
    address_street: Optional[str] = Field(None, max_length=200)
    address_number: Optional[str] = Field(None, max_length=10)
    address_complement: Optional[str] = Field(None, max_length=100)
    address_city: Optional[str] = Field(None, max_length=100)
    address_district: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @field_validator("phone")
    @classmethod
    def _phone_digits(cls, v: Optional[str]) -> Optional[str]:
        return digits_only(v) if v else v


# ─── Institution registration ───────────────────────────

class InstitutionRegister(AddressFields):
    legal_name: str = Field(..., min_length=1, max_length=200)
    cnpj: str
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=50)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("cnpj")
    @classmethod
    def _cnpj_valid(cls, v: str) -> str:
        if not is_valid_cnpj(v):
            raise ValueError("Invalid CNPJ")
        return digits_only(v)


class InstitutionRead(BaseModel):
    id: int
    legal_name: str
    cnpj: str
    email: str
    is_active: bool
    approval_status: str
    rejection_reason: Optional[str] = None
    address_city: Optional[str] = None
    address_state: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegistrationResponse(BaseModel):
    id: int
    message: str
    approval_status: str


class InstitutionUpdate(BaseModel):
    """Institution profile edit. Only provided fields are written."""

    legal_name: Optional[str] = Field(None, min_length=1, max_length=200)
    cnpj: Optional[str] = None
    email: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)
    address_street: Optional[str] = Field(None, max_length=200)
    address_number: Optional[str] = Field(None, max_length=10)
    address_complement: Optional[str] = Field(None, max_length=100)
    address_zip: Optional[str] = None
    address_city: Optional[str] = Field(None, max_length=100)
    address_state: Optional[str] = Field(None, min_length=2, max_length=2)
    address_district: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v

    @field_validator("cnpj")
    @classmethod
    def _cnpj_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not is_valid_cnpj(v):
            raise ValueError("Invalid CNPJ")
        return digits_only(v)

    @field_validator("address_zip")
    @classmethod
    def _zip_digits(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = digits_only(v)
        if len(v) != 8:
            raise ValueError("CEP must have exactly 8 digits")
        return v

    @field_validator("address_state")
    @classmethod
    def _state_upper(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class InstitutionSummary(BaseModel):
    """Public lookup result: enough to link a guide dog to its school."""

    id: int
    legal_name: str
    cnpj: str

    model_config = {"from_attributes": True}
