import re
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Permission(str, Enum):
    APPOINTMENTS = "APPOINTMENTS"
    LOGS = "LOGS"


def _min_length(value: Optional[str], size: int, message: str) -> str:
    value = (value or "").strip()
    if len(value) < size:
        raise ValueError(message)
    return value


class AddressBase(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    cep: str
    street: str
    number: str
    complement: Optional[str] = None
    neighborhood: str
    city: str
    state: str

    @field_validator("cep")
    @classmethod
    def check_cep(cls, v):
        v = (v or "").strip()
        if len(v) < 8 or len(v) > 9:
            raise ValueError("CEP inválido")
        return v

    @field_validator("street")
    @classmethod
    def check_street(cls, v):
        return _min_length(v, 1, "Rua obrigatória")

    @field_validator("number")
    @classmethod
    def check_number(cls, v):
        return _min_length(v, 1, "Número obrigatório")

    @field_validator("neighborhood")
    @classmethod
    def check_neighborhood(cls, v):
        return _min_length(v, 1, "Bairro obrigatório")

    @field_validator("city")
    @classmethod
    def check_city(cls, v):
        return _min_length(v, 1, "Cidade obrigatória")

    @field_validator("state")
    @classmethod
    def check_state(cls, v):
        return _min_length(v, 2, "Estado obrigatório").upper()

    @field_validator("complement")
    @classmethod
    def empty_complement(cls, v):
        return v.strip() if v and v.strip() else None


class UserBase(AddressBase):
    name: str
    last_name: str = Field(alias="lastName")
    email: str

    @field_validator("name", "last_name")
    @classmethod
    def check_names(cls, v):
        return _min_length(v, 2, "Mínimo 2 letras")

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        v = (v or "").strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Email inválido")
        return v


class UserCreate(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v or "") < 6:
            raise ValueError("Mínimo 6 caracteres")
        return v


class UserUpdate(UserBase):
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if not v:
            return None
        if len(v) < 6:
            raise ValueError("Mínimo 6 caracteres")
        return v


class User(SQLModel):
    """Cópia de trabalho do usuário devolvido pela API."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    last_name: str = Field(default="", alias="lastName")
    email: str = ""

    cep: Optional[str] = None
    street: Optional[str] = None
    number: Optional[str] = None
    complement: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None

    role: Role = Role.USER
    permissions: List[Permission] = []
    is_active: bool = Field(default=True, alias="isActive")

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.last_name}".strip()

    @property
    def address(self) -> str:
        if not self.street:
            return ""
        return f"{self.street} nº{self.number}, {self.neighborhood}, {self.city} - {self.state}"


def toggle_permission(current: List[Permission], permission: Permission) -> List[Permission]:
    if permission in current:
        return [p for p in current if p != permission]
    return [*current, permission]
