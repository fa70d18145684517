from typing import List

from pydantic import field_validator
from sqlmodel import SQLModel

from agenda_web.models.user import EMAIL_RE, Permission, Role


class SessionUser(SQLModel):
    """Identidade carregada no token de sessão."""

    id: str
    name: str = ""
    email: str = ""
    role: Role = Role.USER
    permissions: List[Permission] = []
    is_active: bool = True
    token: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_permission(self, permission: Permission) -> bool:
        return permission in self.permissions

    @property
    def home(self) -> str:
        return f"/dashboard/{self.id}"


class SignInForm(SQLModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        v = (v or "").strip().lower()
        if not EMAIL_RE.match(v):
            raise ValueError("Insira um email válido")
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v or "") < 6:
            raise ValueError("No mínimo 6 caracteres")
        return v
