import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import Response
from jose import JWTError, jwt
from pydantic import ValidationError

from agenda_web.core.config import (
    ALGORITHM,
    COOKIE_SECURE,
    SECRET_KEY,
    SESSION_COOKIE,
    SESSION_EXPIRE_MINUTES,
)
from agenda_web.models.session import SessionUser
from agenda_web.models.user import User
from agenda_web.services.api_client import ApiClient, ApiError

logger = logging.getLogger(__name__)


# =========================
# TOKEN DE SESSÃO (JWT)
# =========================

def create_session_token(user: SessionUser, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = user.model_dump(mode="json")
    to_encode["sub"] = user.id

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=SESSION_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[SessionUser]:
    """Devolve a sessão do token, ou None se ausente, inválido ou expirado."""
    if not token:
        return None

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        session = SessionUser.model_validate(payload)
    except (JWTError, ValidationError):
        return None

    if not session.is_active:
        return None

    return session


def set_session_cookie(response: Response, user: SessionUser) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        create_session_token(user),
        max_age=SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE)


def read_session(request: Request) -> Optional[SessionUser]:
    return decode_session_token(request.cookies.get(SESSION_COOKIE))


# =========================
# TROCA DE SENHA POR SESSÃO
# =========================

class SignInError(Exception):
    """Falha de login; `code` segue os códigos da API (invalid_credentials, inactive, rate_limit)."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


async def authenticate(api: ApiClient, email: str, password: str) -> SessionUser:
    try:
        data = await api.mutate(
            "/sessions/password",
            json={"email": email, "password": password},
        )
    except ApiError as e:
        if e.status_code == status.HTTP_429_TOO_MANY_REQUESTS or e.code == "rate_limit":
            raise SignInError("rate_limit")
        if e.code == "inactive":
            raise SignInError("inactive")
        raise SignInError("invalid_credentials")

    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        raise SignInError("invalid_credentials")

    profile = await api.with_token(token).get("/me")
    if not isinstance(profile, dict):
        profile = {}
    try:
        user = User.model_validate(profile.get("user", profile))
    except ValidationError:
        logger.warning("Perfil inválido devolvido por /me para %s", email)
        raise SignInError("invalid_credentials")

    if not user.is_active:
        raise SignInError("inactive")

    logger.info("Sessão iniciada para usuário %s (%s)", user.id, user.role.value)

    return SessionUser(
        id=user.id,
        name=user.full_name,
        email=user.email,
        role=user.role,
        permissions=user.permissions,
        is_active=user.is_active,
        token=token,
    )


# =========================
# USUÁRIO AUTENTICADO
# =========================

def get_optional_session(request: Request) -> Optional[SessionUser]:
    # o guard de rotas já decodificou o cookie
    if hasattr(request.state, "session"):
        return request.state.session
    return read_session(request)


def get_current_session(
    session: Optional[SessionUser] = Depends(get_optional_session),
) -> SessionUser:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Não foi possível validar as credenciais",
        )
    return session


# =========================
# SOMENTE ADMIN
# =========================

def get_current_admin(
    session: SessionUser = Depends(get_current_session),
) -> SessionUser:
    if not session.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Apenas administradores podem acessar esta rota",
        )
    return session
