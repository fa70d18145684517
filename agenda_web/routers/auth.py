import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from agenda_web.core.forms import validate_form
from agenda_web.core.security import (
    SignInError,
    authenticate,
    clear_session_cookie,
    set_session_cookie,
)
from agenda_web.core.templates import render
from agenda_web.core.toast import set_toast
from agenda_web.models.session import SignInForm
from agenda_web.models.user import UserCreate
from agenda_web.services.api_client import GENERIC_ERROR, ApiClient, ApiError, get_api

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


SIGNIN_MESSAGES = {
    "rate_limit": "Muitas tentativas. Aguarde 1 minuto para tentar novamente.",
    "inactive": "Sua conta foi desativada. Entre em contato com o suporte.",
    "invalid_credentials": "Email ou senha inválidos",
}

ADMIN_ONLY_MESSAGE = "Acesso negado: Esta área é exclusiva para administradores."


def _error(message: str) -> dict:
    return {"message": message, "type": "error"}


async def _sign_in(request: Request, api: ApiClient, admin_only: bool = False):
    data = dict(await request.form())
    context = {"values": data, "admin": admin_only}

    form, errors = validate_form(SignInForm, data)
    if errors:
        return render(request, "auth/signin.html", {**context, "errors": errors}, status_code=422)

    try:
        session = await authenticate(api, form.email, form.password)
    except SignInError as e:
        message = SIGNIN_MESSAGES.get(e.code, SIGNIN_MESSAGES["invalid_credentials"])
        return render(request, "auth/signin.html", {**context, "toast": _error(message)}, status_code=401)
    except ApiError:
        return render(
            request, "auth/signin.html", {**context, "toast": _error("Erro ao tentar fazer login")}, status_code=502
        )

    if admin_only and not session.is_admin:
        # nenhuma sessão é emitida para quem não é admin nesta tela
        logger.info("Usuário %s tentou entrar pela área administrativa", session.id)
        return render(request, "auth/signin.html", {**context, "toast": _error(ADMIN_ONLY_MESSAGE)}, status_code=403)

    response = RedirectResponse(session.home, status_code=303)
    set_session_cookie(response, session)
    return response


# =========================
# LOGIN
# =========================
@router.get("/signin")
def signin_page(request: Request):
    return render(request, "auth/signin.html", {"values": {}, "admin": False})


@router.post("/signin")
async def signin(request: Request, api: ApiClient = Depends(get_api)):
    return await _sign_in(request, api)


@router.get("/signin/admin")
def signin_admin_page(request: Request):
    return render(request, "auth/signin.html", {"values": {}, "admin": True})


@router.post("/signin/admin")
async def signin_admin(request: Request, api: ApiClient = Depends(get_api)):
    return await _sign_in(request, api, admin_only=True)


# =========================
# CADASTRO
# =========================
@router.get("/signup")
def signup_page(request: Request):
    return render(request, "auth/signup.html", {"values": {}})


@router.post("/signup")
async def signup(request: Request, api: ApiClient = Depends(get_api)):
    data = dict(await request.form())
    form, errors = validate_form(UserCreate, data)
    if errors:
        return render(request, "auth/signup.html", {"errors": errors, "values": data}, status_code=422)

    try:
        await api.mutate("/users", json=form.model_dump(by_alias=True, exclude_none=True))
    except ApiError as e:
        message = e.message if e.message != GENERIC_ERROR else "Erro ao criar conta"
        return render(request, "auth/signup.html", {"values": data, "toast": _error(message)}, status_code=400)

    logger.info("Conta criada para %s", form.email)

    try:
        session = await authenticate(api, form.email, form.password)
    except (SignInError, ApiError):
        response = RedirectResponse("/signin", status_code=303)
        set_toast(request, "Conta criada. Faça login para continuar.", "success")
        return response

    response = RedirectResponse(session.home, status_code=303)
    set_session_cookie(response, session)
    set_toast(request, "Conta criada com sucesso!", "success")
    return response


# =========================
# LOGOUT
# =========================
@router.get("/signout")
def signout():
    response = RedirectResponse("/signin", status_code=303)
    clear_session_cookie(response)
    return response
