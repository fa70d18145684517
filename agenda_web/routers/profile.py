import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from agenda_web.core.forms import validate_form
from agenda_web.core.security import get_current_session
from agenda_web.core.templates import render
from agenda_web.core.toast import set_toast
from agenda_web.models.session import SessionUser
from agenda_web.models.user import User, UserUpdate
from agenda_web.services.api_client import ApiClient, ApiError, get_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["profile"])


def _empty_profile(request: Request, message: str):
    return render(request, "dashboard/profile.html", {
        "values": {}, "current_cep": "",
        "toast": {"message": message, "type": "error"},
    })


def _form_values(user: User) -> dict:
    values = user.model_dump(by_alias=True, include={
        "name", "last_name", "email", "cep", "street", "number",
        "complement", "neighborhood", "city", "state",
    })
    return {k: v or "" for k, v in values.items()}


@router.get("/{user_id}/profile")
async def profile_page(
    user_id: str,
    request: Request,
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    try:
        data = await api.fetch("/me", cache_keys=("profile",))
        if not isinstance(data, dict):
            raise ApiError(None, "Erro ao carregar perfil")
        user = User.model_validate(data.get("user", data))
    except ValidationError:
        return _empty_profile(request, "Erro ao carregar perfil")
    except ApiError as e:
        return _empty_profile(request, e.message)

    values = _form_values(user)
    return render(request, "dashboard/profile.html", {"values": values, "current_cep": values["cep"]})


@router.post("/{user_id}/profile")
async def update_profile(
    user_id: str,
    request: Request,
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    data = dict(await request.form())
    form, errors = validate_form(UserUpdate, data)
    if errors:
        return render(
            request, "dashboard/profile.html",
            {"values": data, "errors": errors, "current_cep": data.get("current_cep", "")},
            status_code=422,
        )

    response = RedirectResponse(f"{session.home}/profile", status_code=303)
    try:
        await api.mutate(
            f"/users/{session.id}",
            method="PUT",
            json=form.model_dump(by_alias=True, exclude_none=True),
            invalidate=[("profile",)],
        )
    except ApiError:
        set_toast(request, "Erro ao atualizar perfil", "error")
        return response

    logger.info("Usuário %s atualizou o perfil", session.id)
    set_toast(request, "Perfil atualizado com sucesso!", "success")
    return response
