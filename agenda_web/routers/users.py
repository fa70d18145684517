import logging

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import RedirectResponse

from agenda_web.core.config import USERS_PAGE_LIMIT
from agenda_web.core.security import get_current_admin
from agenda_web.core.templates import render
from agenda_web.core.toast import set_toast
from agenda_web.models.page import Page
from agenda_web.models.session import SessionUser
from agenda_web.models.user import Permission, User, toggle_permission
from agenda_web.services.api_client import ApiClient, ApiError, get_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["users"])


def _back(request: Request, session: SessionUser, message: str, type: str) -> RedirectResponse:
    response = RedirectResponse(f"{session.home}/users", status_code=303)
    set_toast(request, message, type)
    return response


async def _update_user(
    request: Request, api: ApiClient, session: SessionUser, target_id: str, payload: dict
) -> RedirectResponse:
    try:
        await api.mutate(f"/users/{target_id}", method="PUT", json=payload, invalidate=[("users",)])
    except ApiError:
        return _back(request, session, "Erro ao atualizar cliente", "error")

    logger.info("Admin %s atualizou usuário %s: %s", session.id, target_id, sorted(payload))
    return _back(request, session, "Dados atualizados com sucesso", "success")


# =========================
# LISTAR USUÁRIOS (ADMIN)
# =========================
@router.get("/{user_id}/users")
async def users_page(
    user_id: str,
    request: Request,
    page: int = Query(1, ge=1),
    query: str = "",
    date: str = "",
    order: str = "DESC",
    session: SessionUser = Depends(get_current_admin),
    api: ApiClient = Depends(get_api),
):
    order = "ASC" if order.upper() == "ASC" else "DESC"
    context = {
        "rows": [],
        "page": page,
        "total_pages": 1,
        "filters": {"query": query, "date": date, "order": order},
        "permissions": list(Permission),
    }

    try:
        result = Page.from_response(
            await api.fetch(
                "/users",
                params={"page": page, "limit": USERS_PAGE_LIMIT, "query": query, "date": date, "order": order},
                cache_keys=("users",),
            )
        )
        context["rows"] = [User.model_validate(item) for item in result.data]
        context["total_pages"] = max(result.total_pages, 1)
    except ApiError as e:
        context["toast"] = {"message": e.message, "type": "error"}

    return render(request, "dashboard/users.html", context)


# =========================
# ATIVAR / DESATIVAR
# =========================
@router.post("/{user_id}/users/{target_id}/status")
async def toggle_user_status(
    user_id: str,
    target_id: str,
    request: Request,
    is_active: bool = Form(...),
    session: SessionUser = Depends(get_current_admin),
    api: ApiClient = Depends(get_api),
):
    return await _update_user(request, api, session, target_id, {"isActive": not is_active})


# =========================
# PERMISSÕES
# =========================
@router.post("/{user_id}/users/{target_id}/permissions")
async def toggle_user_permission(
    user_id: str,
    target_id: str,
    request: Request,
    permission: Permission = Form(...),
    session: SessionUser = Depends(get_current_admin),
    api: ApiClient = Depends(get_api),
):
    form = await request.form()
    current = [Permission(p) for p in form.getlist("current") if p in Permission.__members__]
    permissions = toggle_permission(current, permission)
    return await _update_user(request, api, session, target_id, {"permissions": [p.value for p in permissions]})
