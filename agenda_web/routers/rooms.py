import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from agenda_web.core.forms import form_errors
from agenda_web.core.security import get_current_admin
from agenda_web.core.templates import render
from agenda_web.core.toast import set_toast
from agenda_web.models.page import Page
from agenda_web.models.room import INTERVAL_CHOICES, Room, RoomSettingsRow
from agenda_web.models.session import SessionUser
from agenda_web.services.api_client import GENERIC_ERROR, ApiClient, ApiError, get_api

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["rooms"])


async def _existing_rooms(api: ApiClient):
    return [Room.model_validate(r) for r in Page.from_response(await api.fetch("/rooms", cache_keys=("rooms",))).data]


@router.get("/{user_id}/rooms")
async def rooms_page(
    user_id: str,
    request: Request,
    session: SessionUser = Depends(get_current_admin),
    api: ApiClient = Depends(get_api),
):
    context = {"rooms": [], "rows": [RoomSettingsRow()], "row_errors": [{}], "intervals": INTERVAL_CHOICES}
    try:
        context["rooms"] = await _existing_rooms(api)
    except ApiError as e:
        context["toast"] = {"message": e.message, "type": "error"}
    return render(request, "dashboard/rooms.html", context)


@router.post("/{user_id}/rooms")
async def save_rooms(
    user_id: str,
    request: Request,
    session: SessionUser = Depends(get_current_admin),
    api: ApiClient = Depends(get_api),
):
    form = await request.form()
    raw_rows = zip(form.getlist("name"), form.getlist("time_range"), form.getlist("interval"))

    rows, row_errors, valid = [], [], []
    for name, time_range, interval in raw_rows:
        raw = {"name": name, "time_range": time_range, "interval": interval}
        try:
            row = RoomSettingsRow.model_validate(raw)
            valid.append(row)
            row_errors.append({})
        except ValidationError as e:
            row = RoomSettingsRow.model_construct(**raw)
            row_errors.append(form_errors(e))
        rows.append(row)

    if not rows or len(valid) != len(rows):
        try:
            rooms = await _existing_rooms(api)
        except ApiError:
            rooms = []
        return render(request, "dashboard/rooms.html", {
            "rooms": rooms,
            "rows": rows or [RoomSettingsRow()],
            "row_errors": row_errors or [{}],
            "intervals": INTERVAL_CHOICES,
        }, status_code=422)

    payload = [row.to_payload().model_dump(by_alias=True) for row in valid]
    response = RedirectResponse(f"{session.home}/rooms", status_code=303)

    try:
        await api.mutate("/rooms", json=payload, invalidate=[("rooms",), ("availability",)])
    except ApiError as e:
        message = e.message if e.message != GENERIC_ERROR else "Erro ao criar salas"
        set_toast(request, message, "error")
        return response

    logger.info("Admin %s cadastrou %d sala(s)", session.id, len(payload))
    set_toast(request, "Salas cadastradas com sucesso!", "success")
    return response
