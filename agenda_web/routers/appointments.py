import logging
from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import RedirectResponse

from agenda_web.core.config import ADMIN_EMAIL, PAGE_LIMIT
from agenda_web.core.forms import validate_form
from agenda_web.core.security import get_current_session
from agenda_web.core.templates import render
from agenda_web.core.toast import set_toast
from agenda_web.models.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    StatusChange,
)
from agenda_web.models.page import Page
from agenda_web.models.room import Room
from agenda_web.models.session import SessionUser
from agenda_web.services import mailer
from agenda_web.services.api_client import GENERIC_ERROR, ApiClient, ApiError, build_url, get_api
from agenda_web.services.appointments import (
    TransitionNotAllowed,
    allowed_actions,
    check_transition,
    is_time_in_past,
    today,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["appointments"])


def _redirect(
    request: Request, url: str, message: Optional[str] = None, type: str = "success"
) -> RedirectResponse:
    if message:
        set_toast(request, message, type)
    return RedirectResponse(url, status_code=303)


def _message(error: ApiError, fallback: str) -> str:
    return error.message if error.message != GENERIC_ERROR else fallback


async def _booking_context(api: ApiClient, day: str, room_id: str) -> Dict:
    """Salas e horários livres para o formulário de novo agendamento."""
    rooms = Page.from_response(await api.fetch("/rooms", cache_keys=("rooms",))).data
    rooms = [Room.model_validate(r) for r in rooms]

    slots = None
    if day and room_id:
        available = await api.fetch(
            "/schedules/availability",
            params={"date": day, "roomId": room_id},
            cache_keys=("availability", day, room_id),
        )
        slots = [{"time": t, "disabled": is_time_in_past(day, t)} for t in (available or [])]

    return {"rooms": [r for r in rooms if r.is_active], "day": day, "room_id": room_id, "slots": slots}


async def _page_context(
    api: ApiClient,
    session: SessionUser,
    page: int,
    query: str,
    date: str,
    order: str,
    day: str,
    room_id: str,
) -> Dict:
    context = {
        "rows": [],
        "page": page,
        "total_pages": 1,
        "filters": {"query": query, "date": date, "order": order},
        "booking": {"rooms": [], "day": day, "room_id": room_id, "slots": None},
    }

    try:
        result = Page.from_response(
            await api.fetch(
                "/schedules",
                params={"page": page, "limit": PAGE_LIMIT, "query": query, "date": date, "order": order},
                cache_keys=("schedules",),
            )
        )
        appointments = [Appointment.model_validate(item) for item in result.data]
        context["rows"] = [{"item": a, "actions": allowed_actions(a, session)} for a in appointments]
        context["total_pages"] = max(result.total_pages, 1)
        context["booking"] = await _booking_context(api, day, room_id)
    except ApiError as e:
        context["toast"] = {"message": _message(e, "Erro ao carregar agendamentos"), "type": "error"}

    return context


# =========================
# LISTAR AGENDAMENTOS
# =========================
@router.get("/{user_id}")
async def appointments_page(
    user_id: str,
    request: Request,
    page: int = Query(1, ge=1),
    query: str = "",
    date: str = "",
    order: str = "DESC",
    day: Optional[str] = None,
    room: str = "",
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    order = "ASC" if order.upper() == "ASC" else "DESC"
    context = await _page_context(api, session, page, query, date, order, day or today(), room)
    return render(request, "dashboard/appointments.html", context)


# =========================
# CRIAR AGENDAMENTO
# =========================
@router.post("/{user_id}/appointments")
async def create_appointment(
    user_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    # sem horário marcado o campo nem chega no formulário
    data = {"date": "", "startTime": "", "roomId": "", **dict(await request.form())}
    form, errors = validate_form(AppointmentCreate, data)

    if errors:
        context = await _page_context(
            api, session, 1, "", "", "DESC", data.get("date") or today(), data.get("roomId", "")
        )
        context["errors"] = errors
        return render(request, "dashboard/appointments.html", context, status_code=422)

    back = build_url(session.home, {"day": form.date, "room": form.room_id})

    try:
        await api.mutate(
            "/schedules",
            json=form.model_dump(by_alias=True),
            invalidate=[("schedules",), ("availability",)],
        )
    except ApiError as e:
        return _redirect(request, back, _message(e, "Erro ao realizar agendamento"), "error")

    logger.info("Usuário %s agendou %s %s na sala %s", session.id, form.date, form.start_time, form.room_id)

    if ADMIN_EMAIL:
        background_tasks.add_task(
            mailer.notify_admin_new_schedule,
            ADMIN_EMAIL, session.name, session.email, form.date, form.start_time,
        )

    return _redirect(request, session.home, "Agendamento realizado com sucesso!")


# =========================
# CONFIRMAR / CANCELAR
# - confirmar: só admin, só PENDING
# - cancelar: admin ou dono, enquanto não cancelado
# =========================
@router.post("/{user_id}/appointments/{appointment_id}/status")
async def update_status(
    user_id: str,
    appointment_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    form, errors = validate_form(StatusChange, dict(await request.form()))
    if errors:
        return _redirect(request, session.home, "Erro ao atualizar", "error")

    try:
        check_transition(form.current_status, form.status, form.owner_id, session)
    except TransitionNotAllowed as e:
        logger.warning("Transição recusada para usuário %s no agendamento %s: %s", session.id, appointment_id, e)
        return _redirect(request, session.home, "Ação não permitida", "error")

    try:
        await api.mutate(
            f"/schedules/{appointment_id}/status",
            method="PATCH",
            json={"status": form.status.value},
            invalidate=[("schedules",), ("availability",)],
        )
    except ApiError as e:
        return _redirect(request, session.home, _message(e, "Erro ao atualizar"), "error")

    if form.user_email:
        if form.status == AppointmentStatus.CONFIRMED:
            background_tasks.add_task(
                mailer.send_scheduling_confirmation,
                form.user_email, form.user_name or "", form.date or "", form.start_time or "",
            )
        else:
            background_tasks.add_task(
                mailer.send_scheduling_cancellation,
                form.user_email, form.user_name or "", form.date or "", form.start_time or "", session.is_admin,
            )

    return _redirect(request, session.home, "Status atualizado com sucesso!")
