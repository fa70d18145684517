from datetime import date, datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

from fastapi import Request
from fastapi.templating import Jinja2Templates

from agenda_web.core.navigation import header_for, nav_items
from agenda_web.core.toast import pop_toast
from agenda_web.models.appointment import STATUS_LABELS, AppointmentStatus

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


# --------- Filtros Jinja: datas em dd/mm/aaaa ---------
def br_date(value):
    """Aceita date/datetime ou string 'YYYY-MM-DD' e devolve 'dd/mm/aaaa'."""
    if not value:
        return ""
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    s = str(value)[:10]
    try:
        y, m, d = s.split("-")
        return f"{d}/{m}/{y}"
    except ValueError:
        return s


def br_datetime(value):
    """Aceita datetime/string ISO e devolve 'dd/mm/aaaa às HH:MM'."""
    if not value:
        return ""
    if not isinstance(value, datetime):
        try:
            value = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return str(value)
    return value.strftime("%d/%m/%Y às %H:%M")


def status_label(value) -> str:
    try:
        return STATUS_LABELS[AppointmentStatus(value)]
    except ValueError:
        return str(value)


templates.env.filters["br_date"] = br_date
templates.env.filters["br_datetime"] = br_datetime
templates.env.filters["status_label"] = status_label
# ------------------------------------------------------


def render(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200):
    session = getattr(request.state, "session", None)
    context = dict(context or {})
    # um aviso da própria página tem prioridade; o pendente fica para a próxima
    if context.get("toast") is None:
        context["toast"] = pop_toast(request)

    ctx = {
        "session": session,
        "header": header_for(request.url.path),
        "nav": nav_items(session, request.url.path) if session else [],
        "errors": {},
        # chave de debounce da busca de CEP, única por formulário
        "form_key": uuid4().hex,
    }
    ctx.update(context)

    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
