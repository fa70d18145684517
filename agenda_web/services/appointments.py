from datetime import date, datetime
from typing import Optional

from agenda_web.models.appointment import Appointment, AppointmentStatus
from agenda_web.models.session import SessionUser


# cancelamento só a partir destes status; CANCELLED é terminal
CANCELLABLE = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class TransitionNotAllowed(Exception):
    pass


def can_confirm(status: AppointmentStatus, session: SessionUser) -> bool:
    return session.is_admin and status == AppointmentStatus.PENDING


def can_cancel(status: AppointmentStatus, owner_id: Optional[str], session: SessionUser) -> bool:
    if status not in CANCELLABLE:
        return False
    return session.is_admin or (owner_id is not None and owner_id == session.id)


def allowed_actions(appointment: Appointment, session: SessionUser) -> dict:
    return {
        "confirm": can_confirm(appointment.status, session),
        "cancel": can_cancel(appointment.status, appointment.owner_id, session),
    }


def check_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    owner_id: Optional[str],
    session: SessionUser,
) -> None:
    if target == AppointmentStatus.CONFIRMED:
        allowed = can_confirm(current, session)
    elif target == AppointmentStatus.CANCELLED:
        allowed = can_cancel(current, owner_id, session)
    else:
        allowed = False

    if not allowed:
        raise TransitionNotAllowed(f"{current.value} -> {target.value}")


def is_time_in_past(selected_day: str, slot: str, now: Optional[datetime] = None) -> bool:
    """Horários de hoje que já passaram ficam desabilitados no formulário."""
    now = now or datetime.now()
    if selected_day != now.date().isoformat():
        return False
    hours, minutes = (int(p) for p in slot.split(":")[:2])
    return hours * 60 + minutes <= now.hour * 60 + now.minute


def today() -> str:
    return date.today().isoformat()
