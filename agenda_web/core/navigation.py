from typing import Dict, List, Optional

from agenda_web.models.session import SessionUser
from agenda_web.models.user import Permission


# (rótulo, sufixo do caminho, match exato, permissão exigida, só admin)
NAV_ITEMS = (
    ("Agendamentos", "", True, Permission.APPOINTMENTS, False),
    ("Logs", "/logs", False, Permission.LOGS, False),
    ("Usuários", "/users", False, None, True),
    ("Minha Conta", "/profile", False, None, False),
)


def _can_see(session: SessionUser, permission: Optional[Permission], admin_only: bool) -> bool:
    if session.is_admin:
        return True
    if admin_only:
        return False
    return permission is None or session.has_permission(permission)


def nav_items(session: SessionUser, current_path: str) -> List[Dict]:
    path = current_path.split("?", 1)[0].rstrip("/")
    items = []
    for label, suffix, exact, permission, admin_only in NAV_ITEMS:
        if not _can_see(session, permission, admin_only):
            continue
        href = f"{session.home}{suffix}"
        active = path == href if exact else path.startswith(href)
        items.append({"label": label, "href": href, "active": active})
    return items


def header_for(path: str) -> Dict[str, str]:
    if "/logs" in path:
        return {"title": "Logs do Sistema", "subtitle": "Acompanhe todos os seus Logs"}
    if "/profile" in path:
        return {"title": "Minha Conta", "subtitle": "Ajuste informações da sua conta de forma simples"}
    if "/users" in path:
        return {"title": "Usuários", "subtitle": "Gerencie status e permissões dos usuários"}
    if "/rooms" in path:
        return {"title": "Salas", "subtitle": "Configure salas, horários e intervalos"}
    return {"title": "Agendamento", "subtitle": "Acompanhe todos os seus agendamentos de forma simples"}
