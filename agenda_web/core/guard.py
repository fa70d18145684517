"""Guard de rotas: decide, a cada navegação, se a sessão pode ver o caminho."""
import logging
from typing import List, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from agenda_web.core.security import clear_session_cookie, read_session
from agenda_web.core.config import SESSION_COOKIE
from agenda_web.models.session import SessionUser
from agenda_web.models.user import Permission

logger = logging.getLogger(__name__)


PRIVATE_PREFIXES = ("/dashboard",)
AUTH_PATHS = ("/signin", "/signin/admin", "/signup")
ADMIN_ONLY_SECTIONS = ("users", "clients")


def _segments(path: str) -> List[str]:
    return [s for s in path.split("/") if s]


def _is_private(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in PRIVATE_PREFIXES)


def resolve_redirect(path: str, session: Optional[SessionUser]) -> Optional[str]:
    """Devolve o destino do redirecionamento, ou None quando o acesso é livre."""
    path = path.split("?", 1)[0].rstrip("/") or "/"
    is_root = path == "/"

    if session is None:
        if _is_private(path) or is_root:
            return "/signin"
        return None

    home = session.home

    if is_root or path in AUTH_PATHS or path == "/dashboard":
        return home

    if session.is_admin:
        return None

    if not _is_private(path):
        return None

    # /dashboard/{id}/<seção>/...
    segments = _segments(path)
    owner = segments[1] if len(segments) > 1 else None
    sections = segments[2:]

    if owner != session.id:
        return home

    if "logs" in sections and not session.has_permission(Permission.LOGS):
        return home

    if any(s in ADMIN_ONLY_SECTIONS for s in sections):
        return home

    # logs (com permissão) e o perfil não dependem de APPOINTMENTS
    if "logs" in sections or sections[:1] == ["profile"]:
        return None

    if not session.has_permission(Permission.APPOINTMENTS):
        return f"{home}/profile"

    return None


class RouteGuardMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        session = read_session(request)
        request.state.session = session

        target = resolve_redirect(request.url.path, session)
        if target is not None and target != request.url.path:
            logger.debug("Guard redirecionou %s para %s", request.url.path, target)
            response = RedirectResponse(target, status_code=303)
        else:
            response = await call_next(request)

        # cookie presente mas inválido/expirado: descarta
        if session is None and SESSION_COOKIE in request.cookies:
            clear_session_cookie(response)

        return response
