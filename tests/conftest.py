import json
from typing import Callable, Dict, List, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from agenda_web.core.config import SESSION_COOKIE
from agenda_web.core.security import create_session_token
from agenda_web.main import create_app
from agenda_web.models.session import SessionUser
from agenda_web.models.user import Permission, Role


class FakeApi:
    """API remota em memória: rotas (método, caminho) -> handler ou resposta fixa."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Callable] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, body=None, handler=None):
        if handler is None:
            def handler(request, status=status, body=body):
                if body is None:
                    return httpx.Response(status)
                return httpx.Response(status, json=body)
        self.routes[(method, path)] = handler

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [c for c in self.calls if c.method == method and c.url.path == path]

    def json_of(self, request: httpx.Request):
        return json.loads(request.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"rota {request.url.path} não encontrada"})
        return handler(request)


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def fake_cep():
    return FakeApi()


@pytest.fixture
def client(fake_api, fake_cep):
    app = create_app(
        api_transport=httpx.MockTransport(fake_api),
        cep_transport=httpx.MockTransport(fake_cep),
        cep_debounce_ms=1,
    )
    with TestClient(app) as c:
        yield c


def make_session(
    id: str = "u1",
    role: Role = Role.USER,
    permissions=(Permission.APPOINTMENTS, Permission.LOGS),
    **extra,
) -> SessionUser:
    return SessionUser(
        id=id,
        name=extra.pop("name", "Camila Mendes"),
        email=extra.pop("email", "camila@example.com"),
        role=role,
        permissions=list(permissions),
        token=extra.pop("token", f"api-token-{id}"),
        **extra,
    )


@pytest.fixture
def login(client):
    def _login(session: SessionUser) -> SessionUser:
        client.cookies.set(SESSION_COOKIE, create_session_token(session))
        return session
    return _login
