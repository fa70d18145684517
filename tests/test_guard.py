import pytest

from agenda_web.core.config import SESSION_COOKIE
from agenda_web.core.guard import resolve_redirect
from agenda_web.core.navigation import header_for, nav_items
from agenda_web.models.user import Permission, Role

from conftest import make_session


ADMIN = make_session(id="a1", role=Role.ADMIN, permissions=())
FULL = make_session(id="u1")
NO_LOGS = make_session(id="u1", permissions=(Permission.APPOINTMENTS,))
NO_APPOINTMENTS = make_session(id="u1", permissions=(Permission.LOGS,))
NOTHING = make_session(id="u1", permissions=())


@pytest.mark.parametrize("path", ["/", "/dashboard", "/dashboard/u1", "/dashboard/u1/logs", "/dashboard/u1/users/2"])
def test_anonymous_on_private_path_goes_to_signin(path):
    assert resolve_redirect(path, None) == "/signin"


@pytest.mark.parametrize("path", ["/signin", "/signup", "/signin/admin", "/cep"])
def test_anonymous_on_public_path_is_allowed(path):
    assert resolve_redirect(path, None) is None


@pytest.mark.parametrize("session", [ADMIN, FULL, NOTHING])
@pytest.mark.parametrize("path", ["/", "/signin", "/signup", "/signin/admin"])
def test_signed_in_user_leaves_auth_pages(session, path):
    assert resolve_redirect(path, session) == f"/dashboard/{session.id}"


@pytest.mark.parametrize("path", [
    "/dashboard/a1", "/dashboard/a1/logs", "/dashboard/a1/users", "/dashboard/a1/rooms", "/dashboard/other/users",
])
def test_admin_is_unrestricted(path):
    assert resolve_redirect(path, ADMIN) is None


@pytest.mark.parametrize("session", [FULL, NO_LOGS, NO_APPOINTMENTS, NOTHING])
@pytest.mark.parametrize("path", ["/dashboard/u1/users", "/dashboard/u1/users/9", "/dashboard/u1/clients"])
def test_non_admin_never_reaches_users_area(session, path):
    assert resolve_redirect(path, session) == "/dashboard/u1"


@pytest.mark.parametrize("session", [NO_LOGS, NOTHING])
def test_logs_require_logs_permission(session):
    assert resolve_redirect("/dashboard/u1/logs", session) == "/dashboard/u1"


def test_logs_allowed_with_permission():
    assert resolve_redirect("/dashboard/u1/logs", FULL) is None
    assert resolve_redirect("/dashboard/u1/logs", NO_APPOINTMENTS) is None


def test_missing_appointments_permission_lands_on_profile():
    assert resolve_redirect("/dashboard/u1", NO_APPOINTMENTS) == "/dashboard/u1/profile"
    assert resolve_redirect("/dashboard/u1/profile", NO_APPOINTMENTS) is None
    assert resolve_redirect("/dashboard/u1/profile", NOTHING) is None


def test_other_users_dashboard_redirects_home():
    assert resolve_redirect("/dashboard/someone-else", FULL) == "/dashboard/u1"
    assert resolve_redirect("/dashboard/someone-else/logs", FULL) == "/dashboard/u1"


def test_unmatched_paths_are_allowed():
    assert resolve_redirect("/dashboard/u1/anything", FULL) is None
    assert resolve_redirect("/signout", FULL) is None


def test_trailing_slash_and_query_are_ignored():
    assert resolve_redirect("/dashboard/u1/users/", FULL) == "/dashboard/u1"
    assert resolve_redirect("/dashboard/u1/logs?page=2", NO_LOGS) == "/dashboard/u1"


def test_nav_hides_sections_without_permission():
    labels = [i["label"] for i in nav_items(NO_LOGS, "/dashboard/u1")]
    assert labels == ["Agendamentos", "Minha Conta"]

    labels = [i["label"] for i in nav_items(ADMIN, "/dashboard/a1/users")]
    assert labels == ["Agendamentos", "Logs", "Usuários", "Minha Conta"]


def test_nav_marks_active_item():
    items = {i["label"]: i["active"] for i in nav_items(FULL, "/dashboard/u1/logs")}
    assert items == {"Agendamentos": False, "Logs": True, "Minha Conta": False}


def test_header_titles():
    assert header_for("/dashboard/u1/logs")["title"] == "Logs do Sistema"
    assert header_for("/dashboard/u1/profile")["title"] == "Minha Conta"
    assert header_for("/dashboard/u1")["title"] == "Agendamento"


# =========================
# MIDDLEWARE
# =========================

def test_middleware_redirects_anonymous(client):
    response = client.get("/dashboard/u1", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/signin"


def test_middleware_drops_invalid_cookie(client):
    client.cookies.set(SESSION_COOKIE, "not-a-jwt")
    response = client.get("/dashboard/u1/logs", follow_redirects=False)
    assert response.headers["location"] == "/signin"
    assert SESSION_COOKIE in response.headers.get("set-cookie", "")


def test_middleware_redirects_signed_in_user_from_signin(client, login):
    login(make_session(id="u7"))
    response = client.get("/signin", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard/u7"


def test_middleware_blocks_users_area_for_non_admin(client, fake_api, login):
    login(make_session(id="u1"))
    response = client.get("/dashboard/u1/users", follow_redirects=False)
    assert response.headers["location"] == "/dashboard/u1"
    assert fake_api.calls == []
