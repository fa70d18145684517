from agenda_web.models.user import Permission, Role, toggle_permission

from conftest import make_session


ADMIN = make_session(id="a1", role=Role.ADMIN, permissions=())

USERS = {
    "data": [
        {
            "id": "u1",
            "name": "Camila",
            "lastName": "Mendes",
            "email": "camila@example.com",
            "street": "Praça da Sé",
            "number": "10",
            "neighborhood": "Sé",
            "city": "São Paulo",
            "state": "SP",
            "permissions": ["APPOINTMENTS"],
            "isActive": True,
            "createdAt": "2025-01-10T12:00:00.000Z",
        }
    ],
    "total": 1,
    "page": 1,
    "totalPages": 1,
}


def test_toggle_permission():
    assert toggle_permission([Permission.APPOINTMENTS], Permission.LOGS) == [Permission.APPOINTMENTS, Permission.LOGS]
    assert toggle_permission([Permission.APPOINTMENTS, Permission.LOGS], Permission.APPOINTMENTS) == [Permission.LOGS]


def test_admin_lists_users(client, fake_api, login):
    login(ADMIN)
    fake_api.on("GET", "/users", body=USERS)

    response = client.get("/dashboard/a1/users", params={"query": "cam"})

    assert response.status_code == 200
    assert "Camila Mendes" in response.text
    assert "Praça da Sé nº10, Sé, São Paulo - SP" in response.text
    assert "10/01/2025" in response.text
    request = fake_api.calls_to("GET", "/users")[0]
    assert request.url.params["limit"] == "7"
    assert request.url.params["query"] == "cam"


def test_deactivate_user(client, fake_api, login):
    login(ADMIN)
    fake_api.on("PUT", "/users/u1", body={})

    response = client.post("/dashboard/a1/users/u1/status", data={"is_active": "true"}, follow_redirects=False)

    assert response.headers["location"] == "/dashboard/a1/users"
    assert fake_api.json_of(fake_api.calls_to("PUT", "/users/u1")[0]) == {"isActive": False}


def test_grant_and_revoke_permission(client, fake_api, login):
    login(ADMIN)
    fake_api.on("PUT", "/users/u1", body={})

    client.post(
        "/dashboard/a1/users/u1/permissions",
        data={"permission": "LOGS", "current": ["APPOINTMENTS"]},
        follow_redirects=False,
    )
    client.post(
        "/dashboard/a1/users/u1/permissions",
        data={"permission": "APPOINTMENTS", "current": ["APPOINTMENTS", "LOGS"]},
        follow_redirects=False,
    )

    granted, revoked = (fake_api.json_of(r) for r in fake_api.calls_to("PUT", "/users/u1"))
    assert granted == {"permissions": ["APPOINTMENTS", "LOGS"]}
    assert revoked == {"permissions": ["LOGS"]}


def test_update_failure_sets_error_toast(client, fake_api, login):
    login(ADMIN)
    fake_api.on("PUT", "/users/u1", status=500)
    fake_api.on("GET", "/users", body=USERS)

    response = client.post("/dashboard/a1/users/u1/status", data={"is_active": "false"})

    assert response.status_code == 200
    assert "Erro ao atualizar cliente" in response.text
