import asyncio
import re

import httpx
import pytest

from agenda_web.main import create_app
from agenda_web.services.cep import AddressLookup, CepNotFound, Debouncer, Superseded, clean_cep

from conftest import FakeApi


VIACEP_BODY = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
}


def _lookup(fake: FakeApi, delay=0.02) -> AddressLookup:
    http = httpx.AsyncClient(base_url="https://viacep.test/ws", transport=httpx.MockTransport(fake))
    return AddressLookup(http, delay)


def test_clean_cep():
    assert clean_cep("01001-000") == "01001000"
    assert clean_cep(None) == ""


def test_typing_a_cep_triggers_a_single_lookup():
    fake = FakeApi()
    fake.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    lookup = _lookup(fake)

    keystrokes = ["0", "01", "010", "0100", "01001", "01001-", "01001-0", "01001-00", "01001-000"]

    async def scenario():
        tasks = []
        for value in keystrokes:
            tasks.append(asyncio.ensure_future(lookup.lookup("client-1", value)))
            await asyncio.sleep(0.001)
        return await asyncio.gather(*tasks, return_exceptions=True)

    results = asyncio.run(scenario())

    assert all(isinstance(r, Superseded) for r in results[:-1])
    assert results[-1].street == "Praça da Sé"
    assert results[-1].state == "SP"
    assert len(fake.calls) == 1


def test_later_keystroke_cancels_pending_lookup():
    fake = FakeApi()
    fake.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    lookup = _lookup(fake)

    async def scenario():
        first = asyncio.ensure_future(lookup.lookup("client-1", "01001000"))
        await asyncio.sleep(0.001)
        second = asyncio.ensure_future(lookup.lookup("client-1", "0100100"))
        return await asyncio.gather(first, second, return_exceptions=True)

    first, second = asyncio.run(scenario())
    assert isinstance(first, Superseded)
    assert second is None
    assert fake.calls == []


def test_each_settling_period_gets_its_own_lookup():
    fake = FakeApi()
    fake.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    lookup = _lookup(fake, delay=0.005)

    async def scenario():
        await lookup.lookup("client-1", "01001000")
        await lookup.lookup("client-1", "01001-000")

    asyncio.run(scenario())
    assert len(fake.calls) == 2


def test_different_clients_do_not_cancel_each_other():
    fake = FakeApi()
    fake.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    lookup = _lookup(fake)

    async def scenario():
        return await asyncio.gather(
            lookup.lookup("client-1", "01001000"),
            lookup.lookup("client-2", "01001000"),
        )

    a, b = asyncio.run(scenario())
    assert a == b
    assert len(fake.calls) == 2


def test_current_cep_is_not_looked_up_again():
    fake = FakeApi()
    lookup = _lookup(fake, delay=0.001)

    assert asyncio.run(lookup.lookup("client-1", "01001-000", current="01001000")) is None
    assert fake.calls == []


def test_unknown_cep_raises_not_found():
    fake = FakeApi()
    fake.on("GET", "/ws/99999999/json/", body={"erro": True})
    lookup = _lookup(fake, delay=0.001)

    with pytest.raises(CepNotFound):
        asyncio.run(lookup.lookup("client-1", "99999-999"))


def test_debouncer_propagates_own_cancellation():
    debouncer = Debouncer(1.0)

    async def never():
        return "never"

    async def scenario():
        task = asyncio.ensure_future(debouncer.submit("k", never))
        await asyncio.sleep(0.001)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())


# =========================
# ROTA /cep
# =========================

def test_cep_route_returns_address(client, fake_cep):
    fake_cep.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    response = client.get("/cep", params={"value": "01001-000"})
    assert response.json() == {
        "status": "found",
        "address": {"street": "Praça da Sé", "neighborhood": "Sé", "city": "São Paulo", "state": "SP"},
    }


def test_cep_route_reports_not_found_and_errors(client, fake_cep):
    fake_cep.on("GET", "/ws/99999999/json/", body={"erro": "true"})
    fake_cep.on("GET", "/ws/11111111/json/", status=500)

    assert client.get("/cep", params={"value": "99999999"}).json()["message"] == "CEP não encontrado. Preencha manualmente."
    assert client.get("/cep", params={"value": "11111111"}).json() == {"status": "error", "message": "Erro ao buscar CEP."}
    assert client.get("/cep", params={"value": "111"}).json() == {"status": "skipped"}


def test_forms_get_distinct_lookup_keys(client):
    first = client.get("/signup").text
    second = client.get("/signup").text

    key = re.search(r'data-key="([0-9a-f]{32})"', first).group(1)
    assert key not in second


def test_anonymous_visitors_on_same_address_do_not_cancel_each_other(fake_cep):
    fake_cep.on("GET", "/ws/01001000/json/", body=VIACEP_BODY)
    fake_cep.on("GET", "/ws/20040020/json/", body={**VIACEP_BODY, "localidade": "Rio de Janeiro", "uf": "RJ"})
    app = create_app(
        api_transport=httpx.MockTransport(FakeApi()),
        cep_transport=httpx.MockTransport(fake_cep),
        cep_debounce_ms=50,
    )

    async def visit(http, cep, key):
        response = await http.get("/cep", params={"value": cep, "key": key})
        return response.json()

    async def scenario():
        async with app.router.lifespan_context(app):
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                return await asyncio.gather(
                    visit(http, "01001-000", "form-a"),
                    visit(http, "20040-020", "form-b"),
                )

    a, b = asyncio.run(scenario())
    assert a["status"] == "found" and a["address"]["state"] == "SP"
    assert b["status"] == "found" and b["address"]["state"] == "RJ"
