import httpx
from fastapi import APIRouter, Request

from agenda_web.services.cep import CepNotFound, Superseded

router = APIRouter(tags=["cep"])


@router.get("/cep")
async def lookup_cep(request: Request, value: str = "", current: str = "", key: str = ""):
    """Autopreenchimento de endereço; chamado a cada digitação do campo CEP.

    `key` identifica o formulário aberto; sem ela cai para a sessão ou o IP.
    """
    session = getattr(request.state, "session", None)
    client_key = key or (session.id if session else (request.client.host if request.client else "anonymous"))

    try:
        address = await request.app.state.address_lookup.lookup(client_key, value, current or None)
    except Superseded:
        return {"status": "superseded"}
    except CepNotFound:
        return {"status": "not_found", "message": "CEP não encontrado. Preencha manualmente."}
    except (httpx.HTTPError, ValueError):
        return {"status": "error", "message": "Erro ao buscar CEP."}

    if address is None:
        return {"status": "skipped"}

    return {"status": "found", "address": address.model_dump()}
