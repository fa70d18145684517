import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from sqlmodel import SQLModel

logger = logging.getLogger(__name__)


def clean_cep(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


class Address(SQLModel):
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""


class CepNotFound(Exception):
    pass


class Superseded(Exception):
    """A chamada foi substituída por outra mais recente para a mesma chave."""


async def fetch_cep(http: httpx.AsyncClient, cep: str) -> Address:
    response = await http.get(f"/{cep}/json/")
    response.raise_for_status()
    data = response.json()

    if data.get("erro"):
        raise CepNotFound(cep)

    return Address(
        street=data.get("logradouro") or "",
        neighborhood=data.get("bairro") or "",
        city=data.get("localidade") or "",
        state=data.get("uf") or "",
    )


class Debouncer:
    """Adia cada ação por `delay` segundos; uma nova chamada para a mesma
    chave cancela a que ainda estiver esperando."""

    def __init__(self, delay: float):
        self.delay = delay
        self._pending: Dict[str, asyncio.Task] = {}

    async def _run(self, action: Callable[[], Awaitable[Any]]) -> Any:
        await asyncio.sleep(self.delay)
        return await action()

    async def submit(self, key: str, action: Callable[[], Awaitable[Any]]) -> Any:
        previous = self._pending.get(key)
        if previous is not None and not previous.done():
            previous.cancel()

        task = asyncio.ensure_future(self._run(action))
        self._pending[key] = task

        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and self._pending.get(key) is not task:
                raise Superseded(key)
            raise
        finally:
            if self._pending.get(key) is task:
                del self._pending[key]


class AddressLookup:
    def __init__(self, http: httpx.AsyncClient, delay: float):
        self.http = http
        self.debouncer = Debouncer(delay)

    async def lookup(self, client_key: str, value: str, current: Optional[str] = None) -> Optional[Address]:
        """Busca o endereço do CEP após o período de espera.

        Devolve None quando o valor não tem 8 dígitos ou é o mesmo CEP já
        salvo (formulário de edição). Levanta `Superseded` se outra digitação
        chegou antes do fim da espera.
        """
        cep = clean_cep(value)

        async def action():
            if len(cep) != 8:
                return None
            if current and cep == clean_cep(current):
                return None
            logger.debug("Consultando CEP %s", cep)
            return await fetch_cep(self.http, cep)

        return await self.debouncer.submit(client_key, action)
