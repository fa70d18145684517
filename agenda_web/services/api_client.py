"""Cliente genérico da API remota.

Equivale ao par fetch/mutation do front: GETs passam por um cache indexado
por chave (prefixos de cache + URL com parâmetros), requisições simultâneas
para a mesma chave compartilham uma única ida à rede, e mutações invalidam
os prefixos informados.
"""
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Sequence, Tuple
from urllib.parse import urlencode

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)

_MISSING = object()

GENERIC_ERROR = "Request failed"


class ApiError(Exception):
    def __init__(self, status_code: Optional[int], message: str = GENERIC_ERROR, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class MissingSessionError(ApiError):
    def __init__(self):
        super().__init__(None, "No session token available")


def _error_details(response: httpx.Response) -> Tuple[str, Optional[str]]:
    try:
        body = response.json()
    except ValueError:
        return GENERIC_ERROR, None
    if not isinstance(body, dict):
        return GENERIC_ERROR, None
    return body.get("message") or GENERIC_ERROR, body.get("code")


def build_url(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    if not params:
        return url
    query = urlencode({k: v for k, v in params.items() if v is not None})
    if not query:
        return url
    return f"{url}{'&' if '?' in url else '?'}{query}"


class QueryCache:
    """Cache em memória com tempo de validade e número máximo de entradas.

    As entradas ficam em ordem de gravação, então as vencidas estão sempre
    no começo do dicionário e saem a cada `set`.
    """

    def __init__(self, stale_seconds: float, max_entries: int = 1000):
        self.stale_seconds = stale_seconds
        self.max_entries = max_entries
        self._entries: Dict[tuple, Tuple[float, Any]] = {}
        self._inflight: Dict[tuple, asyncio.Future] = {}

    def get(self, key: tuple) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        stored_at, value = entry
        if time.monotonic() - stored_at > self.stale_seconds:
            del self._entries[key]
            return _MISSING
        return value

    def set(self, key: tuple, value: Any) -> None:
        now = time.monotonic()
        self._entries.pop(key, None)
        self._entries[key] = (now, value)
        self._prune(now)

    def _prune(self, now: float) -> None:
        while self._entries:
            key = next(iter(self._entries))
            stored_at, _ = self._entries[key]
            if len(self._entries) <= self.max_entries and now - stored_at <= self.stale_seconds:
                break
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def invalidate(self, prefix: Sequence) -> int:
        prefix = tuple(prefix)
        size = len(prefix)
        stale = [k for k in self._entries if k[:size] == prefix]
        for key in stale:
            del self._entries[key]
        # uma busca em andamento não deve repovoar o cache com dado velho
        for key in [k for k in self._inflight if k[:size] == prefix]:
            del self._inflight[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self._inflight.clear()

    async def get_or_fetch(self, key: tuple, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.get(key)
        if cached is not _MISSING:
            return cached

        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(fetcher())
            self._inflight[key] = pending
            pending.add_done_callback(lambda f: self._settle(key, f))

        return await asyncio.shield(pending)

    def _settle(self, key: tuple, future: asyncio.Future) -> None:
        if self._inflight.get(key) is not future:
            return
        del self._inflight[key]
        if future.cancelled() or future.exception() is not None:
            return
        self.set(key, future.result())


class ApiClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: QueryCache,
        token: Optional[str] = None,
        scope: str = "anonymous",
    ):
        self.http = http
        self.cache = cache
        self.token = token
        self.scope = scope

    def with_token(self, token: str, scope: Optional[str] = None) -> "ApiClient":
        return ApiClient(self.http, self.cache, token=token, scope=scope or self.scope)

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, url: str, json: Any = None) -> Any:
        try:
            response = await self.http.request(method, url, json=json, headers=self._headers())
        except httpx.HTTPError as e:
            logger.warning("Falha de rede em %s %s: %s", method, url, e)
            raise ApiError(None, GENERIC_ERROR)

        if response.is_error:
            message, code = _error_details(response)
            logger.info("API respondeu %s em %s %s: %s", response.status_code, method, url, message)
            raise ApiError(response.status_code, message, code)

        content_type = response.headers.get("content-type", "")
        if not response.content or "application/json" not in content_type:
            return None
        return response.json()

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET autenticado sem passar pelo cache."""
        if not self.token:
            raise MissingSessionError()
        return await self._request("GET", build_url(url, params))

    async def fetch(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        cache_keys: Iterable = (),
    ) -> Any:
        if not self.token:
            raise MissingSessionError()

        target = build_url(url, params)
        key = (self.scope, *cache_keys, target)
        return await self.cache.get_or_fetch(key, lambda: self._request("GET", target))

    async def mutate(
        self,
        url: str,
        method: str = "POST",
        json: Any = None,
        invalidate: Iterable[Sequence] = (),
    ) -> Any:
        result = await self._request(method, url, json=json)
        for prefix in invalidate:
            self.cache.invalidate((self.scope, *prefix))
        return result


def get_api(request: Request) -> ApiClient:
    session = getattr(request.state, "session", None)
    api = ApiClient(request.app.state.http, request.app.state.cache)
    if session is None:
        return api
    return api.with_token(session.token, scope=session.id)
