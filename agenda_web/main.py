import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from agenda_web.core.config import (
    API_BASE_URL,
    API_TIMEOUT_SECONDS,
    CACHE_MAX_ENTRIES,
    CACHE_STALE_SECONDS,
    CEP_API_URL,
    CEP_DEBOUNCE_MS,
    COOKIE_SECURE,
    FLASH_COOKIE,
    SECRET_KEY,
)
from agenda_web.core.guard import RouteGuardMiddleware
from agenda_web.routers import appointments, auth, cep, logs, profile, rooms, users
from agenda_web.services.api_client import QueryCache
from agenda_web.services.cep import AddressLookup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(
    api_transport: Optional[httpx.AsyncBaseTransport] = None,
    cep_transport: Optional[httpx.AsyncBaseTransport] = None,
    cep_debounce_ms: int = CEP_DEBOUNCE_MS,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.http = httpx.AsyncClient(
            base_url=API_BASE_URL, transport=api_transport, timeout=API_TIMEOUT_SECONDS
        )
        app.state.cache = QueryCache(CACHE_STALE_SECONDS, CACHE_MAX_ENTRIES)
        cep_http = httpx.AsyncClient(base_url=CEP_API_URL, transport=cep_transport, timeout=API_TIMEOUT_SECONDS)
        app.state.address_lookup = AddressLookup(cep_http, cep_debounce_ms / 1000)
        logger.info("Front de agendamento iniciado; API remota em %s", API_BASE_URL)
        try:
            yield
        finally:
            await app.state.http.aclose()
            await cep_http.aclose()

    app = FastAPI(title="agenda_web", lifespan=lifespan)
    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=SECRET_KEY,
        session_cookie=FLASH_COOKIE,
        same_site="lax",
        https_only=COOKIE_SECURE,
    )

    app.include_router(auth.router)
    app.include_router(appointments.router)
    app.include_router(logs.router)
    app.include_router(users.router)
    app.include_router(profile.router)
    app.include_router(rooms.router)
    app.include_router(cep.router)

    @app.get("/")
    def root():
        # o guard sempre redireciona a raiz; isto só roda se ele for removido
        return RedirectResponse("/signin", status_code=303)

    return app


app = create_app()
