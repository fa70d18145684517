from fastapi import APIRouter, Depends, Query, Request

from agenda_web.core.config import PAGE_LIMIT
from agenda_web.core.security import get_current_session
from agenda_web.core.templates import render
from agenda_web.models.log import Log
from agenda_web.models.page import Page
from agenda_web.models.session import SessionUser
from agenda_web.services.api_client import ApiClient, ApiError, get_api

router = APIRouter(prefix="/dashboard", tags=["logs"])


@router.get("/{user_id}/logs")
async def logs_page(
    user_id: str,
    request: Request,
    page: int = Query(1, ge=1),
    query: str = "",
    date: str = "",
    order: str = "DESC",
    session: SessionUser = Depends(get_current_session),
    api: ApiClient = Depends(get_api),
):
    order = "ASC" if order.upper() == "ASC" else "DESC"
    context = {
        "rows": [],
        "page": page,
        "total_pages": 1,
        "filters": {"query": query, "date": date, "order": order},
    }

    try:
        result = Page.from_response(
            await api.fetch(
                "/logs",
                params={"page": page, "limit": PAGE_LIMIT, "query": query, "date": date, "order": order},
                cache_keys=("logs",),
            )
        )
        context["rows"] = [Log.model_validate(item) for item in result.data]
        context["total_pages"] = max(result.total_pages, 1)
    except ApiError as e:
        context["toast"] = {"message": e.message, "type": "error"}

    return render(request, "dashboard/logs.html", context)
