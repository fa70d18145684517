from typing import Dict, Optional

from fastapi import Request

# chave do toast pendente na sessão assinada (SessionMiddleware)
TOAST_KEY = "toast"
TOAST_TYPES = ("error", "success", "warning", "info")


def set_toast(request: Request, message: str, type: str = "info") -> None:
    """Guarda um aviso para a próxima página renderizada."""
    if type not in TOAST_TYPES:
        type = "info"
    request.session[TOAST_KEY] = {"message": message, "type": type}


def pop_toast(request: Request) -> Optional[Dict[str, str]]:
    data = request.session.pop(TOAST_KEY, None)
    if not isinstance(data, dict) or "message" not in data:
        return None
    return data
