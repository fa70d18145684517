from typing import Dict, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError
from sqlmodel import SQLModel

M = TypeVar("M", bound=SQLModel)

_PREFIX = "Value error, "


def form_errors(exc: ValidationError) -> Dict[str, str]:
    """Mapeia erros do pydantic para {campo: mensagem}; fica a primeira mensagem de cada campo."""
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__all__"
        message = err["msg"]
        if message.startswith(_PREFIX):
            message = message[len(_PREFIX):]
        errors.setdefault(field, message)
    return errors


def validate_form(model: Type[M], data: dict) -> Tuple[Optional[M], Dict[str, str]]:
    try:
        return model.model_validate(data), {}
    except ValidationError as e:
        return None, form_errors(e)
