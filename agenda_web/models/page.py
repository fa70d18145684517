from typing import Any, List

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class Page(SQLModel):
    """Envelope paginado devolvido pela API (/users, /logs, /schedules)."""

    model_config = ConfigDict(populate_by_name=True)

    data: List[Any] = []
    total: int = 0
    page: int = 1
    total_pages: int = Field(default=1, alias="totalPages")

    @classmethod
    def from_response(cls, payload) -> "Page":
        # algumas rotas devolvem a lista pura, sem envelope
        if isinstance(payload, list):
            return cls(data=payload, total=len(payload), page=1, total_pages=1)
        return cls.model_validate(payload or {})
