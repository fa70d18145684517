from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from agenda_web.models.appointment import AppointmentUser


class Log(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: Optional[str] = Field(default=None, alias="userId")
    action: str
    module: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(alias="createdAt")
    user: Optional[AppointmentUser] = None

    @property
    def client_name(self) -> str:
        if not self.user:
            return ""
        return f"{self.user.name} {self.user.last_name}".strip()
