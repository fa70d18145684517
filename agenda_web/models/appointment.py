from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class AppointmentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    # a API pode devolver agendamentos concluídos; só exibimos
    COMPLETED = "COMPLETED"


STATUS_LABELS = {
    AppointmentStatus.PENDING: "Em análise",
    AppointmentStatus.CONFIRMED: "Agendado",
    AppointmentStatus.CANCELLED: "Cancelado",
    AppointmentStatus.COMPLETED: "Concluído",
}


class AppointmentUser(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    last_name: str = Field(default="", alias="lastName")
    email: str = ""
    role: Optional[str] = None


class AppointmentRoom(SQLModel):
    id: str
    name: str = ""


class Appointment(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    date: date
    start_time: str = Field(alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")

    status: AppointmentStatus = AppointmentStatus.PENDING

    user_id: Optional[str] = Field(default=None, alias="userId")
    room_id: Optional[str] = Field(default=None, alias="roomId")
    user: Optional[AppointmentUser] = None
    room: Optional[AppointmentRoom] = None

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("date", mode="before")
    @classmethod
    def only_day(cls, v):
        # a API manda o dia como ISO completo ("2025-01-22T00:00:00.000Z")
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v

    @property
    def owner_id(self) -> Optional[str]:
        if self.user_id:
            return self.user_id
        return self.user.id if self.user else None


class AppointmentCreate(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    start_time: str = Field(alias="startTime")
    room_id: str = Field(alias="roomId")

    @field_validator("date")
    @classmethod
    def check_date(cls, v):
        if not (v or "").strip():
            raise ValueError("Selecione uma data")
        return v.strip()

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, v):
        if not (v or "").strip():
            raise ValueError("Selecione um horário")
        return v.strip()

    @field_validator("room_id")
    @classmethod
    def check_room(cls, v):
        if not (v or "").strip():
            raise ValueError("Selecione uma sala")
        return v.strip()


class StatusChange(SQLModel):
    """Formulário de troca de status.

    Carrega a cópia da linha exibida na tabela (status atual, dono e dados
    para o e-mail); quem decide de fato é a API.
    """

    status: AppointmentStatus
    current_status: AppointmentStatus
    owner_id: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
