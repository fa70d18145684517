import re
from typing import Optional

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


TIME_RANGE_RE = re.compile(r"^\d{2}:\d{2}\s-\s\d{2}:\d{2}$")

INTERVAL_CHOICES = ("15 minutos", "30 minutos", "45 minutos", "60 minutos")


class Room(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    slot_duration: Optional[int] = Field(default=None, alias="slotDuration")
    is_active: bool = Field(default=True, alias="isActive")


class RoomCreate(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    slot_duration: int = Field(alias="slotDuration")


class RoomSettingsRow(SQLModel):
    """Uma linha do formulário de configuração de salas."""

    name: str = "Sala 012"
    time_range: str = "08:00 - 18:00"
    interval: str = "30 minutos"

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = (v or "").strip()
        if len(v) < 2:
            raise ValueError("O nome da sala deve ter pelo menos 2 caracteres")
        return v

    @field_validator("time_range")
    @classmethod
    def check_time_range(cls, v):
        v = (v or "").strip()
        if not TIME_RANGE_RE.match(v):
            raise ValueError("Formato inválido. Use ex: 08:00 - 18:00")
        start, end = v.split(" - ")
        if end <= start:
            raise ValueError("O horário final deve ser maior que o inicial")
        return v

    @field_validator("interval")
    @classmethod
    def check_interval(cls, v):
        v = (v or "").strip()
        if not v or not v.split(" ")[0].isdigit():
            raise ValueError("Selecione um intervalo")
        return v

    def to_payload(self) -> RoomCreate:
        start, end = self.time_range.split(" - ")
        return RoomCreate(
            name=self.name,
            start_time=start,
            end_time=end,
            slot_duration=int(self.interval.split(" ")[0]),
        )
