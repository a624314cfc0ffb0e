"""Request and response schemas for class session scheduling."""

import datetime as dt
import re
from typing import Any, Optional

from pydantic import Field, field_serializer, field_validator, model_validator

from ..core.enums import SessionStatus
from ._strict_base import StrictModel, StrictRequestModel

_HH_MM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_hh_mm(value: Any) -> Any:
    """Accept ``"HH:mm"`` strings (or ``time`` objects) for clock fields."""
    if isinstance(value, dt.time):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if not _HH_MM.match(candidate):
            raise ValueError("Time must be in HH:mm format")
        hours, minutes = candidate.split(":")
        return dt.time(int(hours), int(minutes))
    raise ValueError("Time must be in HH:mm format")


class ScheduleCreate(StrictRequestModel):
    """Payload for booking a class session."""

    class_id: str = Field(min_length=1)
    teacher_id: str = Field(min_length=1)
    location_id: str = Field(min_length=1)
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    duration: Optional[int] = Field(default=None, ge=1, description="Minutes; must match the range")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_clock(cls, value: Any) -> Any:
        return parse_hh_mm(value)

    @model_validator(mode="after")
    def _check_order(self) -> "ScheduleCreate":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class ScheduleUpdate(StrictRequestModel):
    """Partial update of a scheduled session. Omitted fields keep their value."""

    class_id: Optional[str] = Field(default=None, min_length=1)
    teacher_id: Optional[str] = Field(default=None, min_length=1)
    location_id: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None
    duration: Optional[int] = Field(default=None, ge=1)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_clock(cls, value: Any) -> Any:
        if value is None:
            return None
        return parse_hh_mm(value)


class ScheduleCancel(StrictRequestModel):
    note: Optional[str] = Field(default=None, max_length=1000)


class ScheduleResponse(StrictModel):
    id: str
    class_id: str
    class_title: Optional[str] = None
    teacher_id: str
    teacher_name: Optional[str] = None
    location_id: str
    location_name: Optional[str] = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    duration: int
    status: SessionStatus
    cancellation_note: Optional[str] = None
    created_by: Optional[str] = None

    @field_serializer("start_time", "end_time")
    def _format_clock(self, value: dt.time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_model(cls, session: Any) -> "ScheduleResponse":
        school_class = getattr(session, "school_class", None)
        teacher = getattr(session, "teacher", None)
        location = getattr(session, "location", None)
        return cls(
            id=session.id,
            class_id=session.class_id,
            class_title=school_class.title if school_class else None,
            teacher_id=session.teacher_id,
            teacher_name=teacher.full_name if teacher else None,
            location_id=session.location_id,
            location_name=location.name if location else None,
            date=session.date,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=session.duration,
            status=SessionStatus(session.status),
            cancellation_note=session.cancellation_note,
            created_by=session.created_by,
        )
