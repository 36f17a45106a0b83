from datetime import date as date_type
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

AttendanceStatus = Literal["present", "absent", "withdrawn"]

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _check_calendar_date(value: str) -> str:
    date_type.fromisoformat(value)
    return value


class AttendanceItem(BaseModel):
    student_id: str = Field(min_length=1)
    status: AttendanceStatus
    updated_at: Optional[str] = None
    notes: Optional[str] = ""


class AttendanceResponse(BaseModel):
    session_id: str
    items: List[AttendanceItem]


class AttendanceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId", min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    items: List[AttendanceItem]

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return _check_calendar_date(value)


class AttendanceUpdateResponse(BaseModel):
    session_id: str
    updated: List[AttendanceItem]
    conflicts: List[AttendanceItem]


class AttendanceNoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId", min_length=1)
    date: str = Field(pattern=DATE_PATTERN)
    student_id: str = Field(min_length=1)
    notes: str = ""

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        return _check_calendar_date(value)


class AttendanceExists(BaseModel):
    exists: bool
