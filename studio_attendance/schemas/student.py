from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

StudentStatus = Literal["pending", "active", "inactive"]


class Student(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    first_name: str
    last_name: str
    group_id: str
    active: bool
    class_: Optional[str] = Field(default=None, alias="class")
    phone: Optional[str] = None
    mail: Optional[str] = None
    status: Optional[StudentStatus] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class StudentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId", min_length=1)
    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)
    start_date: Optional[date] = Field(default=None, alias="startDate")
    class_: Optional[str] = Field(default=None, alias="class")
    phone: Optional[str] = None
    mail: Optional[str] = None


class StudentApprove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(alias="studentId", min_length=1)
    group_id: str = Field(alias="groupId", min_length=1)
    start_date: Optional[date] = Field(default=None, alias="startDate")


class StudentExpel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    student_id: str = Field(alias="studentId", min_length=1)
    group_id: str = Field(alias="groupId", min_length=1)
    end_date: date = Field(alias="endDate")
