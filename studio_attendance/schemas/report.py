from typing import List, Literal, Optional

from pydantic import BaseModel

from studio_attendance.schemas.attendance import AttendanceStatus

ReportStatusFilter = Literal["present", "absent", "all"]


class AttendanceReportFilters(BaseModel):
    groupIds: Optional[List[str]] = None
    studentIds: Optional[List[str]] = None
    dateFrom: Optional[str] = None
    dateTo: Optional[str] = None
    status: ReportStatusFilter = "all"


class AttendanceReportItem(BaseModel):
    student_id: str
    student_name: str
    group_id: str
    group_name: str
    date: str
    status: AttendanceStatus
    notes: Optional[str] = None


class AttendanceStats(BaseModel):
    totalSessions: int = 0
    presentSessions: int = 0
    absentSessions: int = 0
    attendancePercentage: int = 0


class StudentStats(AttendanceStats):
    student_id: str
    student_name: str
    group_id: str


class GroupStats(AttendanceStats):
    group_id: str
    group_name: str
    studentCount: int = 0


class AttendanceReport(BaseModel):
    items: List[AttendanceReportItem]
    studentStats: List[StudentStats]
    groupStats: List[GroupStats]
    totalStats: AttendanceStats
