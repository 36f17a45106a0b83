# studio_attendance/core/report_service.py
"""Historical attendance aggregation behind /api/reports and /api/export."""
import logging
from typing import Dict, Iterable, List, Tuple

from studio_attendance.core.attendance_service import AttendanceService, session_date_from_id
from studio_attendance.core.sheets import norm
from studio_attendance.core.utils import percentage, polish_sort_key
from studio_attendance.schemas.group import Group
from studio_attendance.schemas.report import (
    AttendanceReport,
    AttendanceReportFilters,
    AttendanceReportItem,
    AttendanceStats,
    GroupStats,
    StudentStats,
)

logger = logging.getLogger(__name__)


def _tally(items: Iterable[AttendanceReportItem]) -> Tuple[int, int, int]:
    total = present = absent = 0
    for item in items:
        total += 1
        if item.status == "present":
            present += 1
        elif item.status == "absent":
            absent += 1
    return total, present, absent


def _stats_fields(items: List[AttendanceReportItem]) -> dict:
    total, present, absent = _tally(items)
    return {
        "totalSessions": total,
        "presentSessions": present,
        "absentSessions": absent,
        "attendancePercentage": percentage(present, total),
    }


def _in_range(day: str, filters: AttendanceReportFilters) -> bool:
    if filters.dateFrom and day < filters.dateFrom:
        return False
    if filters.dateTo and day > filters.dateTo:
        return False
    return True


def collect_items(service: AttendanceService, groups: Iterable[Group],
                  filters: AttendanceReportFilters) -> List[AttendanceReportItem]:
    """One item per resolved (session, student) pair, before the status filter."""
    student_filter = set(filters.studentIds or [])
    items: List[AttendanceReportItem] = []
    for group in groups:
        history = service.load_group_history(group)
        # groups may share a spreadsheet; skip rows for other groups' sessions
        own_suffix = f"-{norm(group.id)}"
        for (session_id, student_id), record in history.records.items():
            if session_id not in history.session_dates and not session_id.endswith(own_suffix):
                continue
            day = history.session_dates.get(session_id) or session_date_from_id(session_id)
            if not day or not _in_range(day, filters):
                continue
            if student_filter and student_id not in student_filter:
                continue
            student = history.students.get(student_id)
            name = student.full_name if student else history.names.get(student_id, student_id)
            items.append(AttendanceReportItem(
                student_id=student_id,
                student_name=name,
                group_id=group.id,
                group_name=group.name,
                date=day,
                status=record.status,
                notes=record.notes or None,
            ))
    items.sort(key=lambda i: (i.date, polish_sort_key(i.group_name), polish_sort_key(i.student_name)))
    return items


def build_report(items: List[AttendanceReportItem], filters: AttendanceReportFilters) -> AttendanceReport:
    by_student: Dict[Tuple[str, str], List[AttendanceReportItem]] = {}
    by_group: Dict[str, List[AttendanceReportItem]] = {}
    for item in items:
        by_student.setdefault((item.group_id, item.student_id), []).append(item)
        by_group.setdefault(item.group_id, []).append(item)

    student_stats = [
        StudentStats(
            student_id=student_id,
            student_name=rows[0].student_name,
            group_id=group_id,
            **_stats_fields(rows),
        )
        for (group_id, student_id), rows in by_student.items()
    ]
    student_stats.sort(key=lambda s: polish_sort_key(s.student_name))

    group_stats = [
        GroupStats(
            group_id=group_id,
            group_name=rows[0].group_name,
            studentCount=len({r.student_id for r in rows}),
            **_stats_fields(rows),
        )
        for group_id, rows in by_group.items()
    ]
    group_stats.sort(key=lambda g: polish_sort_key(g.group_name))

    visible = items if filters.status == "all" else [i for i in items if i.status == filters.status]
    return AttendanceReport(
        items=visible,
        studentStats=student_stats,
        groupStats=group_stats,
        totalStats=AttendanceStats(**_stats_fields(items)),
    )


def get_attendance_report(service: AttendanceService, groups: Iterable[Group],
                          filters: AttendanceReportFilters) -> AttendanceReport:
    groups = list(groups)
    items = collect_items(service, groups, filters)
    logger.info(f"Attendance report: {len(items)} item(s) across {len(groups)} group(s)")
    return build_report(items, filters)
