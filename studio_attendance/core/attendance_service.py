# studio_attendance/core/attendance_service.py
"""Attendance domain operations over the per-group spreadsheets.

The Attendance worksheet is an append-only log: a save never edits a row,
it appends a new one, and readers keep the row with the largest
``updated_at`` per (session, student).
"""
import logging
import re
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from studio_attendance.core.cache import SimpleCache
from studio_attendance.core.exceptions import SheetsAuthError, SheetsError
from studio_attendance.core.sheets import cell, column_letter, norm, parse_bool
from studio_attendance.core.utils import iso_timestamp, polish_sort_key, utc_now
from studio_attendance.schemas.attendance import (
    AttendanceItem,
    AttendanceResponse,
    AttendanceUpdateResponse,
)
from studio_attendance.schemas.group import Group
from studio_attendance.schemas.student import Student, StudentCreate

logger = logging.getLogger(__name__)

STUDENTS_RANGE = "Students!A1:K2000"
SESSIONS_RANGE = "Sessions!A1:C1000"
SESSIONS_APPEND_RANGE = "Sessions!A:C"
ATTENDANCE_RANGE = "Attendance!A1:I10000"
ATTENDANCE_APPEND_RANGE = "Attendance!A:I"

STUDENT_COLUMNS = [
    "id", "first_name", "last_name", "group_id", "active",
    "class", "phone", "mail", "status", "start_date", "end_date",
]

HEADER_ALIASES = {
    "id": "id",
    "first_name": "first_name",
    "firstname": "first_name",
    "last_name": "last_name",
    "lastname": "last_name",
    "group_id": "group_id",
    "groupid": "group_id",
    "group": "group_id",
    "active": "active",
    "class": "class",
    "phone": "phone",
    "mail": "mail",
    "email": "mail",
    "status": "status",
    "start_date": "start_date",
    "startdate": "start_date",
    "end_date": "end_date",
    "enddate": "end_date",
}

PRESENT_VALUES = {"present", "obecny", "1", "true", "tak", "y", "yes", "t"}
WITHDRAWN_VALUES = {"withdrawn", "wypisany"}
STUDENT_STATUSES = {"pending", "active", "inactive"}

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DOTTED_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_SESSION_DATE = re.compile(r"^SESS-(\d{4}-\d{2}-\d{2})-")


def build_session_id(group_id: str, day: str) -> str:
    return f"SESS-{day}-{norm(group_id)}"


def session_date_from_id(session_id: str) -> Optional[str]:
    match = _SESSION_DATE.match(session_id)
    return match.group(1) if match else None


def normalize_status(value) -> str:
    text = str(value if value is not None else "").strip().lower()
    if text in PRESENT_VALUES:
        return "present"
    if text in WITHDRAWN_VALUES:
        return "withdrawn"
    return "absent"


def coerce_sheet_date(value: str) -> Optional[str]:
    """Sheet dates are ISO, but hand-edited cells sometimes use DD.MM.YYYY."""
    if not value:
        return None
    if _ISO_DATE.match(value):
        return value
    match = _DOTTED_DATE.match(value)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None
    return None


def header_columns(header_row: Sequence) -> Dict[str, int]:
    columns: Dict[str, int] = {}
    for index, raw in enumerate(header_row):
        name = HEADER_ALIASES.get(str(raw).strip().lower())
        if name and name not in columns:
            columns[name] = index
    return columns


def parse_student_row(row: Sequence, columns: Dict[str, int]) -> Optional[Student]:
    """Rows missing id, names or group are not students and are dropped."""
    values = {name: cell(row, index) for name, index in columns.items()}
    if not all(values.get(k) for k in ("id", "first_name", "last_name", "group_id")):
        return None
    status = values.get("status", "").lower() or None
    if status not in STUDENT_STATUSES:
        status = None
    return Student(
        id=values["id"],
        first_name=values["first_name"],
        last_name=values["last_name"],
        group_id=values["group_id"],
        active=parse_bool(values.get("active")),
        class_=values.get("class") or None,
        phone=values.get("phone") or None,
        mail=values.get("mail") or None,
        status=status,
        start_date=coerce_sheet_date(values.get("start_date", "")),
        end_date=coerce_sheet_date(values.get("end_date", "")),
    )


def student_sort_key(student: Student):
    return polish_sort_key(student.last_name), polish_sort_key(student.first_name)


@dataclass
class GroupHistory:
    """Everything the report needs from one group's spreadsheet."""

    group: Group
    session_dates: Dict[str, str] = field(default_factory=dict)
    records: Dict[Tuple[str, str], AttendanceItem] = field(default_factory=dict)
    names: Dict[str, str] = field(default_factory=dict)
    students: Dict[str, Student] = field(default_factory=dict)


class AttendanceService:
    def __init__(
        self,
        sheets,
        cache: Optional[SimpleCache] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.sheets = sheets
        self.cache = cache if cache is not None else SimpleCache()
        self._now = now

    @contextmanager
    def _sheets_call(self, message: str):
        try:
            yield
        except SheetsAuthError:
            raise
        except SheetsError as e:
            logger.error(f"{message}: {e}")
            raise SheetsError(message) from e

    # --- students -------------------------------------------------------

    def _load_students(self, group: Group) -> List[Student]:
        key = SimpleCache.key("students", group.id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self._sheets_call("Failed to fetch students from Google Sheets"):
            rows = self.sheets.read_range(group.spreadsheet_id, STUDENTS_RANGE)

        students: List[Student] = []
        if len(rows) >= 2:
            columns = header_columns(rows[0])
            for row in rows[1:]:
                if not row:
                    continue
                student = parse_student_row(row, columns)
                if student is not None and student.group_id == group.students_group_id:
                    students.append(student)
        students.sort(key=student_sort_key)
        self.cache.set(key, students)
        logger.debug(f"Loaded {len(students)} students for group {group.id}")
        return students

    def get_students(self, group: Group, include_inactive: bool = False) -> List[Student]:
        students = self._load_students(group)
        if include_inactive:
            return list(students)
        return [
            s for s in students
            if s.status != "inactive" and (s.active or s.is_pending)
        ]

    def list_pending_students(self, groups: Iterable[Group]) -> List[Tuple[Group, Student]]:
        pending = []
        for group in groups:
            for student in self._load_students(group):
                if student.is_pending:
                    pending.append((group, student))
        return pending

    def add_student(self, group: Group, data: StudentCreate) -> Student:
        with self._sheets_call("Failed to add student to Google Sheets"):
            rows = self.sheets.read_range(group.spreadsheet_id, STUDENTS_RANGE)
            header = list(rows[0]) if rows else []
            if not header:
                header = list(STUDENT_COLUMNS)
                self.sheets.append_rows(group.spreadsheet_id, "Students!A1", [header])

            student = Student(
                id=f"STU-{uuid.uuid4().hex[:8].upper()}",
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                group_id=group.students_group_id,
                active=False,
                class_=data.class_ or None,
                phone=data.phone or None,
                mail=data.mail or None,
                status="pending",
                start_date=data.start_date.isoformat() if data.start_date else None,
            )
            values = {
                "id": student.id,
                "first_name": student.first_name,
                "last_name": student.last_name,
                "group_id": student.group_id,
                "active": "FALSE",
                "class": student.class_ or "",
                "phone": student.phone or "",
                "mail": student.mail or "",
                "status": "pending",
                "start_date": student.start_date or "",
                "end_date": "",
            }
            columns = header_columns(header)
            row = [""] * len(header)
            for name, index in columns.items():
                row[index] = values.get(name, "")
            last = column_letter(len(header) - 1)
            self.sheets.append_rows(group.spreadsheet_id, f"Students!A:{last}", [row])

        self.cache.clear(f"students:{group.id}")
        logger.info(f"Student {student.id} added to {group.id} as pending")
        return student

    def _update_student(self, group: Group, student_id: str, changes: Dict[str, str]) -> Optional[Student]:
        with self._sheets_call("Failed to fetch students from Google Sheets"):
            rows = self.sheets.read_range(group.spreadsheet_id, STUDENTS_RANGE)
        if not rows:
            return None
        header = rows[0]
        columns = header_columns(header)
        missing = [name for name in ["id", *changes] if name not in columns]
        if missing:
            raise SheetsError(
                f"Students sheet is missing column(s): {', '.join(missing)}",
                hint="Add the missing columns to the Students header row",
            )

        for offset, row in enumerate(rows[1:], start=2):
            if cell(row, columns["id"]) != student_id:
                continue
            if "group_id" in columns and cell(row, columns["group_id"]) != group.students_group_id:
                continue
            new_row = [("" if v is None else v) for v in row]
            new_row += [""] * (len(header) - len(new_row))
            for name, value in changes.items():
                new_row[columns[name]] = value
            break
        else:
            return None

        last = column_letter(len(new_row) - 1)
        with self._sheets_call("Failed to update student in Google Sheets"):
            self.sheets.update_row(group.spreadsheet_id, f"Students!A{offset}:{last}{offset}", new_row)

        self.cache.clear(f"students:{group.id}")
        return parse_student_row(new_row, columns)

    def approve_student(self, group: Group, student_id: str, start_date: Optional[str] = None) -> Optional[Student]:
        changes = {"status": "active", "active": "TRUE"}
        if start_date:
            changes["start_date"] = start_date
        return self._update_student(group, student_id, changes)

    def expel_student(self, group: Group, student_id: str, end_date: str) -> Optional[Student]:
        return self._update_student(
            group, student_id, {"status": "inactive", "active": "FALSE", "end_date": end_date}
        )

    # --- sessions -------------------------------------------------------

    def find_or_create_session(self, group: Group, day: str) -> str:
        key = SimpleCache.key("session", group.id, day)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self._sheets_call("Failed to manage session in Google Sheets"):
            rows = self.sheets.read_range(group.spreadsheet_id, SESSIONS_RANGE)
            for row in rows[1:]:
                if cell(row, 1) == group.id and cell(row, 2) == day:
                    session_id = cell(row, 0) or build_session_id(group.id, day)
                    break
            else:
                session_id = build_session_id(group.id, day)
                self.sheets.append_rows(group.spreadsheet_id, SESSIONS_APPEND_RANGE, [[session_id, group.id, day]])
                logger.info(f"Created session {session_id}")

        self.cache.set(key, session_id)
        return session_id

    # --- attendance -----------------------------------------------------

    def _read_attendance_rows(self, group: Group) -> List[List[str]]:
        with self._sheets_call("Failed to fetch attendance from Google Sheets"):
            rows = self.sheets.read_range(group.spreadsheet_id, ATTENDANCE_RANGE)
        return rows[1:]

    @staticmethod
    def _latest(rows: Iterable[Sequence], session_id: Optional[str] = None) -> Dict[Tuple[str, str], AttendanceItem]:
        """Keeps the row with the largest updated_at per (session, student).

        ISO-8601 strings of one format compare correctly as strings; on a
        tie the later row wins.
        """
        latest: Dict[Tuple[str, str], AttendanceItem] = {}
        for row in rows:
            row_session, student_id = cell(row, 0), cell(row, 1)
            if not row_session or not student_id:
                continue
            if session_id is not None and row_session != session_id:
                continue
            updated_at = cell(row, 4)
            key = (row_session, student_id)
            current = latest.get(key)
            if current is None or updated_at >= (current.updated_at or ""):
                latest[key] = AttendanceItem(
                    student_id=student_id,
                    status=normalize_status(cell(row, 2)),
                    updated_at=updated_at or None,
                    notes=cell(row, 3),
                )
        return latest

    @staticmethod
    def _roster(students: Iterable[Student], day: str) -> List[Tuple[Student, str]]:
        """Students enrolled on ``day`` with the status they default to."""
        roster = []
        for s in students:
            if s.is_pending:
                continue
            if s.start_date and s.start_date > day:
                continue
            if not s.active and not s.end_date:
                continue
            default = "withdrawn" if s.end_date and s.end_date < day else "absent"
            roster.append((s, default))
        return roster

    def _attendance_for(self, group: Group, day: str, session_id: str) -> AttendanceResponse:
        students = self._load_students(group)
        latest = self._latest(self._read_attendance_rows(group), session_id)
        items = []
        for student, default in self._roster(students, day):
            record = latest.get((session_id, student.id))
            if record is not None:
                items.append(record)
            else:
                items.append(AttendanceItem(student_id=student.id, status=default, updated_at=None, notes=""))
        return AttendanceResponse(session_id=session_id, items=items)

    def get_attendance(self, group: Group, day: str) -> AttendanceResponse:
        session_id = self.find_or_create_session(group, day)
        return self._attendance_for(group, day, session_id)

    def attendance_exists(self, group: Group, day: str) -> bool:
        return any(item.updated_at for item in self.get_attendance(group, day).items)

    def set_attendance(self, group: Group, day: str, items: Sequence[AttendanceItem]) -> AttendanceUpdateResponse:
        session_id = self.find_or_create_session(group, day)
        # Baseline read; nothing holds it stable until the append below.
        current = {
            student_id: item
            for (_, student_id), item in self._latest(self._read_attendance_rows(group), session_id).items()
        }

        conflicts: List[AttendanceItem] = []
        accepted: List[AttendanceItem] = []
        for item in items:
            server = current.get(item.student_id)
            if item.updated_at and server is not None and server.updated_at \
                    and item.updated_at != server.updated_at:
                conflicts.append(server.model_copy())
            else:
                accepted.append(item)

        timestamp = iso_timestamp(self._now())
        updated = [
            AttendanceItem(student_id=i.student_id, status=i.status, updated_at=timestamp, notes=i.notes or "")
            for i in accepted
        ]
        if updated:
            students = {s.id: s for s in self._load_students(group)}
            rows = []
            for item in updated:
                student = students.get(item.student_id)
                rows.append([
                    session_id,
                    item.student_id,
                    item.status,
                    item.notes,
                    timestamp,
                    student.full_name if student else "",
                    (student.class_ or "") if student else "",
                    (student.phone or "") if student else "",
                    group.name,
                ])
            with self._sheets_call("Failed to save attendance to Google Sheets"):
                self.sheets.append_rows(group.spreadsheet_id, ATTENDANCE_APPEND_RANGE, rows)

        if conflicts:
            logger.warning(
                f"Attendance conflicts for {session_id}: {[c.student_id for c in conflicts]}"
            )
        logger.info(f"Saved {len(updated)} attendance row(s) for {session_id}")
        return AttendanceUpdateResponse(session_id=session_id, updated=updated, conflicts=conflicts)

    def save_note(self, group: Group, day: str, student_id: str, notes: str) -> AttendanceItem:
        """Appends a row carrying the new note and the student's current status."""
        current = self.get_attendance(group, day)
        existing = next((i for i in current.items if i.student_id == student_id), None)
        status = existing.status if existing is not None else "absent"
        result = self.set_attendance(
            group, day, [AttendanceItem(student_id=student_id, status=status, notes=notes)]
        )
        return result.updated[0]

    # --- history / cache ------------------------------------------------

    def load_group_history(self, group: Group) -> GroupHistory:
        history = GroupHistory(group=group)
        with self._sheets_call("Failed to fetch sessions from Google Sheets"):
            session_rows = self.sheets.read_range(group.spreadsheet_id, SESSIONS_RANGE)
        for row in session_rows[1:]:
            session_id, row_group, day = cell(row, 0), cell(row, 1), cell(row, 2)
            if session_id and row_group == group.id and day:
                history.session_dates.setdefault(session_id, day)

        attendance_rows = self._read_attendance_rows(group)
        history.records = self._latest(attendance_rows)
        for row in attendance_rows:
            if cell(row, 1) and cell(row, 5):
                history.names[cell(row, 1)] = cell(row, 5)
        history.students = {s.id: s for s in self._load_students(group)}
        return history

    def clear_cache(self, pattern: Optional[str] = None) -> int:
        return self.cache.clear(pattern)
