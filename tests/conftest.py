import re
from datetime import datetime, timedelta, timezone
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

from studio_attendance.core.attendance_service import AttendanceService, STUDENT_COLUMNS
from studio_attendance.core.cache import SimpleCache
from studio_attendance.core.config import Settings
from studio_attendance.core.exceptions import SheetsError
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.group import GroupConfig
from studio_attendance.main import create_app
from studio_attendance.schemas.group import Group

PASSWORD = "secret123"

_ROW_IN_RANGE = re.compile(r"![A-Z]+(\d+):[A-Z]+\d+$")

ATTENDANCE_HEADER = ["session_id", "student_id", "status", "note", "updated_at", "student_name", "class", "phone", "group"]


class FakeSheets:
    """In-memory stand-in for GoogleSheetsClient, keyed by spreadsheet and worksheet."""

    def __init__(self):
        self.books: Dict[str, Dict[str, List[List[str]]]] = {}
        self.reads = 0
        self.fail = False

    def sheet(self, spreadsheet_id: str, name: str) -> List[List[str]]:
        return self.books.setdefault(spreadsheet_id, {}).setdefault(name, [])

    def _check(self):
        if self.fail:
            raise SheetsError("Google API returned 403")

    def read_range(self, spreadsheet_id, a1_range):
        self._check()
        self.reads += 1
        name = a1_range.split("!")[0]
        return [list(row) for row in self.sheet(spreadsheet_id, name)]

    def append_rows(self, spreadsheet_id, a1_range, rows):
        self._check()
        name = a1_range.split("!")[0]
        self.sheet(spreadsheet_id, name).extend([["" if v is None else str(v) for v in row] for row in rows])

    def update_row(self, spreadsheet_id, a1_range, row):
        self._check()
        name = a1_range.split("!")[0]
        number = int(_ROW_IN_RANGE.search(a1_range).group(1))
        self.sheet(spreadsheet_id, name)[number - 1] = [str(v) for v in row]


class TickingClock:
    """Each call is one second after the previous one."""

    def __init__(self, start=datetime(2025, 3, 1, 17, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        self.current += timedelta(seconds=1)
        return self.current


def student_row(id, first, last, group, active="TRUE", status="active", start="", end="", cls="", phone=""):
    return [id, first, last, group, active, cls, phone, "", status, start, end]


def studio_sheets() -> FakeSheets:
    sheets = FakeSheets()
    tti = sheets.sheet("sheet-tti", "Students")
    tti.append(list(STUDENT_COLUMNS))
    tti.extend([
        student_row("STU-1", "Anna", "Nowak", "TTI", cls="3A", phone="600100200"),
        student_row("STU-2", "Łukasz", "Adamski", "TTI"),
        student_row("STU-3", "Zofia", "Ćwik", "TTI", active="FALSE", status="pending"),
        student_row("STU-4", "Ewa", "Kowalska", "TTI", active="FALSE", status="inactive", end="2025-02-15"),
        student_row("STU-5", "", "Bezimienny", "TTI"),
        student_row("STU-9", "Olga", "Zając", "OTHER"),
    ])
    sheets.sheet("sheet-tti", "Sessions").append(["session_id", "group_id", "date"])
    sheets.sheet("sheet-tti", "Attendance").append(list(ATTENDANCE_HEADER))

    hip = sheets.sheet("sheet-hip", "Students")
    hip.append(list(STUDENT_COLUMNS))
    hip.append(student_row("STU-10", "Jan", "Wiśniewski", "HIP"))
    sheets.sheet("sheet-hip", "Sessions").append(["session_id", "group_id", "date"])
    sheets.sheet("sheet-hip", "Attendance").append(list(ATTENDANCE_HEADER))
    return sheets


@pytest.fixture
def sheets():
    return studio_sheets()


@pytest.fixture
def tti():
    return Group(id="TTI", name="Taniec Towarzyski I", spreadsheet_id="sheet-tti")


@pytest.fixture
def hip():
    return Group(id="HIP", name="Hip-Hop", spreadsheet_id="sheet-hip")


@pytest.fixture
def service(sheets):
    return AttendanceService(sheets, SimpleCache(600), now=TickingClock())


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL="sqlite://",
        GOOGLE_SHEETS_SPREADSHEET_ID="sheet-default",
    )


@pytest.fixture
def app(settings, sheets):
    app = create_app(settings, sheets_client=sheets)
    app.state.attendance_service._now = TickingClock()
    return app


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded(db):
    db.add_all([
        GroupConfig(group_id="TTI", name="Taniec Towarzyski I", spreadsheet_id="sheet-tti", active=True),
        GroupConfig(group_id="HIP", name="Hip-Hop", spreadsheet_id="sheet-hip", active=True),
    ])
    db.commit()
    users = {
        "owner": crud_user.create_user(db, username="owner", password=PASSWORD, first_name="Olga",
                                       last_name="Owner", email="owner@studio.test", role="owner",
                                       status="active"),
        "reception": crud_user.create_user(db, username="desk", password=PASSWORD, first_name="Rita",
                                           last_name="Recepcja", role="reception", status="active"),
        "instructor": crud_user.create_user(db, username="marta", password=PASSWORD, first_name="Marta",
                                            last_name="Tancerz", email="marta@studio.test",
                                            role="instructor", status="active", group_ids=["TTI"]),
        "pending": crud_user.create_user(db, username="newbie", password=PASSWORD, first_name="Nowy",
                                         last_name="Instruktor"),
    }
    return users


def login(app, username, password=PASSWORD) -> TestClient:
    client = TestClient(app)
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def owner_client(app, seeded):
    return login(app, "owner")


@pytest.fixture
def instructor_client(app, seeded):
    return login(app, "marta")
