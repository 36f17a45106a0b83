import pytest
from fastapi.testclient import TestClient

from studio_attendance.crud import user as crud_user
from tests.conftest import PASSWORD


@pytest.fixture
def hip_instructor(db, seeded):
    return crud_user.create_user(db, username="kuba", password=PASSWORD, first_name="Kuba",
                                 last_name="Breaker", role="instructor", status="active",
                                 group_ids=["HIP", "TTI"])


def test_instructor_list_requires_login(app, seeded):
    assert TestClient(app).get("/api/instructors").status_code == 401


def test_lists_active_instructors_only(owner_client, hip_instructor):
    response = owner_client.get("/api/instructors")

    assert response.status_code == 200
    instructors = response.json()["instructors"]
    # pending "newbie" and the owner are not listed
    assert [i["lastName"] for i in instructors] == ["Breaker", "Tancerz"]
    assert sorted(instructors[0]["groupIds"]) == ["HIP", "TTI"]
    assert "permissions" not in instructors[0]


def test_group_instructors(owner_client, hip_instructor):
    tti = owner_client.get("/api/instructors/group/TTI").json()["instructors"]
    hip = owner_client.get("/api/instructors/group/HIP").json()["instructors"]

    assert {i["firstName"] for i in tti} == {"Marta", "Kuba"}
    assert [i["firstName"] for i in hip] == ["Kuba"]


def test_group_instructors_respect_group_access(instructor_client, hip_instructor):
    assert instructor_client.get("/api/instructors/group/TTI").status_code == 200

    denied = instructor_client.get("/api/instructors/group/HIP")
    assert denied.status_code == 403
    assert denied.json()["code"] == "GROUP_ACCESS_DENIED"


def test_unknown_group_is_404(owner_client):
    response = owner_client.get("/api/instructors/group/SALSA")

    assert response.status_code == 404
    assert response.json()["code"] == "GROUP_NOT_FOUND"


def test_instructor_group_assignments_are_scoped_to_visible_groups(owner_client, instructor_client,
                                                                   seeded, hip_instructor):
    everything = owner_client.get("/api/instructor-groups").json()["instructorGroups"]
    assert {(a["instructorId"], a["groupId"]) for a in everything} == {
        (seeded["instructor"].id, "TTI"),
        (hip_instructor.id, "HIP"),
        (hip_instructor.id, "TTI"),
    }

    mine = instructor_client.get("/api/instructor-groups").json()["instructorGroups"]
    assert {a["groupId"] for a in mine} == {"TTI"}
