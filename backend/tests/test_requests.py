"""
Tests for maintenance request endpoints: creation, Kanban, calendar and
stage workflow.
"""
import pytest
from datetime import date, datetime, timedelta

from gearguard.models import MaintenanceRequest, RequestStage
from gearguard.schemas import pad_time


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [("9:30", "09:30"), ("09:30", "09:30"), ("23:59", "23:59"), (None, None)])
def test_pad_time(value, expected):
    assert pad_time(value) == expected


@pytest.fixture
def equipment(make_equipment, make_team, make_user):
    technician = make_user(email="fixer@gearguard.io", name="Fixer")
    team = make_team(name="Line Crew")
    return make_equipment(assigned_team_id=team.id, assigned_technician_id=technician.id)


@pytest.mark.integration
def test_create_copies_equipment_defaults(client, auth_headers, admin_user, equipment):
    response = client.post("/api/requests/", json={
        "subject": "  Strange noise  ",
        "request_type": "corrective",
        "equipment_id": equipment.id,
    }, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["subject"] == "Strange noise"
    assert data["stage"] == "new"
    assert data["priority"] == "medium"
    assert data["equipment_category_id"] == equipment.category_id
    assert data["maintenance_team_id"] == equipment.assigned_team_id
    assert data["assigned_technician_id"] == equipment.assigned_technician_id
    assert data["technician_name"] == "Fixer"
    assert data["requested_by_id"] == admin_user.id
    assert data["request_number"] == f"REQ-{datetime.now().year}-{data['id']:03d}"


@pytest.mark.integration
def test_request_numbers_are_unique_and_follow_ids(client, auth_headers, equipment):
    numbers = []
    for i in range(3):
        response = client.post("/api/requests/", json={
            "subject": f"Check {i}",
            "request_type": "preventive",
            "equipment_id": equipment.id,
        }, headers=auth_headers)
        numbers.append(response.json()["data"]["request_number"])

    assert len(set(numbers)) == 3
    assert [int(n.rsplit("-", 1)[1]) for n in numbers] == sorted(int(n.rsplit("-", 1)[1]) for n in numbers)


@pytest.mark.integration
def test_create_for_missing_equipment(client, auth_headers):
    response = client.post("/api/requests/", json={
        "subject": "Nothing here",
        "request_type": "corrective",
        "equipment_id": 404,
    }, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.integration
@pytest.mark.parametrize("scheduled_time,expected", [("9:30", 201), ("23:59", 201), ("24:00", 400), ("9.30", 400)])
def test_scheduled_time_format(client, auth_headers, equipment, scheduled_time, expected):
    response = client.post("/api/requests/", json={
        "subject": "Timed",
        "request_type": "preventive",
        "equipment_id": equipment.id,
        "scheduled_date": "2025-06-01",
        "scheduled_time": scheduled_time,
    }, headers=auth_headers)
    assert response.status_code == expected


@pytest.mark.integration
def test_scheduled_time_is_zero_padded(client, auth_headers, equipment):
    for subject, scheduled_time in (("Late", "10:00"), ("Early", "9:30")):
        client.post("/api/requests/", json={
            "subject": subject,
            "request_type": "preventive",
            "equipment_id": equipment.id,
            "scheduled_date": "2030-05-01",
            "scheduled_time": scheduled_time,
        }, headers=auth_headers)

    events = client.get("/api/requests/calendar", params={"year": 2030, "month": 5}, headers=auth_headers).json()["data"]

    assert [e["subject"] for e in events] == ["Early", "Late"]
    assert events[0]["scheduledTime"] == "09:30"


@pytest.mark.integration
def test_update_pads_scheduled_time(client, auth_headers, equipment, make_request):
    request = make_request(equipment)
    response = client.put(f"/api/requests/{request.id}", json={"scheduled_time": "7:05"}, headers=auth_headers)
    assert response.json()["data"]["scheduled_time"] == "07:05"


@pytest.mark.integration
def test_kanban_groups_by_stage(client, auth_headers, equipment, make_request):
    base = datetime.now() - timedelta(days=3)
    make_request(equipment, subject="Old new", created_at=base)
    make_request(equipment, subject="Fresh new", created_at=base + timedelta(days=1))
    make_request(equipment, subject="Working", stage=RequestStage.IN_PROGRESS)
    make_request(equipment, subject="Done", stage=RequestStage.REPAIRED)

    board = client.get("/api/requests/kanban", headers=auth_headers).json()["data"]

    assert [r["subject"] for r in board["new"]] == ["Fresh new", "Old new"]
    assert [r["subject"] for r in board["in_progress"]] == ["Working"]
    assert [r["subject"] for r in board["repaired"]] == ["Done"]
    assert board["scrap"] == []
    assert board["new"][0]["equipment_code"] == equipment.equipment_code


@pytest.mark.integration
def test_calendar_month_filter_and_defaults(client, auth_headers, equipment, make_request, db):
    make_request(equipment, subject="March A", scheduled_date=date(2025, 3, 20), scheduled_time="10:00")
    make_request(equipment, subject="March B", scheduled_date=date(2025, 3, 5))
    make_request(equipment, subject="April", scheduled_date=date(2025, 4, 1))
    make_request(equipment, subject="Unscheduled")

    events = client.get("/api/requests/calendar", params={"year": 2025, "month": 3}, headers=auth_headers).json()["data"]

    assert [e["subject"] for e in events] == ["March B", "March A"]
    first = events[0]
    assert first["scheduledDate"] == "2025-03-05"
    assert first["scheduledTime"] == "00:00"
    assert first["technician"] == "Unassigned"
    assert first["equipment"] == equipment.name
    assert first["id"].startswith("REQ-")
    assert isinstance(first["requestId"], int)

    everything = client.get("/api/requests/calendar", headers=auth_headers).json()["data"]
    assert len(everything) == 3


@pytest.mark.integration
@pytest.mark.parametrize("params", [{"year": 2019, "month": 1}, {"year": 2025, "month": 13}])
def test_calendar_rejects_out_of_range(client, auth_headers, params):
    assert client.get("/api/requests/calendar", params=params, headers=auth_headers).status_code == 400


@pytest.mark.integration
def test_stage_moves_record_history(client, auth_headers, admin_user, equipment, make_request):
    request = make_request(equipment)

    started = client.patch(f"/api/requests/{request.id}/stage", json={"stage": "in_progress"}, headers=auth_headers)
    assert started.status_code == 200
    assert started.json()["data"]["started_at"] is not None

    repaired = client.patch(
        f"/api/requests/{request.id}/stage",
        json={"stage": "repaired", "notes": "Replaced bearing"},
        headers=auth_headers,
    )
    data = repaired.json()["data"]
    assert data["stage"] == "repaired"
    assert data["completed_at"] is not None
    assert data["duration_hours"] is not None

    history = client.get(f"/api/requests/{request.id}/history", headers=auth_headers).json()["data"]
    assert [(h["from_stage"], h["to_stage"]) for h in history] == [("new", "in_progress"), ("in_progress", "repaired")]
    assert history[1]["notes"] == "Replaced bearing"
    assert history[1]["changed_by_id"] == admin_user.id
    assert history[1]["changed_by_name"] == admin_user.name


@pytest.mark.integration
def test_invalid_stage_move_is_rejected(client, auth_headers, db, equipment, make_request):
    request = make_request(equipment)

    response = client.patch(f"/api/requests/{request.id}/stage", json={"stage": "repaired"}, headers=auth_headers)
    assert response.status_code == 409

    db.expire_all()
    stored = db.get(MaintenanceRequest, request.id)
    assert stored.stage == RequestStage.NEW
    assert stored.history == []


@pytest.mark.integration
def test_stage_of_missing_request(client, auth_headers):
    response = client.patch("/api/requests/999/stage", json={"stage": "in_progress"}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.integration
def test_unknown_stage_value(client, auth_headers, equipment, make_request):
    request = make_request(equipment)
    response = client.patch(f"/api/requests/{request.id}/stage", json={"stage": "done"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.integration
def test_update_request_fields(client, auth_headers, equipment, make_request):
    request = make_request(equipment)

    response = client.put(f"/api/requests/{request.id}", json={
        "priority": "urgent",
        "technician_notes": "Needs spare part",
        "deadline": "2030-01-31",
    }, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["priority"] == "urgent"
    assert data["technician_notes"] == "Needs spare part"
    assert data["deadline"] == "2030-01-31"
    assert data["stage"] == "new"


@pytest.mark.integration
def test_update_with_no_fields(client, auth_headers, equipment, make_request):
    request = make_request(equipment)
    response = client.put(f"/api/requests/{request.id}", json={}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "No fields to update"


@pytest.mark.integration
@pytest.mark.parametrize("field", ["subject", "priority"])
def test_update_rejects_null_required_field(client, auth_headers, equipment, make_request, field):
    request = make_request(equipment)
    response = client.put(f"/api/requests/{request.id}", json={field: None}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json() == {"status": "error", "message": f"{field} cannot be null"}


@pytest.mark.integration
def test_update_clears_optional_field(client, auth_headers, equipment, make_request):
    request = make_request(equipment, deadline=date(2030, 1, 31))
    response = client.put(f"/api/requests/{request.id}", json={"deadline": None}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["deadline"] is None


@pytest.mark.integration
def test_update_ignores_stage_field(client, auth_headers, equipment, make_request):
    request = make_request(equipment)
    response = client.put(f"/api/requests/{request.id}", json={"stage": "repaired"}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.integration
def test_get_and_delete_request(client, auth_headers, equipment, make_request):
    request = make_request(equipment)

    response = client.get(f"/api/requests/{request.id}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["equipment_name"] == equipment.name

    assert client.delete(f"/api/requests/{request.id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/requests/{request.id}", headers=auth_headers).status_code == 404
    assert client.get(f"/api/requests/{request.id}/history", headers=auth_headers).status_code == 404
