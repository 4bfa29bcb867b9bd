"""
Tests for work centers and their utilization.
"""
import pytest

from gearguard.models import RequestStage, WorkCenter
from gearguard.services.work_center_service import WorkCenterService, utilization_percentage


@pytest.fixture
def make_work_center(db):
    def _make_work_center(name="Assembly Line", code="WC-01", category="Production", **kwargs):
        work_center = WorkCenter(name=name, code=code, category=category, **kwargs)
        db.add(work_center)
        db.commit()
        db.refresh(work_center)
        return work_center
    return _make_work_center


@pytest.mark.unit
@pytest.mark.parametrize("open_requests,capacity,expected", [
    (0, 10, 0),
    (3, 10, 30),
    (1, 3, 33),
    (25, 10, 100),
    (4, 0, 0),
])
def test_utilization_percentage(open_requests, capacity, expected):
    assert utilization_percentage(open_requests, capacity) == expected


@pytest.mark.integration
def test_create_uses_camel_case(client, auth_headers, make_team):
    team = make_team()

    response = client.post("/api/work-centers/", json={
        "name": "Paint Shop",
        "code": "WC-PAINT",
        "category": "Production",
        "location": "Building B",
        "assignedTeamId": team.id,
        "capacity": 8,
    }, headers=auth_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["assignedTeamId"] == team.id
    assert data["assignedTeamName"] == team.name
    assert data["status"] == "active"
    assert data["utilization"] == 0
    assert "createdAt" in data


@pytest.mark.integration
def test_create_duplicate_code(client, auth_headers, make_work_center):
    make_work_center(code="WC-01")
    response = client.post("/api/work-centers/", json={
        "name": "Other",
        "code": "WC-01",
        "category": "Production",
    }, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Work center with code 'WC-01' already exists"


@pytest.mark.integration
def test_create_with_missing_department(client, auth_headers):
    response = client.post("/api/work-centers/", json={
        "name": "Nowhere",
        "code": "WC-X",
        "category": "Production",
        "departmentId": 999,
    }, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.integration
def test_list_with_utilization(client, auth_headers, make_work_center, make_equipment, make_request):
    make_work_center(code="WC-A", location="Building A", capacity=4)
    make_work_center(code="WC-B", location="Building B", capacity=10)

    press = make_equipment(location="Building A - Line 1")
    lathe = make_equipment(location="Building A - Line 2")
    make_request(press)
    make_request(lathe, stage=RequestStage.IN_PROGRESS)
    make_request(lathe, stage=RequestStage.REPAIRED)

    plain = client.get("/api/work-centers/", headers=auth_headers).json()
    assert plain["meta"] == {"count": 2}
    assert all(wc["utilization"] is None for wc in plain["data"])

    body = client.get("/api/work-centers/", params={"includeUtilization": "true"}, headers=auth_headers).json()
    by_code = {wc["code"]: wc for wc in body["data"]}
    assert by_code["WC-A"]["openRequests"] == 2
    assert by_code["WC-A"]["utilization"] == 50
    assert by_code["WC-B"]["utilization"] == 0


@pytest.mark.integration
def test_update_work_center(client, auth_headers, make_work_center):
    work_center = make_work_center(capacity=10)
    make_work_center(code="WC-02")

    response = client.put(f"/api/work-centers/{work_center.id}", json={
        "status": "maintenance",
        "capacity": 20,
    }, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "maintenance"
    assert data["capacity"] == 20

    clash = client.put(f"/api/work-centers/{work_center.id}", json={"code": "WC-02"}, headers=auth_headers)
    assert clash.status_code == 409

    null_code = client.put(f"/api/work-centers/{work_center.id}", json={"code": None}, headers=auth_headers)
    assert null_code.status_code == 400


@pytest.mark.integration
def test_update_code_race_is_a_conflict(client, auth_headers, monkeypatch, make_work_center):
    work_center = make_work_center(code="WC-01")
    make_work_center(code="WC-02")
    # Another writer takes the code between the check and the UPDATE
    monkeypatch.setattr(WorkCenterService, "_check_code_available", staticmethod(lambda *args, **kwargs: None))

    response = client.put(f"/api/work-centers/{work_center.id}", json={"code": "WC-02"}, headers=auth_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Work center with code 'WC-02' already exists"


@pytest.mark.integration
def test_location_wildcards_match_literally(client, auth_headers, make_work_center, make_equipment, make_request):
    work_center = make_work_center(location="Hall_1")
    make_request(make_equipment(location="Hall_1 - Bay 3"))
    make_request(make_equipment(location="HallX1 - Bay 4"))
    make_request(make_equipment(location="Hall 100%"))

    data = client.get(f"/api/work-centers/{work_center.id}", headers=auth_headers).json()["data"]
    assert data["openRequests"] == 1


@pytest.mark.integration
def test_get_and_delete_work_center(client, auth_headers, make_work_center):
    work_center = make_work_center()

    assert client.get(f"/api/work-centers/{work_center.id}", headers=auth_headers).status_code == 200
    assert client.delete(f"/api/work-centers/{work_center.id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/work-centers/{work_center.id}", headers=auth_headers).status_code == 404
