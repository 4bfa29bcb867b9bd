"""
Tests for dashboard statistics, feeds and health scoring.
"""
import pytest
from datetime import date, datetime, timedelta
from fastapi.testclient import TestClient

from gearguard.main import create_app
from gearguard.models import RequestStage, RequestType, UserRole
from gearguard.services.dashboard_service import (
    calculate_trend,
    health_percentage,
    stat_with_trend,
    technician_utilization
)


# ==================== UNIT ====================

@pytest.mark.unit
@pytest.mark.parametrize("current,previous,expected", [
    (5, 0, 100),
    (0, 0, 0),
    (15, 10, 50),
    (5, 10, -50),
    (10, 10, 0),
    (1, 3, -67),
])
def test_calculate_trend(current, previous, expected):
    assert calculate_trend(current, previous) == expected


@pytest.mark.unit
def test_stat_with_trend_direction():
    assert stat_with_trend(3, 0) == {"value": 3, "trend": 100, "trend_direction": "up"}
    assert stat_with_trend(1, 2)["trend_direction"] == "down"
    assert stat_with_trend(2, 2)["trend_direction"] == "neutral"


@pytest.mark.unit
@pytest.mark.parametrize("days,open_requests,overdue,expected", [
    (0, 0, 0, 100),
    (30, 0, 0, 90),
    (400, 0, 0, 70),       # age penalty capped at 30
    (0, 5, 0, 80),         # open penalty capped at 20
    (0, 0, 1, 85),
    (90, 2, 2, 20),
    (1000, 10, 10, 20),    # every penalty capped
])
def test_health_percentage(days, open_requests, overdue, expected):
    assert health_percentage(days, open_requests, overdue) == expected


@pytest.mark.unit
def test_technician_utilization_is_capped():
    assert technician_utilization(0) == 0
    assert technician_utilization(2) == 40
    assert technician_utilization(9) == 100


# ==================== INTEGRATION ====================

@pytest.fixture
def activity(make_equipment, make_request):
    """Equipment and requests covering today's counters"""
    equipment = make_equipment()
    now = datetime.now()
    make_request(equipment, subject="Fresh")
    make_request(equipment, subject="Fixed", stage=RequestStage.REPAIRED, completed_at=now)
    make_request(
        equipment,
        subject="Late",
        created_at=now - timedelta(days=3),
        deadline=date.today() - timedelta(days=2)
    )
    make_request(equipment, subject="Busy", stage=RequestStage.IN_PROGRESS, created_at=now - timedelta(days=3))
    return equipment


@pytest.mark.integration
def test_stats(client, auth_headers, activity):
    response = client.get("/api/dashboard/stats", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["totalEquipment"] == {"value": 1, "trend": 100, "trendDirection": "up"}
    assert data["activeRequests"] == {"value": 3, "trend": 50, "trendDirection": "up"}
    assert data["completedToday"] == {"value": 1, "trend": 100, "trendDirection": "up"}
    assert data["overdue"] == {"value": 1, "trend": 0, "trendDirection": "neutral"}


@pytest.mark.integration
def test_stats_require_auth(client):
    assert client.get("/api/dashboard/stats").status_code == 401


@pytest.mark.integration
def test_recent_requests(client, auth_headers, activity):
    body = client.get("/api/dashboard/recent-requests", params={"limit": 2}, headers=auth_headers).json()
    assert body["meta"] == {"count": 2, "limit": 2}
    assert [r["subject"] for r in body["data"]] == ["Fixed", "Fresh"]
    assert body["data"][0]["equipmentCode"] == activity.equipment_code


@pytest.mark.integration
def test_upcoming_maintenance(client, auth_headers, make_equipment, make_request):
    equipment = make_equipment()
    today = date.today()
    make_request(equipment, subject="Next week", request_type=RequestType.PREVENTIVE,
                 scheduled_date=today + timedelta(days=7))
    make_request(equipment, subject="Tomorrow", request_type=RequestType.PREVENTIVE,
                 scheduled_date=today + timedelta(days=1))
    make_request(equipment, subject="Past", request_type=RequestType.PREVENTIVE,
                 scheduled_date=today - timedelta(days=1))
    make_request(equipment, subject="Corrective", scheduled_date=today + timedelta(days=2))
    make_request(equipment, subject="Done", request_type=RequestType.PREVENTIVE,
                 stage=RequestStage.REPAIRED, scheduled_date=today + timedelta(days=3))

    data = client.get("/api/dashboard/upcoming-maintenance", headers=auth_headers).json()["data"]
    assert [r["subject"] for r in data] == ["Tomorrow", "Next week"]


@pytest.mark.integration
def test_critical_equipment(client, auth_headers, make_equipment, make_request):
    today = date.today()
    neglected = make_equipment(name="Old Boiler", purchase_date=today - timedelta(days=365))
    make_equipment(name="New Pump", purchase_date=today)
    make_equipment(name="Scrapped Boiler", purchase_date=today - timedelta(days=365), status="scrapped")

    for _ in range(2):
        make_request(neglected, deadline=today - timedelta(days=5))

    body = client.get("/api/dashboard/critical-equipment", headers=auth_headers).json()
    assert body["meta"] == {"count": 1}
    item = body["data"][0]
    assert item["name"] == "Old Boiler"
    assert item["healthPercentage"] == 20
    assert item["daysSinceMaintenance"] == 365
    assert item["openRequests"] == 2
    assert item["overdueRequests"] == 2


@pytest.mark.integration
def test_technician_load(client, auth_headers, make_user, make_equipment, make_request):
    busy = make_user(email="busy@gearguard.io", name="Busy Bee")
    idle = make_user(email="idle@gearguard.io", name="Idle Ida", role=UserRole.MANAGER)
    make_user(email="op@gearguard.io", name="Operator", role=UserRole.OPERATOR)
    equipment = make_equipment()

    for _ in range(3):
        make_request(equipment, assigned_technician_id=busy.id)
    make_request(equipment, assigned_technician_id=busy.id, deadline=date.today() - timedelta(days=1))
    make_request(equipment, assigned_technician_id=idle.id, stage=RequestStage.REPAIRED, completed_at=datetime.now())

    data = client.get("/api/dashboard/technician-load", headers=auth_headers).json()["data"]

    assert [t["name"] for t in data] == ["Busy Bee", "Idle Ida"]
    assert data[0]["activeRequests"] == 4
    assert data[0]["overdueRequests"] == 1
    assert data[0]["utilization"] == 80
    assert data[1]["completedThisMonth"] == 1
    assert data[1]["utilization"] == 0


@pytest.mark.integration
def test_open_requests_summary(client, auth_headers, activity):
    data = client.get("/api/dashboard/open-requests", headers=auth_headers).json()["data"]
    assert data == {"pending": 2, "inProgress": 1, "overdue": 1, "total": 3}


@pytest.mark.integration
def test_development_mirror_skips_auth(client, activity):
    assert client.get("/api/dashboard-test/stats").status_code == 200
    assert client.get("/api/dashboard-test/recent-requests").status_code == 200
    assert client.get("/api/dashboard-test/upcoming-maintenance").status_code == 200
    assert client.get("/api/dashboard-test/critical-equipment").status_code == 404


@pytest.mark.integration
def test_mirror_absent_outside_development(settings):
    production = settings.model_copy(update={"ENVIRONMENT": "production"})
    with TestClient(create_app(production)) as prod_client:
        assert prod_client.get("/api/dashboard-test/stats").status_code == 404
