"""
Dashboard router - overview statistics and feeds.

``router`` is mounted under /api/dashboard behind authentication.
``test_router`` exposes the same stats and feeds without authentication and
is only mounted in development.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from gearguard.database import get_db
from gearguard.schemas import (
    ApiResponse,
    CriticalEquipment,
    DashboardStats,
    OpenRequestsSummary,
    RecentRequest,
    TechnicianLoad,
    UpcomingMaintenance,
    success
)
from gearguard.services.dashboard_service import DashboardService

router = APIRouter()
test_router = APIRouter()


def get_stats(db: Session = Depends(get_db)):
    """
    Headline counters with day-over-day trends.

    **Counters:**
    - totalEquipment: equipment not scrapped
    - activeRequests: requests in new or in_progress
    - completedToday: requests repaired today
    - overdue: open requests past their deadline
    """
    return success(DashboardService.get_stats(db))


def get_recent_requests(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Newest maintenance requests"""
    requests = DashboardService.get_recent_requests(db, limit)
    return success(requests, meta={"count": len(requests), "limit": limit})


def get_upcoming_maintenance(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db)
):
    """Open preventive maintenance scheduled from today on"""
    maintenance = DashboardService.get_upcoming_maintenance(db, limit)
    return success(maintenance, meta={"count": len(maintenance), "limit": limit})


def get_critical_equipment(db: Session = Depends(get_db)):
    """Equipment whose health score is below 30%"""
    equipment = DashboardService.get_critical_equipment(db)
    return success(equipment, meta={"count": len(equipment)})


def get_technician_load(db: Session = Depends(get_db)):
    """Open workload per technician"""
    load = DashboardService.get_technician_load(db)
    return success(load, meta={"count": len(load)})


def get_open_requests(db: Session = Depends(get_db)):
    return success(DashboardService.get_open_requests_summary(db))


for _router in (router, test_router):
    _router.add_api_route("/stats", get_stats, methods=["GET"], response_model=ApiResponse[DashboardStats])
    _router.add_api_route(
        "/recent-requests", get_recent_requests, methods=["GET"],
        response_model=ApiResponse[List[RecentRequest]]
    )
    _router.add_api_route(
        "/upcoming-maintenance", get_upcoming_maintenance, methods=["GET"],
        response_model=ApiResponse[List[UpcomingMaintenance]]
    )

router.add_api_route(
    "/critical-equipment", get_critical_equipment, methods=["GET"],
    response_model=ApiResponse[List[CriticalEquipment]]
)
router.add_api_route(
    "/technician-load", get_technician_load, methods=["GET"],
    response_model=ApiResponse[List[TechnicianLoad]]
)
router.add_api_route(
    "/open-requests", get_open_requests, methods=["GET"],
    response_model=ApiResponse[OpenRequestsSummary]
)
