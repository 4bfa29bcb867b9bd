"""
Dashboard Service - Business logic for the overview page.
Provides day-over-day stats with trends, request feeds, equipment health
and technician workload.

Date boundaries are computed here and passed as parameters, so the queries
run unchanged on MySQL and SQLite.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from datetime import date, datetime, time, timedelta
from typing import Optional, Dict, List, Any, Tuple
import logging

from gearguard.models import (
    Equipment, EquipmentStatus, LifecycleStatus, MaintenanceRequest,
    RequestStage, RequestType, User, UserRole, OPEN_STAGES, TERMINAL_STAGES
)

logger = logging.getLogger(__name__)


def calculate_trend(current: int, previous: int) -> int:
    """Percentage change between two values"""
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


def trend_direction(trend: int) -> str:
    if trend > 0:
        return "up"
    if trend < 0:
        return "down"
    return "neutral"


def stat_with_trend(current: int, previous: int) -> Dict[str, Any]:
    trend = calculate_trend(current, previous)
    return {
        "value": current,
        "trend": trend,
        "trend_direction": trend_direction(trend),
    }


def health_percentage(days_since_maintenance: int, open_requests: int, overdue_requests: int) -> int:
    """
    Equipment health score in [0, 100].

    Penalties:
    - age: one point per 3 days without maintenance, at most 30
    - open requests: 10 points each, at most 20
    - overdue requests: 15 points each, at most 30
    """
    score = (
        100
        - min(30, days_since_maintenance / 3)
        - min(20, open_requests * 10)
        - min(30, overdue_requests * 15)
    )
    return max(0, round(score))


def technician_utilization(active_requests: int) -> int:
    return min(100, round(active_requests / DashboardService.TECHNICIAN_CAPACITY * 100))


class DashboardService:
    """Service class for dashboard aggregates"""

    CRITICAL_HEALTH_THRESHOLD = 30
    TECHNICIAN_CAPACITY = 5  # Active requests that count as a full workload

    @staticmethod
    def _day_bounds(today: Optional[date] = None) -> Tuple[date, datetime, datetime, datetime]:
        """today, start of yesterday, start of today, start of tomorrow"""
        today = today or date.today()
        today_start = datetime.combine(today, time.min)
        return (
            today,
            today_start - timedelta(days=1),
            today_start,
            today_start + timedelta(days=1),
        )

    @staticmethod
    def _count(db: Session, model, *criteria) -> int:
        return db.query(func.count(model.id)).filter(*criteria).scalar() or 0

    # ==================== STATS ====================

    @staticmethod
    def get_stats(db: Session, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Headline counters for today compared with yesterday.
        """
        today, yesterday_start, today_start, tomorrow_start = DashboardService._day_bounds(today)
        yesterday = today - timedelta(days=1)
        count = DashboardService._count

        not_scrapped = Equipment.status != EquipmentStatus.SCRAPPED
        is_open = MaintenanceRequest.stage.in_(OPEN_STAGES)
        not_terminal = MaintenanceRequest.stage.notin_(TERMINAL_STAGES)
        repaired = MaintenanceRequest.stage == RequestStage.REPAIRED

        total_equipment = (
            count(db, Equipment, not_scrapped),
            count(db, Equipment, not_scrapped, Equipment.created_at < today_start),
        )

        active_requests = (
            count(db, MaintenanceRequest, is_open),
            count(
                db, MaintenanceRequest, is_open,
                MaintenanceRequest.created_at < today_start,
                or_(
                    MaintenanceRequest.completed_at.is_(None),
                    MaintenanceRequest.completed_at >= today_start
                )
            ),
        )

        completed = (
            count(
                db, MaintenanceRequest, repaired,
                MaintenanceRequest.completed_at >= today_start,
                MaintenanceRequest.completed_at < tomorrow_start
            ),
            count(
                db, MaintenanceRequest, repaired,
                MaintenanceRequest.completed_at >= yesterday_start,
                MaintenanceRequest.completed_at < today_start
            ),
        )

        overdue = (
            count(db, MaintenanceRequest, not_terminal, MaintenanceRequest.deadline < today),
            count(
                db, MaintenanceRequest, not_terminal,
                MaintenanceRequest.deadline < yesterday,
                MaintenanceRequest.created_at < today_start
            ),
        )

        return {
            "total_equipment": stat_with_trend(*total_equipment),
            "active_requests": stat_with_trend(*active_requests),
            "completed_today": stat_with_trend(*completed),
            "overdue": stat_with_trend(*overdue),
        }

    # ==================== FEEDS ====================

    @staticmethod
    def get_recent_requests(db: Session, limit: int = 5) -> List[Dict[str, Any]]:
        requests = db.query(MaintenanceRequest).order_by(
            MaintenanceRequest.created_at.desc(),
            MaintenanceRequest.id.desc()
        ).limit(limit).all()

        return [
            {
                "id": r.id,
                "request_number": r.request_number,
                "subject": r.subject,
                "description": r.description,
                "equipment_id": r.equipment_id,
                "equipment_name": r.equipment.name,
                "equipment_code": r.equipment.equipment_code,
                "stage": r.stage,
                "priority": r.priority,
                "request_type": r.request_type,
                "scheduled_date": r.scheduled_date,
                "deadline": r.deadline,
                "started_at": r.started_at,
                "completed_at": r.completed_at,
                "duration_hours": r.duration_hours,
                "assigned_technician_id": r.assigned_technician_id,
                "technician_name": r.assigned_technician.name if r.assigned_technician else None,
                "requested_by_id": r.requested_by_id,
                "requester_name": r.requested_by.name if r.requested_by else None,
                "created_at": r.created_at,
                "updated_at": r.updated_at,
            }
            for r in requests
        ]

    @staticmethod
    def get_upcoming_maintenance(db: Session, limit: int = 5, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Open preventive requests scheduled from today on, soonest first"""
        today = today or date.today()

        requests = db.query(MaintenanceRequest).filter(
            MaintenanceRequest.request_type == RequestType.PREVENTIVE,
            MaintenanceRequest.scheduled_date >= today,
            MaintenanceRequest.stage.in_(OPEN_STAGES)
        ).order_by(
            MaintenanceRequest.scheduled_date.asc(),
            MaintenanceRequest.scheduled_time.asc(),
            MaintenanceRequest.id.asc()
        ).limit(limit).all()

        return [
            {
                "id": r.id,
                "request_number": r.request_number,
                "subject": r.subject,
                "equipment_id": r.equipment_id,
                "equipment_name": r.equipment.name,
                "equipment_code": r.equipment.equipment_code,
                "scheduled_date": r.scheduled_date,
                "scheduled_time": r.scheduled_time,
                "request_type": r.request_type,
                "assigned_technician_id": r.assigned_technician_id,
                "technician_name": r.assigned_technician.name if r.assigned_technician else None,
            }
            for r in requests
        ]

    # ==================== EQUIPMENT HEALTH ====================

    @staticmethod
    def get_critical_equipment(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Non-scrapped equipment whose health score is below the critical
        threshold, worst first.
        """
        today = today or date.today()

        last_completed = dict(
            db.query(
                MaintenanceRequest.equipment_id,
                func.max(MaintenanceRequest.completed_at)
            ).filter(
                MaintenanceRequest.completed_at.isnot(None)
            ).group_by(MaintenanceRequest.equipment_id).all()
        )

        open_counts = dict(
            db.query(
                MaintenanceRequest.equipment_id,
                func.count(MaintenanceRequest.id)
            ).filter(
                MaintenanceRequest.stage.in_(OPEN_STAGES)
            ).group_by(MaintenanceRequest.equipment_id).all()
        )

        overdue_counts = dict(
            db.query(
                MaintenanceRequest.equipment_id,
                func.count(MaintenanceRequest.id)
            ).filter(
                MaintenanceRequest.stage.in_(OPEN_STAGES),
                MaintenanceRequest.deadline < today
            ).group_by(MaintenanceRequest.equipment_id).all()
        )

        equipment = db.query(Equipment).filter(
            Equipment.status != EquipmentStatus.SCRAPPED
        ).all()

        critical = []
        for e in equipment:
            reference = last_completed.get(e.id) or e.purchase_date or e.created_at
            if isinstance(reference, datetime):
                reference = reference.date()
            days = max(0, (today - reference).days)

            open_requests = open_counts.get(e.id, 0)
            overdue_requests = overdue_counts.get(e.id, 0)
            health = health_percentage(days, open_requests, overdue_requests)

            if health < DashboardService.CRITICAL_HEALTH_THRESHOLD:
                critical.append({
                    "id": e.id,
                    "name": e.name,
                    "equipment_code": e.equipment_code,
                    "status": e.status,
                    "health_percentage": health,
                    "days_since_maintenance": days,
                    "open_requests": open_requests,
                    "overdue_requests": overdue_requests,
                })

        critical.sort(key=lambda item: (item["health_percentage"], item["id"]))
        return critical

    # ==================== WORKLOAD ====================

    @staticmethod
    def get_technician_load(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Open workload per active technician or manager, busiest first"""
        today = today or date.today()
        month_start = datetime.combine(today.replace(day=1), time.min)

        def per_technician(*criteria) -> Dict[int, int]:
            return dict(
                db.query(
                    MaintenanceRequest.assigned_technician_id,
                    func.count(MaintenanceRequest.id)
                ).filter(
                    MaintenanceRequest.assigned_technician_id.isnot(None),
                    *criteria
                ).group_by(MaintenanceRequest.assigned_technician_id).all()
            )

        active = per_technician(MaintenanceRequest.stage.in_(OPEN_STAGES))
        overdue = per_technician(
            MaintenanceRequest.stage.in_(OPEN_STAGES),
            MaintenanceRequest.deadline < today
        )
        completed = per_technician(
            MaintenanceRequest.stage == RequestStage.REPAIRED,
            MaintenanceRequest.completed_at >= month_start
        )

        technicians = db.query(User).filter(
            User.status == LifecycleStatus.ACTIVE,
            User.role.in_([UserRole.TECHNICIAN, UserRole.MANAGER])
        ).order_by(User.name.asc()).all()

        load = [
            {
                "technician_id": u.id,
                "name": u.name,
                "avatar_url": u.avatar_url,
                "active_requests": active.get(u.id, 0),
                "overdue_requests": overdue.get(u.id, 0),
                "completed_this_month": completed.get(u.id, 0),
                "utilization": technician_utilization(active.get(u.id, 0)),
            }
            for u in technicians
        ]
        load.sort(key=lambda item: -item["utilization"])
        return load

    @staticmethod
    def get_open_requests_summary(db: Session, today: Optional[date] = None) -> Dict[str, int]:
        today = today or date.today()
        count = DashboardService._count

        pending = count(db, MaintenanceRequest, MaintenanceRequest.stage == RequestStage.NEW)
        in_progress = count(db, MaintenanceRequest, MaintenanceRequest.stage == RequestStage.IN_PROGRESS)
        overdue = count(
            db, MaintenanceRequest,
            MaintenanceRequest.stage.in_(OPEN_STAGES),
            MaintenanceRequest.deadline < today
        )

        return {
            "pending": pending,
            "in_progress": in_progress,
            "overdue": overdue,
            "total": pending + in_progress,
        }
