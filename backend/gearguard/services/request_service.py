"""
Maintenance Request Service - Kanban board, calendar and request lifecycle.
"""

import logging
from datetime import date, datetime
from typing import Optional, Dict, List, Any

from sqlalchemy.orm import Session

from gearguard.errors import AppError, NotFoundError
from gearguard.models import (
    Equipment, MaintenanceRequest, RequestStage, RequestStageHistory, User
)
from gearguard.schemas import RequestCreate, RequestUpdate, StageUpdate
from gearguard.services import stage_workflow
from gearguard.update_builder import build_update

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "subject",
    "description",
    "assigned_technician_id",
    "priority",
    "scheduled_date",
    "scheduled_time",
    "deadline",
    "technician_notes",
    "scrap_reason",
)
NOT_NULL_FIELDS = ("subject", "priority")


def format_request_number(year: int, request_id: int) -> str:
    """Display number derived from the auto-increment id, e.g. REQ-2025-007"""
    return f"REQ-{year}-{request_id:03d}"


def serialize_request(request: MaintenanceRequest) -> Dict[str, Any]:
    """Row plus the equipment, technician and team names"""
    data = {column.name: getattr(request, column.name) for column in MaintenanceRequest.__table__.columns}

    equipment = request.equipment
    technician = request.assigned_technician
    team = request.maintenance_team

    data["equipment_name"] = equipment.name if equipment else None
    data["equipment_code"] = equipment.equipment_code if equipment else None
    data["technician_name"] = technician.name if technician else None
    data["technician_avatar"] = technician.avatar_url if technician else None
    data["team_name"] = team.name if team else None
    return data


def serialize_history(entry: RequestStageHistory) -> Dict[str, Any]:
    data = {column.name: getattr(entry, column.name) for column in RequestStageHistory.__table__.columns}
    data["changed_by_name"] = entry.changed_by.name if entry.changed_by else None
    return data


def month_bounds(year: int, month: int):
    """First day of the month and first day of the following month"""
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


class RequestService:
    """Service class for maintenance requests"""

    @staticmethod
    def _get_or_404(db: Session, request_id: int) -> MaintenanceRequest:
        request = db.get(MaintenanceRequest, request_id)
        if not request:
            raise NotFoundError("Request not found")
        return request

    @staticmethod
    def _ensure_user(db: Session, user_id: Optional[int]):
        if user_id is not None and db.get(User, user_id) is None:
            raise NotFoundError("Technician not found")

    @staticmethod
    def kanban(db: Session) -> Dict[str, List[Dict[str, Any]]]:
        """All requests grouped by stage, newest first in each column"""
        requests = (
            db.query(MaintenanceRequest)
            .order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())
            .all()
        )

        board = {stage.value: [] for stage in RequestStage}
        for request in requests:
            board[RequestStage(request.stage).value].append(serialize_request(request))
        return board

    @staticmethod
    def calendar(db: Session, year: Optional[int] = None, month: Optional[int] = None) -> List[Dict[str, Any]]:
        """Scheduled requests as calendar events"""
        query = db.query(MaintenanceRequest).filter(MaintenanceRequest.scheduled_date.isnot(None))

        if year and month:
            start, end = month_bounds(year, month)
            query = query.filter(
                MaintenanceRequest.scheduled_date >= start,
                MaintenanceRequest.scheduled_date < end
            )

        requests = query.order_by(
            MaintenanceRequest.scheduled_date.asc(),
            MaintenanceRequest.scheduled_time.asc(),
            MaintenanceRequest.id.asc()
        ).all()

        return [
            {
                "id": request.request_number,
                "request_id": request.id,
                "equipment": request.equipment.name,
                "subject": request.subject,
                "type": request.request_type,
                "scheduled_date": request.scheduled_date,
                "scheduled_time": request.scheduled_time or "00:00",
                "technician": request.assigned_technician.name if request.assigned_technician else "Unassigned",
                "stage": request.stage,
                "priority": request.priority,
            }
            for request in requests
        ]

    @staticmethod
    def get(db: Session, request_id: int) -> Dict[str, Any]:
        return serialize_request(RequestService._get_or_404(db, request_id))

    @staticmethod
    def history(db: Session, request_id: int) -> List[Dict[str, Any]]:
        request = RequestService._get_or_404(db, request_id)
        return [serialize_history(entry) for entry in request.history]

    @staticmethod
    def create(db: Session, data: RequestCreate, requested_by_id: int) -> Dict[str, Any]:
        """
        Open a new request against an equipment.

        Category and team are copied from the equipment; the technician
        defaults to the equipment's technician. The display number is
        written after the insert, in the same transaction.
        """
        equipment = db.get(Equipment, data.equipment_id)
        if not equipment:
            raise NotFoundError("Equipment not found")

        RequestService._ensure_user(db, data.assigned_technician_id)

        now = datetime.now()
        request = MaintenanceRequest(
            subject=data.subject,
            description=data.description,
            request_type=data.request_type,
            equipment_id=equipment.id,
            equipment_category_id=equipment.category_id,
            maintenance_team_id=equipment.assigned_team_id,
            assigned_technician_id=data.assigned_technician_id or equipment.assigned_technician_id,
            requested_by_id=requested_by_id,
            stage=RequestStage.NEW,
            priority=data.priority,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            deadline=data.deadline,
            created_at=now,
            updated_at=now,
        )
        db.add(request)
        db.flush()

        request.request_number = format_request_number(now.year, request.id)
        db.commit()
        db.refresh(request)

        logger.info(f"Created request {request.request_number} for equipment {equipment.equipment_code}")
        return serialize_request(request)

    @staticmethod
    def update(db: Session, request_id: int, data: RequestUpdate) -> Dict[str, Any]:
        request = RequestService._get_or_404(db, request_id)
        changes = data.model_dump(exclude_unset=True)

        stmt = build_update(MaintenanceRequest.__table__, request.id, changes, UPDATABLE_FIELDS)

        for field in NOT_NULL_FIELDS:
            if field in changes and changes[field] is None:
                raise AppError(f"{field} cannot be null", 400)

        RequestService._ensure_user(db, changes.get("assigned_technician_id"))

        db.execute(stmt)
        db.commit()
        db.refresh(request)
        return serialize_request(request)

    @staticmethod
    def update_stage(db: Session, request_id: int, data: StageUpdate, changed_by_id: int) -> Dict[str, Any]:
        request = RequestService._get_or_404(db, request_id)

        stage_workflow.apply_transition(request, data.stage, changed_by_id=changed_by_id, notes=data.notes)
        db.commit()
        db.refresh(request)
        return serialize_request(request)

    @staticmethod
    def delete(db: Session, request_id: int) -> None:
        request = RequestService._get_or_404(db, request_id)
        db.delete(request)
        db.commit()
        logger.info(f"Deleted request {request.request_number}")
