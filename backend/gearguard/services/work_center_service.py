"""
Work Center Service - operational locations and their utilization.
"""

import logging
from typing import Optional, Dict, List, Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gearguard.errors import AppError, NotFoundError, ConflictError
from gearguard.models import (
    Department, Equipment, MaintenanceRequest, MaintenanceTeam, User, WorkCenter, OPEN_STAGES
)
from gearguard.schemas import WorkCenterCreate, WorkCenterUpdate
from gearguard.update_builder import build_update

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = tuple(WorkCenterUpdate.model_fields)
NOT_NULL_FIELDS = ("name", "code", "category", "status", "capacity")

REFERENCES = {
    "department_id": (Department, "Department"),
    "assigned_team_id": (MaintenanceTeam, "Team"),
    "assigned_member_id": (User, "Member"),
}


def utilization_percentage(open_requests: int, capacity: int) -> int:
    """Open requests over capacity as a 0-100 percentage"""
    if capacity is None or capacity <= 0:
        return 0
    return min(100, round(open_requests / capacity * 100))


class WorkCenterService:
    """Service class for work center operations"""

    @staticmethod
    def _get_or_404(db: Session, work_center_id: int) -> WorkCenter:
        work_center = db.get(WorkCenter, work_center_id)
        if not work_center:
            raise NotFoundError("Work center not found")
        return work_center

    @staticmethod
    def _check_references(db: Session, values: Dict[str, Any]):
        for field, (model, label) in REFERENCES.items():
            ref_id = values.get(field)
            if ref_id is not None and db.get(model, ref_id) is None:
                raise NotFoundError(f"{label} not found")

    @staticmethod
    def _check_code_available(db: Session, code: str, exclude_id: Optional[int] = None):
        query = db.query(WorkCenter.id).filter(WorkCenter.code == code)
        if exclude_id is not None:
            query = query.filter(WorkCenter.id != exclude_id)
        if query.first():
            raise ConflictError(f"Work center with code '{code}' already exists")

    @staticmethod
    def open_requests(db: Session, work_center: WorkCenter) -> int:
        """Open requests on equipment located inside the work center"""
        if not work_center.location:
            return 0
        count = db.query(func.count(MaintenanceRequest.id.distinct())).join(
            Equipment, MaintenanceRequest.equipment_id == Equipment.id
        ).filter(
            Equipment.location.contains(work_center.location, autoescape=True),
            MaintenanceRequest.stage.in_(OPEN_STAGES)
        ).scalar()
        return count or 0

    @staticmethod
    def serialize(db: Session, work_center: WorkCenter, include_utilization: bool = False) -> Dict[str, Any]:
        data = {column.name: getattr(work_center, column.name) for column in WorkCenter.__table__.columns}
        data["department_name"] = work_center.department.name if work_center.department else None
        data["assigned_team_name"] = work_center.assigned_team.name if work_center.assigned_team else None
        data["assigned_member_name"] = work_center.assigned_member.name if work_center.assigned_member else None

        if include_utilization:
            open_requests = WorkCenterService.open_requests(db, work_center)
            data["open_requests"] = open_requests
            data["utilization"] = utilization_percentage(open_requests, work_center.capacity)
        return data

    @staticmethod
    def list(db: Session, include_utilization: bool = False) -> List[Dict[str, Any]]:
        work_centers = db.query(WorkCenter).order_by(
            WorkCenter.created_at.desc(),
            WorkCenter.id.desc()
        ).all()
        return [WorkCenterService.serialize(db, wc, include_utilization) for wc in work_centers]

    @staticmethod
    def get(db: Session, work_center_id: int) -> Dict[str, Any]:
        work_center = WorkCenterService._get_or_404(db, work_center_id)
        return WorkCenterService.serialize(db, work_center, include_utilization=True)

    @staticmethod
    def create(db: Session, data: WorkCenterCreate) -> Dict[str, Any]:
        values = data.model_dump()

        WorkCenterService._check_references(db, values)
        WorkCenterService._check_code_available(db, data.code)

        work_center = WorkCenter(**values)
        db.add(work_center)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Work center with code '{data.code}' already exists")

        logger.info(f"Created work center {work_center.code} (id={work_center.id})")
        return WorkCenterService.serialize(db, work_center, include_utilization=True)

    @staticmethod
    def update(db: Session, work_center_id: int, data: WorkCenterUpdate) -> Dict[str, Any]:
        work_center = WorkCenterService._get_or_404(db, work_center_id)
        changes = data.model_dump(exclude_unset=True)

        stmt = build_update(WorkCenter.__table__, work_center.id, changes, UPDATABLE_FIELDS)

        for field in NOT_NULL_FIELDS:
            if field in changes and changes[field] is None:
                raise AppError(f"{field} cannot be null", 400)

        WorkCenterService._check_references(db, changes)
        if changes.get("code") and changes["code"] != work_center.code:
            WorkCenterService._check_code_available(db, changes["code"], exclude_id=work_center.id)

        try:
            db.execute(stmt)
            db.commit()
        except IntegrityError:
            db.rollback()
            code = changes.get("code", work_center.code)
            raise ConflictError(f"Work center with code '{code}' already exists")

        db.refresh(work_center)
        return WorkCenterService.serialize(db, work_center, include_utilization=True)

    @staticmethod
    def delete(db: Session, work_center_id: int) -> None:
        work_center = WorkCenterService._get_or_404(db, work_center_id)
        db.delete(work_center)
        db.commit()
        logger.info(f"Deleted work center {work_center.code} (id={work_center.id})")
