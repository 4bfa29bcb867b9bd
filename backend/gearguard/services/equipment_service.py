"""
Equipment Service - Business logic for the equipment catalogue.
Provides paginated search, join-enriched detail views and CRUD.
"""

import logging
import math
from typing import Optional, Dict, List, Any, Iterable

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gearguard.errors import AppError, NotFoundError, ConflictError
from gearguard.models import (
    Department, Equipment, EquipmentCategory, EquipmentStatus, LifecycleStatus,
    MaintenanceRequest, MaintenanceTeam, User, OPEN_STAGES
)
from gearguard.schemas import EquipmentCreate, EquipmentUpdate
from gearguard.services.request_service import serialize_request
from gearguard.update_builder import build_update

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = tuple(EquipmentUpdate.model_fields)
NOT_NULL_FIELDS = ("name", "equipment_code", "category_id", "status")

RECENT_REQUESTS_LIMIT = 20

# Foreign key field -> (model, label used in the 404 message)
REFERENCES = {
    "category_id": (EquipmentCategory, "Category"),
    "assigned_team_id": (MaintenanceTeam, "Team"),
    "department_id": (Department, "Department"),
    "assigned_technician_id": (User, "Technician"),
}


def open_request_counts(db: Session, equipment_ids: Iterable[int]) -> Dict[int, int]:
    """Number of new/in-progress requests per equipment id"""
    equipment_ids = list(equipment_ids)
    if not equipment_ids:
        return {}

    rows = db.query(
        MaintenanceRequest.equipment_id,
        func.count(MaintenanceRequest.id)
    ).filter(
        MaintenanceRequest.equipment_id.in_(equipment_ids),
        MaintenanceRequest.stage.in_(OPEN_STAGES)
    ).group_by(MaintenanceRequest.equipment_id).all()

    return {equipment_id: count for equipment_id, count in rows}


def serialize_equipment(equipment: Equipment, open_requests: int = 0) -> Dict[str, Any]:
    data = {column.name: getattr(equipment, column.name) for column in Equipment.__table__.columns}
    data["category_name"] = equipment.category.name if equipment.category else None
    data["team_name"] = equipment.assigned_team.name if equipment.assigned_team else None
    data["department_name"] = equipment.department.name if equipment.department else None
    data["technician_name"] = equipment.assigned_technician.name if equipment.assigned_technician else None
    data["open_requests"] = open_requests
    return data


class EquipmentService:
    """Service class for equipment operations"""

    @staticmethod
    def _get_or_404(db: Session, equipment_id: int) -> Equipment:
        equipment = db.get(Equipment, equipment_id)
        if not equipment:
            raise NotFoundError("Equipment not found")
        return equipment

    @staticmethod
    def _check_references(db: Session, values: Dict[str, Any]):
        for field, (model, label) in REFERENCES.items():
            ref_id = values.get(field)
            if ref_id is not None and db.get(model, ref_id) is None:
                raise NotFoundError(f"{label} not found")

    @staticmethod
    def _check_code_available(db: Session, code: str, exclude_id: Optional[int] = None):
        query = db.query(Equipment.id).filter(Equipment.equipment_code == code)
        if exclude_id is not None:
            query = query.filter(Equipment.id != exclude_id)
        if query.first():
            raise ConflictError("Equipment code already exists")

    @staticmethod
    def list(
        db: Session,
        search: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[EquipmentStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        """
        Paginated equipment list, newest first.

        **Filters:**
        - search: name, code or serial number (substring)
        - category: category name
        - status: equipment status
        """
        query = db.query(Equipment)

        if search:
            search_pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Equipment.name.ilike(search_pattern),
                    Equipment.equipment_code.ilike(search_pattern),
                    Equipment.serial_number.ilike(search_pattern)
                )
            )

        if category:
            query = query.join(Equipment.category).filter(EquipmentCategory.name == category)

        if status:
            query = query.filter(Equipment.status == status)

        total = query.count()

        equipment = query.order_by(
            Equipment.created_at.desc(),
            Equipment.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        counts = open_request_counts(db, [e.id for e in equipment])

        return {
            "items": [serialize_equipment(e, counts.get(e.id, 0)) for e in equipment],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        }

    @staticmethod
    def categories(db: Session) -> List[Dict[str, Any]]:
        categories = db.query(EquipmentCategory).filter(
            EquipmentCategory.status == LifecycleStatus.ACTIVE
        ).order_by(EquipmentCategory.name.asc()).all()
        return [{"id": c.id, "name": c.name} for c in categories]

    @staticmethod
    def get(db: Session, equipment_id: int) -> Dict[str, Any]:
        """Equipment with its latest maintenance requests"""
        equipment = EquipmentService._get_or_404(db, equipment_id)
        counts = open_request_counts(db, [equipment.id])

        requests = db.query(MaintenanceRequest).filter(
            MaintenanceRequest.equipment_id == equipment.id
        ).order_by(
            MaintenanceRequest.created_at.desc(),
            MaintenanceRequest.id.desc()
        ).limit(RECENT_REQUESTS_LIMIT).all()

        data = serialize_equipment(equipment, counts.get(equipment.id, 0))
        data["maintenance_requests"] = [serialize_request(r) for r in requests]
        return data

    @staticmethod
    def create(db: Session, data: EquipmentCreate) -> Dict[str, Any]:
        values = data.model_dump()

        EquipmentService._check_references(db, values)
        EquipmentService._check_code_available(db, data.equipment_code)

        equipment = Equipment(**values)
        db.add(equipment)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Equipment code already exists")

        logger.info(f"Created equipment {equipment.equipment_code} (id={equipment.id})")
        return EquipmentService.get(db, equipment.id)

    @staticmethod
    def update(db: Session, equipment_id: int, data: EquipmentUpdate) -> Dict[str, Any]:
        equipment = EquipmentService._get_or_404(db, equipment_id)
        changes = data.model_dump(exclude_unset=True)

        stmt = build_update(Equipment.__table__, equipment.id, changes, UPDATABLE_FIELDS)

        for field in NOT_NULL_FIELDS:
            if field in changes and changes[field] is None:
                raise AppError(f"{field} cannot be null", 400)

        EquipmentService._check_references(db, changes)
        if changes.get("equipment_code") and changes["equipment_code"] != equipment.equipment_code:
            EquipmentService._check_code_available(db, changes["equipment_code"], exclude_id=equipment.id)

        try:
            db.execute(stmt)
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Equipment code already exists")

        db.refresh(equipment)
        return EquipmentService.get(db, equipment.id)

    @staticmethod
    def delete(db: Session, equipment_id: int) -> None:
        """Hard delete; requests and their history go with the equipment"""
        equipment = EquipmentService._get_or_404(db, equipment_id)
        db.delete(equipment)
        db.commit()
        logger.info(f"Deleted equipment {equipment.equipment_code} (id={equipment.id})")
