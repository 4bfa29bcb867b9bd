"""
Equipment router - Handles all equipment related endpoints.
Provides paginated search, detail with recent requests and CRUD.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from gearguard.database import get_db
from gearguard.models import EquipmentStatus
from gearguard.schemas import (
    ApiResponse,
    CategoryResponse,
    EquipmentCreate,
    EquipmentDetail,
    EquipmentPage,
    EquipmentUpdate,
    success
)
from gearguard.services.equipment_service import EquipmentService

router = APIRouter()


@router.get("/", response_model=ApiResponse[EquipmentPage])
def list_equipment(
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[EquipmentStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """
    List equipment with optional filtering and pagination.

    **Filters:**
    - search: Search in name, code and serial number
    - category: Category name
    - status: Equipment status
    """
    return success(EquipmentService.list(db, search, category, status, page, limit))


@router.get("/meta/categories", response_model=ApiResponse[List[CategoryResponse]])
def list_categories(db: Session = Depends(get_db)):
    """Active equipment categories, by name"""
    return success(EquipmentService.categories(db))


@router.get("/{equipment_id}", response_model=ApiResponse[EquipmentDetail])
def get_equipment(equipment_id: int, db: Session = Depends(get_db)):
    """
    Get equipment by ID with its latest maintenance requests.
    """
    return success(EquipmentService.get(db, equipment_id))


@router.post("/", response_model=ApiResponse[EquipmentDetail], status_code=status.HTTP_201_CREATED)
def create_equipment(data: EquipmentCreate, db: Session = Depends(get_db)):
    """
    Create new equipment.

    **Required fields:**
    - name, equipment_code, category_id
    """
    return success(EquipmentService.create(db, data), "Equipment created successfully")


@router.put("/{equipment_id}", response_model=ApiResponse[EquipmentDetail])
def update_equipment(equipment_id: int, data: EquipmentUpdate, db: Session = Depends(get_db)):
    """
    Update existing equipment. Only provided fields are changed.
    """
    return success(EquipmentService.update(db, equipment_id, data), "Equipment updated successfully")


@router.delete("/{equipment_id}", response_model=ApiResponse[None])
def delete_equipment(equipment_id: int, db: Session = Depends(get_db)):
    """
    Delete equipment together with its maintenance requests.
    """
    EquipmentService.delete(db, equipment_id)
    return success(message="Equipment deleted successfully")
