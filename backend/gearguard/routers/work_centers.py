"""
Work centers router - operational locations with capacity and utilization.
Payloads use camelCase keys.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List

from gearguard.database import get_db
from gearguard.schemas import (
    ApiResponse,
    WorkCenterCreate,
    WorkCenterResponse,
    WorkCenterUpdate,
    success
)
from gearguard.services.work_center_service import WorkCenterService

router = APIRouter()


@router.get("/", response_model=ApiResponse[List[WorkCenterResponse]])
def list_work_centers(
    include_utilization: bool = Query(False, alias="includeUtilization"),
    db: Session = Depends(get_db)
):
    """
    List all work centers, newest first.

    Utilization is computed only when ``includeUtilization=true``.
    """
    work_centers = WorkCenterService.list(db, include_utilization)
    return success(work_centers, meta={"count": len(work_centers)})


@router.get("/{work_center_id}", response_model=ApiResponse[WorkCenterResponse])
def get_work_center(work_center_id: int, db: Session = Depends(get_db)):
    return success(WorkCenterService.get(db, work_center_id))


@router.post("/", response_model=ApiResponse[WorkCenterResponse], status_code=status.HTTP_201_CREATED)
def create_work_center(data: WorkCenterCreate, db: Session = Depends(get_db)):
    return success(WorkCenterService.create(db, data), "Work center created successfully")


@router.put("/{work_center_id}", response_model=ApiResponse[WorkCenterResponse])
def update_work_center(work_center_id: int, data: WorkCenterUpdate, db: Session = Depends(get_db)):
    return success(WorkCenterService.update(db, work_center_id, data), "Work center updated successfully")


@router.delete("/{work_center_id}", response_model=ApiResponse[None])
def delete_work_center(work_center_id: int, db: Session = Depends(get_db)):
    WorkCenterService.delete(db, work_center_id)
    return success(message="Work center deleted successfully")
