"""
Maintenance requests router - Kanban board, calendar and request lifecycle.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from gearguard.database import get_db
from gearguard.schemas import (
    ApiResponse,
    CalendarEvent,
    KanbanBoard,
    RequestCreate,
    RequestResponse,
    RequestUpdate,
    StageHistoryResponse,
    StageUpdate,
    success
)
from gearguard.security import AuthUser, get_auth_user
from gearguard.services.request_service import RequestService

router = APIRouter()


@router.get("/kanban", response_model=ApiResponse[KanbanBoard])
def get_kanban(db: Session = Depends(get_db)):
    """
    All requests grouped by stage for the Kanban board.
    """
    return success(RequestService.kanban(db))


@router.get("/calendar", response_model=ApiResponse[List[CalendarEvent]])
def get_calendar(
    year: Optional[int] = Query(None, ge=2020, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: Session = Depends(get_db)
):
    """
    Scheduled requests as calendar events.

    The month filter applies only when both year and month are given.
    """
    return success(RequestService.calendar(db, year, month))


@router.get("/{request_id}", response_model=ApiResponse[RequestResponse])
def get_request(request_id: int, db: Session = Depends(get_db)):
    return success(RequestService.get(db, request_id))


@router.get("/{request_id}/history", response_model=ApiResponse[List[StageHistoryResponse]])
def get_request_history(request_id: int, db: Session = Depends(get_db)):
    """Stage transitions of a request, oldest first"""
    return success(RequestService.history(db, request_id))


@router.post("/", response_model=ApiResponse[RequestResponse], status_code=status.HTTP_201_CREATED)
def create_request(
    data: RequestCreate,
    db: Session = Depends(get_db),
    auth_user: AuthUser = Depends(get_auth_user)
):
    """
    Open a maintenance request.

    Category and team are taken from the equipment; the technician
    defaults to the equipment's technician.
    """
    return success(
        RequestService.create(db, data, requested_by_id=auth_user.id),
        "Maintenance request created successfully"
    )


@router.put("/{request_id}", response_model=ApiResponse[RequestResponse])
def update_request(request_id: int, data: RequestUpdate, db: Session = Depends(get_db)):
    return success(RequestService.update(db, request_id, data), "Request updated successfully")


@router.patch("/{request_id}/stage", response_model=ApiResponse[RequestResponse])
def update_request_stage(
    request_id: int,
    data: StageUpdate,
    db: Session = Depends(get_db),
    auth_user: AuthUser = Depends(get_auth_user)
):
    """
    Move a request to another stage (Kanban drag and drop).
    """
    return success(
        RequestService.update_stage(db, request_id, data, changed_by_id=auth_user.id),
        "Request stage updated successfully"
    )


@router.delete("/{request_id}", response_model=ApiResponse[None])
def delete_request(request_id: int, db: Session = Depends(get_db)):
    RequestService.delete(db, request_id)
    return success(message="Request deleted successfully")
