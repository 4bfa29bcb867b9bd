"""
Users router - directory lookups for assignment dropdowns.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from gearguard.database import get_db
from gearguard.schemas import ApiResponse, TechnicianResponse, success
from gearguard.services.user_service import UserService

router = APIRouter()


@router.get("/technicians", response_model=ApiResponse[List[TechnicianResponse]])
def list_technicians(db: Session = Depends(get_db)):
    """
    Active technicians and managers with the teams they belong to.
    """
    return success(UserService.list_technicians(db))
