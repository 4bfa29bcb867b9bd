"""
Teams router - maintenance teams and their membership.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from gearguard.database import get_db
from gearguard.schemas import (
    AddMemberRequest,
    ApiResponse,
    TeamCreate,
    TeamDetail,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
    UserSummary,
    success
)
from gearguard.services.team_service import TeamService

router = APIRouter()


@router.get("/", response_model=ApiResponse[List[TeamResponse]])
def list_teams(db: Session = Depends(get_db)):
    """
    Active teams with member count and workload stats, newest first.
    """
    return success(TeamService.list(db))


@router.get("/{team_id}", response_model=ApiResponse[TeamDetail])
def get_team(team_id: int, db: Session = Depends(get_db)):
    """Team stats plus its active members"""
    return success(TeamService.get(db, team_id))


@router.post("/", response_model=ApiResponse[TeamResponse], status_code=status.HTTP_201_CREATED)
def create_team(data: TeamCreate, db: Session = Depends(get_db)):
    return success(TeamService.create(db, data), "Team created successfully")


@router.put("/{team_id}", response_model=ApiResponse[TeamResponse])
def update_team(team_id: int, data: TeamUpdate, db: Session = Depends(get_db)):
    return success(TeamService.update(db, team_id, data), "Team updated successfully")


@router.delete("/{team_id}", response_model=ApiResponse[None])
def delete_team(team_id: int, db: Session = Depends(get_db)):
    """
    Deactivate a team. Its history and requests are kept.
    """
    TeamService.delete(db, team_id)
    return success(message="Team deleted successfully")


# ==================== MEMBERS ====================

@router.post(
    "/{team_id}/members",
    response_model=ApiResponse[TeamMemberResponse],
    status_code=status.HTTP_201_CREATED
)
def add_member(team_id: int, data: AddMemberRequest, db: Session = Depends(get_db)):
    return success(TeamService.add_member(db, team_id, data), "Member added successfully")


@router.delete("/{team_id}/members/{member_id}", response_model=ApiResponse[None])
def remove_member(team_id: int, member_id: int, db: Session = Depends(get_db)):
    """
    Remove a user from the team. ``member_id`` is the user's id.
    """
    TeamService.remove_member(db, team_id, member_id)
    return success(message="Member removed successfully")


@router.get("/{team_id}/available-users", response_model=ApiResponse[List[UserSummary]])
def available_users(team_id: int, db: Session = Depends(get_db)):
    """Active users who can still be added to the team"""
    return success(TeamService.available_users(db, team_id))
