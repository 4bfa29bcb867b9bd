"""
Team Service - maintenance teams, their members and workload stats.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, List, Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gearguard.errors import AppError, NotFoundError
from gearguard.models import (
    LifecycleStatus, MaintenanceRequest, MaintenanceTeam, RequestStage,
    TeamMember, User, OPEN_STAGES
)
from gearguard.schemas import TeamCreate, TeamUpdate, AddMemberRequest
from gearguard.update_builder import build_update

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "description", "team_leader_id", "status")


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _user_active_requests(db: Session, user_ids: List[int]) -> Dict[int, int]:
    if not user_ids:
        return {}
    rows = db.query(
        MaintenanceRequest.assigned_technician_id,
        func.count(MaintenanceRequest.id)
    ).filter(
        MaintenanceRequest.assigned_technician_id.in_(user_ids),
        MaintenanceRequest.stage.in_(OPEN_STAGES)
    ).group_by(MaintenanceRequest.assigned_technician_id).all()
    return dict(rows)


class TeamService:
    """Service class for team operations"""

    @staticmethod
    def _get_active_or_404(db: Session, team_id: int) -> MaintenanceTeam:
        team = db.query(MaintenanceTeam).filter(
            MaintenanceTeam.id == team_id,
            MaintenanceTeam.status == LifecycleStatus.ACTIVE
        ).first()
        if not team:
            raise NotFoundError("Team not found")
        return team

    @staticmethod
    def _check_name_available(db: Session, name: str, exclude_id: Optional[int] = None):
        query = db.query(MaintenanceTeam.id).filter(
            MaintenanceTeam.name == name,
            MaintenanceTeam.status == LifecycleStatus.ACTIVE
        )
        if exclude_id is not None:
            query = query.filter(MaintenanceTeam.id != exclude_id)
        if query.first():
            raise AppError("Team with this name already exists", 400)

    @staticmethod
    def _check_leader(db: Session, leader_id: Optional[int]):
        if leader_id is not None and db.get(User, leader_id) is None:
            raise NotFoundError("Team leader not found")

    @staticmethod
    def team_stats(db: Session, team: MaintenanceTeam) -> Dict[str, Any]:
        """Team row with member count, open workload and completions this month"""
        member_count = db.query(func.count(TeamMember.id)).filter(
            TeamMember.team_id == team.id
        ).scalar()

        active_requests = db.query(func.count(MaintenanceRequest.id)).filter(
            MaintenanceRequest.maintenance_team_id == team.id,
            MaintenanceRequest.stage.in_(OPEN_STAGES)
        ).scalar()

        completed_this_month = db.query(func.count(MaintenanceRequest.id)).filter(
            MaintenanceRequest.maintenance_team_id == team.id,
            MaintenanceRequest.stage == RequestStage.REPAIRED,
            MaintenanceRequest.completed_at >= month_start()
        ).scalar()

        return {
            "id": team.id,
            "name": team.name,
            "description": team.description,
            "team_leader_id": team.team_leader_id,
            "team_leader_name": team.team_leader.name if team.team_leader else None,
            "status": team.status,
            "member_count": member_count or 0,
            "active_requests": active_requests or 0,
            "completed_this_month": completed_this_month or 0,
            "created_at": team.created_at,
            "updated_at": team.updated_at,
        }

    @staticmethod
    def serialize_member(member: TeamMember, active_requests: int = 0) -> Dict[str, Any]:
        user = member.user
        return {
            "id": member.id,
            "team_id": member.team_id,
            "user_id": member.user_id,
            "role": member.role,
            "joined_at": member.joined_at,
            "user_name": user.name,
            "user_email": user.email,
            "user_role": user.role,
            "user_avatar": user.avatar_url,
            "active_requests": active_requests,
        }

    @staticmethod
    def list(db: Session) -> List[Dict[str, Any]]:
        teams = db.query(MaintenanceTeam).filter(
            MaintenanceTeam.status == LifecycleStatus.ACTIVE
        ).order_by(MaintenanceTeam.created_at.desc(), MaintenanceTeam.id.desc()).all()
        return [TeamService.team_stats(db, team) for team in teams]

    @staticmethod
    def get(db: Session, team_id: int) -> Dict[str, Any]:
        team = TeamService._get_active_or_404(db, team_id)

        members = db.query(TeamMember).join(TeamMember.user).filter(
            TeamMember.team_id == team.id,
            User.status == LifecycleStatus.ACTIVE
        ).order_by(TeamMember.joined_at.asc(), TeamMember.id.asc()).all()

        workload = _user_active_requests(db, [m.user_id for m in members])

        data = TeamService.team_stats(db, team)
        data["members"] = [
            TeamService.serialize_member(m, workload.get(m.user_id, 0)) for m in members
        ]
        return data

    @staticmethod
    def create(db: Session, data: TeamCreate) -> Dict[str, Any]:
        TeamService._check_name_available(db, data.name)
        TeamService._check_leader(db, data.team_leader_id)

        team = MaintenanceTeam(
            name=data.name,
            description=data.description,
            team_leader_id=data.team_leader_id,
            status=LifecycleStatus.ACTIVE,
        )
        db.add(team)
        db.commit()
        db.refresh(team)

        logger.info(f"Created team '{team.name}' (id={team.id})")
        return TeamService.team_stats(db, team)

    @staticmethod
    def update(db: Session, team_id: int, data: TeamUpdate) -> Dict[str, Any]:
        team = TeamService._get_active_or_404(db, team_id)
        changes = data.model_dump(exclude_unset=True)

        stmt = build_update(MaintenanceTeam.__table__, team.id, changes, UPDATABLE_FIELDS)

        for field in ("name", "status"):
            if field in changes and changes[field] is None:
                raise AppError(f"{field} cannot be null", 400)

        if changes.get("name") and changes["name"] != team.name:
            TeamService._check_name_available(db, changes["name"], exclude_id=team.id)
        TeamService._check_leader(db, changes.get("team_leader_id"))

        db.execute(stmt)
        db.commit()
        db.refresh(team)
        return TeamService.team_stats(db, team)

    @staticmethod
    def delete(db: Session, team_id: int) -> None:
        """Soft delete: the team is marked inactive"""
        team = TeamService._get_active_or_404(db, team_id)
        team.status = LifecycleStatus.INACTIVE
        db.commit()
        logger.info(f"Deactivated team '{team.name}' (id={team.id})")

    @staticmethod
    def add_member(db: Session, team_id: int, data: AddMemberRequest) -> Dict[str, Any]:
        team = TeamService._get_active_or_404(db, team_id)

        user = db.query(User).filter(
            User.id == data.user_id,
            User.status == LifecycleStatus.ACTIVE
        ).first()
        if not user:
            raise NotFoundError("User not found")

        existing = db.query(TeamMember).filter(
            TeamMember.team_id == team.id,
            TeamMember.user_id == user.id
        ).first()
        if existing:
            raise AppError("User is already a member of this team", 400)

        member = TeamMember(team_id=team.id, user_id=user.id, role=data.role)
        db.add(member)
        db.commit()
        db.refresh(member)

        logger.info(f"Added user {user.id} to team {team.id}")
        workload = _user_active_requests(db, [user.id])
        return TeamService.serialize_member(member, workload.get(user.id, 0))

    @staticmethod
    def remove_member(db: Session, team_id: int, user_id: int) -> None:
        member = db.query(TeamMember).filter(
            TeamMember.team_id == team_id,
            TeamMember.user_id == user_id
        ).first()
        if not member:
            raise NotFoundError("Member not found in this team")

        db.delete(member)
        db.commit()
        logger.info(f"Removed user {user_id} from team {team_id}")

    @staticmethod
    def available_users(db: Session, team_id: int) -> List[Dict[str, Any]]:
        """Active users who are not yet members of the team"""
        member_ids = select(TeamMember.user_id).where(TeamMember.team_id == team_id)

        users = db.query(User).filter(
            User.status == LifecycleStatus.ACTIVE,
            User.id.not_in(member_ids)
        ).order_by(User.name.asc()).all()

        return [
            {
                "id": u.id,
                "name": u.name,
                "email": u.email,
                "role": u.role,
                "avatar_url": u.avatar_url,
            }
            for u in users
        ]
