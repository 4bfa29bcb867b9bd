"""
User Service - user directory lookups.
"""

from typing import Dict, List, Any

from sqlalchemy.orm import Session

from gearguard.models import LifecycleStatus, MaintenanceTeam, TeamMember, User, UserRole


class UserService:
    """Service class for user lookups"""

    ASSIGNABLE_ROLES = (UserRole.TECHNICIAN, UserRole.MANAGER)

    @staticmethod
    def list_technicians(db: Session) -> List[Dict[str, Any]]:
        """Active technicians and managers, with the names of their active teams"""
        users = db.query(User).filter(
            User.status == LifecycleStatus.ACTIVE,
            User.role.in_(UserService.ASSIGNABLE_ROLES)
        ).order_by(User.name.asc()).all()

        teams_by_user: Dict[int, List[str]] = {u.id: [] for u in users}
        if users:
            rows = db.query(TeamMember.user_id, MaintenanceTeam.name).join(
                MaintenanceTeam, TeamMember.team_id == MaintenanceTeam.id
            ).filter(
                TeamMember.user_id.in_(teams_by_user.keys()),
                MaintenanceTeam.status == LifecycleStatus.ACTIVE
            ).order_by(MaintenanceTeam.name.asc()).all()

            for user_id, team_name in rows:
                teams_by_user[user_id].append(team_name)

        return [
            {
                "id": u.id,
                "name": u.name,
                "email": u.email,
                "role": u.role,
                "avatar_url": u.avatar_url,
                "teams": teams_by_user[u.id],
            }
            for u in users
        ]
