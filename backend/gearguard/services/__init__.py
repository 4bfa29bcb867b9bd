"""
Services package - Business logic layer.
"""

from gearguard.services.auth_service import AuthService
from gearguard.services.dashboard_service import DashboardService
from gearguard.services.equipment_service import EquipmentService
from gearguard.services.request_service import RequestService
from gearguard.services.team_service import TeamService
from gearguard.services.user_service import UserService
from gearguard.services.work_center_service import WorkCenterService


__all__ = [
    "AuthService",
    "DashboardService",
    "EquipmentService",
    "RequestService",
    "TeamService",
    "UserService",
    "WorkCenterService"
]
