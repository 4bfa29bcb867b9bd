"""
Routers package - API endpoint definitions.
"""

from gearguard.routers import (
    auth,
    dashboard,
    equipment,
    health,
    requests,
    teams,
    users,
    work_centers
)

__all__ = [
    "auth",
    "dashboard",
    "equipment",
    "health",
    "requests",
    "teams",
    "users",
    "work_centers"
]
