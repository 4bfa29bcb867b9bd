"""
SQLAlchemy ORM models for GearGuard (maintenance equipment tracking).
Defines database schema with relationships and constraints.
"""

from sqlalchemy import (
    Column, Integer, String, Float, Text, Date, DateTime, JSON,
    ForeignKey, Enum as SQLEnum, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from gearguard.database import Base


# ==================== ENUMS ====================

class UserRole(str, enum.Enum):
    """User roles. Carried in the JWT role claim."""
    ADMIN = "admin"
    MANAGER = "manager"
    TECHNICIAN = "technician"
    OPERATOR = "operator"
    USER = "user"


class LifecycleStatus(str, enum.Enum):
    """Soft-delete lifecycle for users, teams and categories"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class EquipmentStatus(str, enum.Enum):
    """Equipment operational status"""
    OPERATIONAL = "operational"
    UNDER_MAINTENANCE = "under_maintenance"
    BROKEN = "broken"
    SCRAPPED = "scrapped"


class WorkCenterStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class RequestType(str, enum.Enum):
    CORRECTIVE = "corrective"
    PREVENTIVE = "preventive"


class RequestStage(str, enum.Enum):
    """Maintenance request workflow stage"""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    REPAIRED = "repaired"
    SCRAP = "scrap"


class RequestPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


OPEN_STAGES = (RequestStage.NEW, RequestStage.IN_PROGRESS)
TERMINAL_STAGES = (RequestStage.REPAIRED, RequestStage.SCRAP)


def _enum(enum_cls, name):
    # Persist the lowercase values, matching the ENUM columns in migrations
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)


# ==================== USERS ====================

class User(TimestampMixin, Base):
    """
    Portal user. Created at signup, deactivated rather than deleted.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(_enum(UserRole, "user_role"), default=UserRole.USER, nullable=False)
    status = Column(
        _enum(LifecycleStatus, "user_status"),
        default=LifecycleStatus.ACTIVE,
        nullable=False
    )
    avatar_url = Column(String(500))

    memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status == LifecycleStatus.ACTIVE

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# ==================== REFERENCE DATA ====================

class EquipmentCategory(TimestampMixin, Base):
    __tablename__ = "equipment_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    status = Column(
        _enum(LifecycleStatus, "category_status"),
        default=LifecycleStatus.ACTIVE,
        nullable=False
    )

    def __repr__(self):
        return f"<EquipmentCategory(id={self.id}, name='{self.name}')>"


class Department(TimestampMixin, Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text)

    def __repr__(self):
        return f"<Department(id={self.id}, name='{self.name}')>"


# ==================== TEAMS ====================

class MaintenanceTeam(TimestampMixin, Base):
    """
    Maintenance team. Soft-deleted through its lifecycle status, so a
    name is only reserved among active teams.
    """
    __tablename__ = "maintenance_teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    team_leader_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(
        _enum(LifecycleStatus, "team_status"),
        default=LifecycleStatus.ACTIVE,
        nullable=False
    )

    team_leader = relationship("User", foreign_keys=[team_leader_id])
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<MaintenanceTeam(id={self.id}, name='{self.name}', status='{self.status}')>"


class TeamMember(TimestampMixin, Base):
    """Join between a team and a user, with the member's position."""
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("maintenance_teams.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(100))
    joined_at = Column(DateTime, default=datetime.now, nullable=False)

    team = relationship("MaintenanceTeam", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_member"),
    )

    def __repr__(self):
        return f"<TeamMember(team_id={self.team_id}, user_id={self.user_id})>"


# ==================== EQUIPMENT ====================

class Equipment(TimestampMixin, Base):
    """
    Physical asset. Central entity linked to all maintenance requests.
    """
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    equipment_code = Column(String(50), unique=True, nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("equipment_categories.id"), nullable=False)
    manufacturer = Column(String(255))
    model = Column(String(255))
    serial_number = Column(String(255))
    purchase_date = Column(Date)
    warranty_expiry_date = Column(Date)
    location = Column(String(255))
    status = Column(
        _enum(EquipmentStatus, "equipment_status"),
        default=EquipmentStatus.OPERATIONAL,
        nullable=False,
        index=True
    )
    assigned_team_id = Column(Integer, ForeignKey("maintenance_teams.id", ondelete="SET NULL"))
    assigned_technician_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"))
    description = Column(Text)
    specifications = Column(JSON)
    image_url = Column(String(500))

    category = relationship("EquipmentCategory")
    assigned_team = relationship("MaintenanceTeam")
    assigned_technician = relationship("User")
    department = relationship("Department")
    requests = relationship(
        "MaintenanceRequest",
        back_populates="equipment",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Equipment(id={self.id}, code='{self.equipment_code}', status='{self.status}')>"


class WorkCenter(TimestampMixin, Base):
    """Operational location grouping equipment, with a capacity."""
    __tablename__ = "work_centers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), unique=True, nullable=False, index=True)
    category = Column(String(100), nullable=False)
    location = Column(String(255))
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="SET NULL"))
    assigned_team_id = Column(Integer, ForeignKey("maintenance_teams.id", ondelete="SET NULL"))
    assigned_member_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(
        _enum(WorkCenterStatus, "work_center_status"),
        default=WorkCenterStatus.ACTIVE,
        nullable=False
    )
    capacity = Column(Integer, default=100, nullable=False)
    description = Column(Text)

    department = relationship("Department")
    assigned_team = relationship("MaintenanceTeam")
    assigned_member = relationship("User")

    def __repr__(self):
        return f"<WorkCenter(id={self.id}, code='{self.code}', capacity={self.capacity})>"


# ==================== MAINTENANCE REQUESTS ====================

class MaintenanceRequest(TimestampMixin, Base):
    """
    Maintenance request moving through the Kanban stages.
    Category and team are copied from the equipment at creation time only.
    """
    __tablename__ = "maintenance_requests"

    id = Column(Integer, primary_key=True, index=True)
    # Filled from the auto-increment id inside the creating transaction
    request_number = Column(String(50), unique=True, index=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text)
    request_type = Column(_enum(RequestType, "request_type"), nullable=False)
    equipment_id = Column(
        Integer,
        ForeignKey("equipment.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    equipment_category_id = Column(Integer, ForeignKey("equipment_categories.id", ondelete="SET NULL"))
    maintenance_team_id = Column(
        Integer,
        ForeignKey("maintenance_teams.id", ondelete="SET NULL"),
        index=True
    )
    assigned_technician_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True
    )
    requested_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    stage = Column(
        _enum(RequestStage, "request_stage"),
        default=RequestStage.NEW,
        nullable=False,
        index=True
    )
    priority = Column(
        _enum(RequestPriority, "request_priority"),
        default=RequestPriority.MEDIUM,
        nullable=False
    )
    scheduled_date = Column(Date, index=True)
    scheduled_time = Column(String(5))  # HH:MM
    deadline = Column(Date)
    started_at = Column(DateTime)
    completed_at = Column(DateTime)
    duration_hours = Column(Float)
    technician_notes = Column(Text)
    scrap_reason = Column(Text)

    equipment = relationship("Equipment", back_populates="requests")
    assigned_technician = relationship("User", foreign_keys=[assigned_technician_id])
    requested_by = relationship("User", foreign_keys=[requested_by_id])
    maintenance_team = relationship("MaintenanceTeam")
    history = relationship(
        "RequestStageHistory",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="RequestStageHistory.id",
    )

    __table_args__ = (
        Index('idx_request_stage_created', 'stage', 'created_at'),
    )

    def __repr__(self):
        return f"<MaintenanceRequest(id={self.id}, number='{self.request_number}', stage='{self.stage}')>"


class RequestStageHistory(Base):
    """Append-only log of stage transitions."""
    __tablename__ = "request_stage_history"

    id = Column(Integer, primary_key=True, index=True)
    request_id = Column(
        Integer,
        ForeignKey("maintenance_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    from_stage = Column(_enum(RequestStage, "history_from_stage"))
    to_stage = Column(_enum(RequestStage, "history_to_stage"), nullable=False)
    changed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now, nullable=False)

    request = relationship("MaintenanceRequest", back_populates="history")
    changed_by = relationship("User")

    def __repr__(self):
        return f"<RequestStageHistory(request_id={self.request_id}, {self.from_stage} -> {self.to_stage})>"


# ==================== MIGRATIONS ====================

class SchemaMigration(Base):
    """Record of executed SQL migration files"""
    __tablename__ = "schema_migrations"

    id = Column(Integer, primary_key=True)
    migration_name = Column(String(255), unique=True, nullable=False)
    executed_at = Column(DateTime, default=datetime.now, nullable=False)
