"""
Pydantic schemas for request/response validation and serialization.
Provides data validation, type checking, and API documentation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Generic, TypeVar
from datetime import date, datetime

from gearguard.models import (
    UserRole, LifecycleStatus, EquipmentStatus, WorkCenterStatus,
    RequestType, RequestStage, RequestPriority
)


T = TypeVar("T")

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def pad_time(value: Optional[str]) -> Optional[str]:
    """'9:30' -> '09:30', so stored times sort as strings"""
    if value is None:
        return value
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{minutes}"


# ==================== ENVELOPE ====================

class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint"""
    status: str = "success"
    data: Optional[T] = None
    message: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


def success(data: Any = None, message: Optional[str] = None, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success", "data": data}
    if message is not None:
        body["message"] = message
    if meta is not None:
        body["meta"] = meta
    return body


class CamelModel(BaseModel):
    """Client-facing DTO serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==================== AUTH SCHEMAS ====================

class SignupRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2, max_length=255)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()

    @field_validator("role")
    @classmethod
    def validate_signup_role(cls, v):
        if v == UserRole.OPERATOR:
            raise ValueError("Invalid role")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower()


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class UserPublic(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole


class AuthResponse(BaseModel):
    token: str
    user: UserPublic


# ==================== EQUIPMENT SCHEMAS ====================

class EquipmentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    equipment_code: str = Field(..., min_length=1, max_length=50)
    category_id: int
    manufacturer: Optional[str] = Field(None, max_length=255)
    model: Optional[str] = Field(None, max_length=255)
    serial_number: Optional[str] = Field(None, max_length=255)
    purchase_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=255)
    status: EquipmentStatus = EquipmentStatus.OPERATIONAL
    assigned_team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = Field(None, max_length=500)


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    equipment_code: Optional[str] = Field(None, min_length=1, max_length=50)
    category_id: Optional[int] = None
    manufacturer: Optional[str] = Field(None, max_length=255)
    model: Optional[str] = Field(None, max_length=255)
    serial_number: Optional[str] = Field(None, max_length=255)
    purchase_date: Optional[date] = None
    warranty_expiry_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=255)
    status: Optional[EquipmentStatus] = None
    assigned_team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = Field(None, max_length=500)


class EquipmentResponse(EquipmentBase):
    id: int
    created_at: datetime
    updated_at: datetime

    # Joined data
    category_name: Optional[str] = None
    team_name: Optional[str] = None
    department_name: Optional[str] = None
    technician_name: Optional[str] = None
    open_requests: int = 0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class EquipmentPage(BaseModel):
    items: List[EquipmentResponse]
    pagination: Pagination


class CategoryResponse(BaseModel):
    id: int
    name: str


# ==================== MAINTENANCE REQUEST SCHEMAS ====================

class RequestCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    request_type: RequestType
    equipment_id: int
    assigned_technician_id: Optional[int] = None
    priority: RequestPriority = RequestPriority.MEDIUM
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    deadline: Optional[date] = None

    @field_validator("scheduled_time")
    @classmethod
    def normalize_scheduled_time(cls, v):
        return pad_time(v)


class RequestUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_technician_id: Optional[int] = None
    priority: Optional[RequestPriority] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    deadline: Optional[date] = None
    technician_notes: Optional[str] = None
    scrap_reason: Optional[str] = None

    @field_validator("scheduled_time")
    @classmethod
    def normalize_scheduled_time(cls, v):
        return pad_time(v)


class StageUpdate(BaseModel):
    stage: RequestStage
    notes: Optional[str] = None


class RequestResponse(BaseModel):
    id: int
    request_number: Optional[str] = None
    subject: str
    description: Optional[str] = None
    request_type: RequestType
    equipment_id: int
    equipment_category_id: Optional[int] = None
    maintenance_team_id: Optional[int] = None
    assigned_technician_id: Optional[int] = None
    requested_by_id: Optional[int] = None
    stage: RequestStage
    priority: RequestPriority
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    deadline: Optional[date] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_hours: Optional[float] = None
    technician_notes: Optional[str] = None
    scrap_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # Joined data
    equipment_name: Optional[str] = None
    equipment_code: Optional[str] = None
    technician_name: Optional[str] = None
    technician_avatar: Optional[str] = None
    team_name: Optional[str] = None


class KanbanBoard(BaseModel):
    new: List[RequestResponse] = []
    in_progress: List[RequestResponse] = []
    repaired: List[RequestResponse] = []
    scrap: List[RequestResponse] = []


class CalendarEvent(CamelModel):
    id: Optional[str] = None  # request number
    request_id: int
    equipment: str
    subject: str
    type: RequestType
    scheduled_date: date
    scheduled_time: str = "00:00"
    technician: str = "Unassigned"
    stage: RequestStage
    priority: RequestPriority


class StageHistoryResponse(BaseModel):
    id: int
    request_id: int
    from_stage: Optional[RequestStage] = None
    to_stage: RequestStage
    changed_by_id: Optional[int] = None
    changed_by_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class EquipmentDetail(EquipmentResponse):
    """Equipment with its latest maintenance requests"""
    maintenance_requests: List[RequestResponse] = []


# ==================== TEAM SCHEMAS ====================

class TeamCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=255)
    description: str = Field(..., min_length=1)
    team_leader_id: Optional[int] = None


class TeamUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    team_leader_id: Optional[int] = None
    status: Optional[LifecycleStatus] = None


class TeamResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    team_leader_id: Optional[int] = None
    team_leader_name: Optional[str] = None
    status: LifecycleStatus
    member_count: int = 0
    active_requests: int = 0
    completed_this_month: int = 0
    created_at: datetime
    updated_at: datetime


class TeamMemberResponse(BaseModel):
    id: int
    team_id: int
    user_id: int
    role: Optional[str] = None
    joined_at: datetime
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[UserRole] = None
    user_avatar: Optional[str] = None
    active_requests: int = 0


class TeamDetail(TeamResponse):
    members: List[TeamMemberResponse] = []


class AddMemberRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    user_id: int
    role: Optional[str] = Field(None, max_length=100)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    avatar_url: Optional[str] = None


class TechnicianResponse(UserSummary):
    teams: List[str] = []


# ==================== WORK CENTER SCHEMAS ====================

class WorkCenterCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    category: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    department_id: Optional[int] = None
    assigned_team_id: Optional[int] = None
    assigned_member_id: Optional[int] = None
    status: WorkCenterStatus = WorkCenterStatus.ACTIVE
    capacity: int = Field(100, ge=0)
    description: Optional[str] = None


class WorkCenterUpdate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    department_id: Optional[int] = None
    assigned_team_id: Optional[int] = None
    assigned_member_id: Optional[int] = None
    status: Optional[WorkCenterStatus] = None
    capacity: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class WorkCenterResponse(CamelModel):
    id: int
    name: str
    code: str
    category: str
    location: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    assigned_team_id: Optional[int] = None
    assigned_team_name: Optional[str] = None
    assigned_member_id: Optional[int] = None
    assigned_member_name: Optional[str] = None
    status: WorkCenterStatus
    capacity: int
    utilization: Optional[int] = None
    open_requests: Optional[int] = None
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ==================== DASHBOARD SCHEMAS ====================

class StatWithTrend(CamelModel):
    value: int
    trend: int  # Percentage change from yesterday
    trend_direction: str  # up, down, neutral


class DashboardStats(CamelModel):
    total_equipment: StatWithTrend
    active_requests: StatWithTrend
    completed_today: StatWithTrend
    overdue: StatWithTrend


class RecentRequest(CamelModel):
    id: int
    request_number: Optional[str] = None
    subject: str
    description: Optional[str] = None
    equipment_id: int
    equipment_name: str
    equipment_code: str
    stage: RequestStage
    priority: RequestPriority
    request_type: RequestType
    scheduled_date: Optional[date] = None
    deadline: Optional[date] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_hours: Optional[float] = None
    assigned_technician_id: Optional[int] = None
    technician_name: Optional[str] = None
    requested_by_id: Optional[int] = None
    requester_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UpcomingMaintenance(CamelModel):
    id: int
    request_number: Optional[str] = None
    subject: str
    equipment_id: int
    equipment_name: str
    equipment_code: str
    scheduled_date: date
    scheduled_time: Optional[str] = None
    request_type: RequestType
    assigned_technician_id: Optional[int] = None
    technician_name: Optional[str] = None


class CriticalEquipment(CamelModel):
    id: int
    name: str
    equipment_code: str
    status: EquipmentStatus
    health_percentage: int
    days_since_maintenance: int
    open_requests: int
    overdue_requests: int


class TechnicianLoad(CamelModel):
    technician_id: int
    name: str
    avatar_url: Optional[str] = None
    active_requests: int
    overdue_requests: int
    completed_this_month: int
    utilization: int


class OpenRequestsSummary(CamelModel):
    pending: int
    in_progress: int
    overdue: int
    total: int
