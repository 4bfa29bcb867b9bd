"""
Stage workflow for maintenance requests.

The Kanban board only allows the moves listed in TRANSITIONS; each allowed
move carries the timestamp effects it applies to the request.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from gearguard.errors import InvalidStageTransitionError
from gearguard.models import MaintenanceRequest, RequestStage, RequestStageHistory

logger = logging.getLogger(__name__)


def _start(request: MaintenanceRequest, now: datetime):
    if request.started_at is None:
        request.started_at = now


def _complete(request: MaintenanceRequest, now: datetime):
    request.completed_at = now


def _complete_with_duration(request: MaintenanceRequest, now: datetime):
    request.completed_at = now
    request.duration_hours = compute_duration_hours(request.started_at, now)


def _reopen(request: MaintenanceRequest, now: datetime):
    request.completed_at = None
    request.duration_hours = None


def _no_effect(request: MaintenanceRequest, now: datetime):
    pass


Effect = Callable[[MaintenanceRequest, datetime], None]

TRANSITIONS: Dict[Tuple[RequestStage, RequestStage], Effect] = {
    (RequestStage.NEW, RequestStage.IN_PROGRESS): _start,
    (RequestStage.NEW, RequestStage.SCRAP): _complete,
    (RequestStage.IN_PROGRESS, RequestStage.NEW): _no_effect,
    (RequestStage.IN_PROGRESS, RequestStage.REPAIRED): _complete_with_duration,
    (RequestStage.IN_PROGRESS, RequestStage.SCRAP): _complete_with_duration,
    (RequestStage.REPAIRED, RequestStage.IN_PROGRESS): _reopen,
    (RequestStage.REPAIRED, RequestStage.SCRAP): _no_effect,
}


def compute_duration_hours(started_at: Optional[datetime], completed_at: datetime) -> Optional[float]:
    """Hours between start and completion, rounded to 2 decimals"""
    if started_at is None:
        return None
    seconds = (completed_at - started_at).total_seconds()
    return round(max(seconds, 0) / 3600, 2)


def is_allowed(from_stage: RequestStage, to_stage: RequestStage) -> bool:
    return (RequestStage(from_stage), RequestStage(to_stage)) in TRANSITIONS


def apply_transition(
    request: MaintenanceRequest,
    to_stage: RequestStage,
    changed_by_id: Optional[int] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RequestStageHistory:
    """
    Move a request to a new stage.

    Validates the edge before touching the request, applies the edge's
    effects, and appends a history row to ``request.history``. The caller
    owns the transaction.

    Raises:
        InvalidStageTransitionError: the move is not in TRANSITIONS
    """
    from_stage = RequestStage(request.stage)
    to_stage = RequestStage(to_stage)

    effect = TRANSITIONS.get((from_stage, to_stage))
    if effect is None:
        raise InvalidStageTransitionError(from_stage.value, to_stage.value)

    now = now or datetime.now()
    effect(request, now)
    request.stage = to_stage

    entry = RequestStageHistory(
        from_stage=from_stage,
        to_stage=to_stage,
        changed_by_id=changed_by_id,
        notes=notes,
        created_at=now,
    )
    request.history.append(entry)

    logger.info(
        f"Request {request.request_number or request.id}: "
        f"{from_stage.value} -> {to_stage.value} (by user {changed_by_id})"
    )
    return entry
