"""
Tests for the maintenance request stage transition table.
"""
import pytest
from datetime import datetime, timedelta

from gearguard.errors import InvalidStageTransitionError
from gearguard.models import MaintenanceRequest, RequestStage
from gearguard.services import stage_workflow

NOW = datetime(2025, 3, 10, 14, 0, 0)


def _request(stage, **kwargs):
    return MaintenanceRequest(id=1, request_number="REQ-2025-001", stage=stage, **kwargs)


@pytest.mark.unit
def test_start_sets_started_at():
    request = _request(RequestStage.NEW)
    stage_workflow.apply_transition(request, RequestStage.IN_PROGRESS, changed_by_id=7, now=NOW)

    assert request.stage == RequestStage.IN_PROGRESS
    assert request.started_at == NOW
    assert request.completed_at is None


@pytest.mark.unit
def test_started_at_is_set_only_once():
    first_start = NOW - timedelta(days=2)
    request = _request(RequestStage.IN_PROGRESS, started_at=first_start)

    stage_workflow.apply_transition(request, RequestStage.NEW, now=NOW)
    stage_workflow.apply_transition(request, RequestStage.IN_PROGRESS, now=NOW)

    assert request.started_at == first_start


@pytest.mark.unit
def test_repair_sets_completion_and_duration():
    request = _request(RequestStage.IN_PROGRESS, started_at=NOW - timedelta(hours=3, minutes=30))
    stage_workflow.apply_transition(request, RequestStage.REPAIRED, now=NOW)

    assert request.completed_at == NOW
    assert request.duration_hours == 3.5


@pytest.mark.unit
def test_scrap_from_new_sets_completed_at_only():
    request = _request(RequestStage.NEW)
    stage_workflow.apply_transition(request, RequestStage.SCRAP, now=NOW)

    assert request.completed_at == NOW
    assert request.duration_hours is None


@pytest.mark.unit
def test_reopen_clears_completion():
    request = _request(
        RequestStage.REPAIRED,
        started_at=NOW - timedelta(hours=5),
        completed_at=NOW - timedelta(hours=1),
        duration_hours=4.0,
    )
    stage_workflow.apply_transition(request, RequestStage.IN_PROGRESS, now=NOW)

    assert request.completed_at is None
    assert request.duration_hours is None
    assert request.started_at == NOW - timedelta(hours=5)


@pytest.mark.unit
def test_scrap_after_repair_keeps_completed_at():
    completed = NOW - timedelta(days=1)
    request = _request(RequestStage.REPAIRED, completed_at=completed, duration_hours=2.0)
    stage_workflow.apply_transition(request, RequestStage.SCRAP, now=NOW)

    assert request.stage == RequestStage.SCRAP
    assert request.completed_at == completed


@pytest.mark.unit
@pytest.mark.parametrize("from_stage,to_stage", [
    (RequestStage.NEW, RequestStage.REPAIRED),
    (RequestStage.NEW, RequestStage.NEW),
    (RequestStage.IN_PROGRESS, RequestStage.IN_PROGRESS),
    (RequestStage.REPAIRED, RequestStage.NEW),
    (RequestStage.SCRAP, RequestStage.NEW),
    (RequestStage.SCRAP, RequestStage.IN_PROGRESS),
    (RequestStage.SCRAP, RequestStage.REPAIRED),
])
def test_disallowed_moves_raise_before_any_change(from_stage, to_stage):
    request = _request(from_stage)

    with pytest.raises(InvalidStageTransitionError) as exc_info:
        stage_workflow.apply_transition(request, to_stage, now=NOW)

    assert exc_info.value.status_code == 409
    assert request.stage == from_stage
    assert request.started_at is None
    assert request.completed_at is None
    assert request.history == []


@pytest.mark.unit
def test_transition_appends_history():
    request = _request(RequestStage.NEW)
    entry = stage_workflow.apply_transition(
        request, RequestStage.IN_PROGRESS, changed_by_id=3, notes="On it", now=NOW
    )

    assert request.history == [entry]
    assert entry.from_stage == RequestStage.NEW
    assert entry.to_stage == RequestStage.IN_PROGRESS
    assert entry.changed_by_id == 3
    assert entry.notes == "On it"
    assert entry.created_at == NOW


@pytest.mark.unit
def test_accepts_stage_values_as_strings():
    assert stage_workflow.is_allowed("new", "in_progress")
    assert not stage_workflow.is_allowed("scrap", "new")


@pytest.mark.unit
def test_duration_without_start_is_unknown():
    assert stage_workflow.compute_duration_hours(None, NOW) is None
