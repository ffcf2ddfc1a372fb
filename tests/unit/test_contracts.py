"""Data contract tests."""

import pytest

from stepflow.contracts import (
    EventType,
    WorkflowDefinition,
    WorkflowEvent,
    WorkflowInstance,
    WorkflowInstanceStatus,
)
from stepflow.exceptions import InvalidTransitionError


def _definition() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="wf-1",
        name="Two steps",
        start_at="first",
        steps={
            "first": {"name": "First", "function_name": "f1", "next_step_id": "second"},
            "second": {"name": "Second", "function_name": "f2"},
        },
    )


def test_step_ids_default_to_mapping_keys():
    definition = _definition()
    assert definition.steps["first"].id == "first"
    assert definition.steps["second"].id == "second"
    assert definition.steps["second"].is_last
    assert definition.get_step("missing") is None


def test_definition_json_round_trip():
    definition = _definition()
    assert WorkflowDefinition.from_json(definition.to_json()) == definition


def test_instance_status_moves_forward_only():
    instance = WorkflowInstance(workflow_definition_id="wf-1", workflow_definition_name="x")
    assert instance.status == WorkflowInstanceStatus.PENDING
    assert instance.is_runnable

    instance.transition_to(WorkflowInstanceStatus.RUNNING)
    instance.transition_to(WorkflowInstanceStatus.COMPLETED)
    assert instance.is_terminal

    with pytest.raises(InvalidTransitionError):
        instance.transition_to(WorkflowInstanceStatus.RUNNING)


def test_pending_cannot_skip_to_completed():
    instance = WorkflowInstance(workflow_definition_id="wf-1", workflow_definition_name="x")
    with pytest.raises(InvalidTransitionError):
        instance.transition_to(WorkflowInstanceStatus.COMPLETED)


def test_reserved_statuses_are_never_reachable():
    instance = WorkflowInstance(workflow_definition_id="wf-1", workflow_definition_name="x")
    instance.transition_to(WorkflowInstanceStatus.RUNNING)
    with pytest.raises(InvalidTransitionError):
        instance.transition_to(WorkflowInstanceStatus.CANCELLED)


def test_instance_json_round_trip_keeps_payload_shape():
    instance = WorkflowInstance(
        workflow_definition_id="wf-1",
        workflow_definition_name="x",
        initial_payload={"a": [1, {"b": None}]},
        current_payload="replaced",
    )
    restored = WorkflowInstance.from_json(instance.to_json())
    assert restored.initial_payload == {"a": [1, {"b": None}]}
    assert restored.current_payload == "replaced"
    assert restored.started_at == instance.started_at


def test_event_json_omits_unset_fields():
    event = WorkflowEvent(type=EventType.STEP_STARTED, instance_id="i-1", step_id="s1")
    data = event.to_json()
    assert '"type":"STEP_STARTED"' in data
    assert "error" not in data
    assert WorkflowEvent.from_json(data).step_id == "s1"
