"""Core data contracts for stepflow definitions, instances and events."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .exceptions import InvalidTransitionError

JSONValue = Union[str, int, float, bool, None, List[Any], Dict[str, Any]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StepType(str, Enum):
    FUNCTION = "function"


class WorkflowInstanceStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    # Reserved; the engine never enters these.
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset(
    {
        WorkflowInstanceStatus.COMPLETED,
        WorkflowInstanceStatus.FAILED,
        WorkflowInstanceStatus.TIMED_OUT,
        WorkflowInstanceStatus.CANCELLED,
    }
)

RUNNABLE_STATUSES = frozenset(
    {WorkflowInstanceStatus.PENDING, WorkflowInstanceStatus.RUNNING}
)

_ALLOWED_TRANSITIONS = {
    WorkflowInstanceStatus.PENDING: {
        WorkflowInstanceStatus.RUNNING,
        WorkflowInstanceStatus.FAILED,
    },
    WorkflowInstanceStatus.RUNNING: {
        WorkflowInstanceStatus.COMPLETED,
        WorkflowInstanceStatus.FAILED,
    },
}


class StepExecutionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class EventType(str, Enum):
    WORKFLOW_STARTED = "WORKFLOW_STARTED"
    STEP_STARTED = "STEP_STARTED"
    STEP_COMPLETED = "STEP_COMPLETED"
    STEP_FAILED = "STEP_FAILED"
    WORKFLOW_COMPLETED = "WORKFLOW_COMPLETED"
    WORKFLOW_FAILED = "WORKFLOW_FAILED"


class WorkflowStep(BaseModel):
    """One function call in a workflow chain."""

    id: Optional[str] = None
    name: str = Field(..., min_length=1)
    type: StepType = StepType.FUNCTION
    function_name: str = Field(..., min_length=1)
    input_path: Optional[str] = Field(
        default=None, description="Where to read the function input; whole payload if unset"
    )
    result_path: Optional[str] = Field(
        default=None, description="Where to write the output; merged into the root if unset"
    )
    next_step_id: Optional[str] = None

    @property
    def is_last(self) -> bool:
        return not self.next_step_id


class WorkflowDefinition(BaseModel):
    """Named template describing a linear chain of steps."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_at: str = Field(..., min_length=1)
    steps: Dict[str, WorkflowStep] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _fill_step_ids(self) -> "WorkflowDefinition":
        for key, step in self.steps.items():
            if not step.id:
                step.id = key
        return self

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        return self.steps.get(step_id)

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "WorkflowDefinition":
        return cls.model_validate_json(data)


class StepExecutionRecord(BaseModel):
    """Audit entry for a single step invocation."""

    step_id: str
    function_name: str
    status: StepExecutionStatus
    started_at: datetime
    ended_at: datetime
    input: Any = None
    output: Any = None
    error: Optional[str] = None


class WorkflowInstance(BaseModel):
    """One execution of a workflow definition against a trigger payload."""

    instance_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    workflow_definition_id: str
    workflow_definition_name: str
    status: WorkflowInstanceStatus = WorkflowInstanceStatus.PENDING
    initial_payload: Any = Field(default_factory=dict)
    current_payload: Any = Field(default_factory=dict)
    current_step_id: Optional[str] = None
    history: List[StepExecutionRecord] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utcnow)
    ended_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def is_runnable(self) -> bool:
        return self.status in RUNNABLE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def transition_to(self, status: WorkflowInstanceStatus) -> None:
        """Move to ``status``; statuses only ever move forward."""
        if status == self.status:
            return
        if status not in _ALLOWED_TRANSITIONS.get(self.status, ()):
            raise InvalidTransitionError(self.status.value, status.value)
        self.status = status

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str) -> "WorkflowInstance":
        return cls.model_validate_json(data)


class WorkflowEvent(BaseModel):
    """Lifecycle event published for an instance."""

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: EventType
    instance_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    workflow_definition_id: Optional[str] = None
    workflow_name: Optional[str] = None
    step_id: Optional[str] = None
    step_name: Optional[str] = None
    function_name: Optional[str] = None
    initial_payload: Any = None
    input: Any = None
    output: Any = None
    error: Optional[str] = None

    def to_json(self) -> str:
        """Serialize event to JSON, leaving out unset fields."""
        return self.model_dump_json(exclude_none=True)

    @classmethod
    def from_json(cls, data: str) -> "WorkflowEvent":
        return cls.model_validate_json(data)
