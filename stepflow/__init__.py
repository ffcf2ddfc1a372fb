"""stepflow: linear, persisted workflows of async function steps."""

from .config import StepflowConfig, load_config
from .contracts import (
    EventType,
    StepExecutionRecord,
    StepExecutionStatus,
    WorkflowDefinition,
    WorkflowEvent,
    WorkflowInstance,
    WorkflowInstanceStatus,
    WorkflowStep,
)
from .engine import WorkflowEngine, create_engine
from .functions import FUNCTIONS, FunctionRegistry
from .persistence import get_store
from .registry import get_definition_registry
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "EventType",
    "FUNCTIONS",
    "FunctionRegistry",
    "StepExecutionRecord",
    "StepExecutionStatus",
    "StepflowConfig",
    "WorkflowDefinition",
    "WorkflowEngine",
    "WorkflowEvent",
    "WorkflowInstance",
    "WorkflowInstanceStatus",
    "WorkflowStep",
    "create_engine",
    "get_definition_registry",
    "get_store",
    "get_transport",
    "load_config",
]
