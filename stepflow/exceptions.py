"""Exception hierarchy for stepflow."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "DefinitionConflictError",
    "DefinitionMissingError",
    "DefinitionNotFoundError",
    "InstanceNotFoundError",
    "InvalidTransitionError",
    "NotFoundError",
    "StepExecutionError",
    "StepMissingError",
    "StepflowError",
    "UnknownFunctionError",
    "WorkflowValidationError",
]


class StepflowError(Exception):
    """Base exception for all stepflow errors."""


class NotFoundError(StepflowError):
    """A requested definition or instance does not exist."""


class DefinitionNotFoundError(NotFoundError):
    """Raised when no workflow definition matches an id or name."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f'Workflow definition with ID or Name "{identifier}" not found.')


class InstanceNotFoundError(NotFoundError):
    """Raised when no workflow instance is stored under an id."""

    def __init__(self, instance_id: str) -> None:
        self.instance_id = instance_id
        super().__init__(f'Workflow instance "{instance_id}" not found.')


class DefinitionConflictError(StepflowError):
    """Raised when a definition name is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Workflow definition with name "{name}" already exists.')


class WorkflowValidationError(StepflowError):
    """Raised when a definition payload is missing required fields.

    Attributes:
        errors: Field level error messages, one per offending location.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class InvalidTransitionError(StepflowError):
    """Raised when an instance status would move backwards."""

    def __init__(self, from_status: str, to_status: str) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(f"Invalid status transition {from_status} -> {to_status}")


class StepExecutionError(StepflowError):
    """Raised when a step's function cannot be invoked or fails.

    Attributes:
        step_name: Name of the step that failed, when known.
        cause: Underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        step_name: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.step_name = step_name
        self.cause = cause
        super().__init__(message)


class UnknownFunctionError(StepExecutionError):
    """Raised when a step references a function that is not registered."""

    def __init__(self, function_name: str) -> None:
        self.function_name = function_name
        super().__init__(f'Function "{function_name}" not found or not a function.')


class DefinitionMissingError(StepflowError):
    """The definition of a running instance vanished before processing."""

    def __init__(self, definition_id: str) -> None:
        self.definition_id = definition_id
        super().__init__(f"Critical: Workflow definition {definition_id} missing.")


class StepMissingError(StepflowError):
    """A step id referenced by an instance is absent from its definition."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(f"Step definition for {step_id} missing.")
