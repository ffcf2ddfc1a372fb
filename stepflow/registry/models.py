"""Pydantic models describing definition payloads."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..contracts import WorkflowDefinition, WorkflowStep
from ..exceptions import WorkflowValidationError


class WorkflowDefinitionDraft(BaseModel):
    """Definition as submitted for creation or replacement.

    Only presence of the required string fields is checked. ``start_at`` and
    ``next_step_id`` are not checked against ``steps``.
    """

    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    start_at: str = Field(..., min_length=1)
    steps: Dict[str, WorkflowStep] = Field(default_factory=dict)

    def to_definition(self, definition_id: str) -> WorkflowDefinition:
        return WorkflowDefinition(
            id=definition_id,
            name=self.name,
            description=self.description,
            start_at=self.start_at,
            steps={key: step.model_copy() for key, step in self.steps.items()},
        )


def _format_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_definition(data: Any) -> WorkflowDefinitionDraft:
    """Validate raw definition data.

    Raises:
        WorkflowValidationError: If required fields are missing or empty.
    """
    if isinstance(data, WorkflowDefinitionDraft):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude={"id"})
    try:
        return WorkflowDefinitionDraft.model_validate(data)
    except ValidationError as exc:
        raise WorkflowValidationError(
            "Invalid workflow definition", _format_errors(exc)
        ) from exc


def load_definition_file(path: str | Path) -> WorkflowDefinitionDraft:
    """Read a definition draft from a YAML or JSON file."""
    path = Path(path)
    text = path.read_text()
    if path.suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise WorkflowValidationError(f"Invalid JSON in {path}: {exc}") from exc
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise WorkflowValidationError(f"Invalid YAML in {path}: {exc}") from exc
    return parse_definition(data or {})
