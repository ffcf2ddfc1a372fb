"""Bundled sample workflow definitions."""

from __future__ import annotations

import logging

from .exceptions import DefinitionConflictError
from .registry import DefinitionRegistry

logger = logging.getLogger(__name__)

SAMPLE_SIGNUP_ID = "sample-user-signup"

SAMPLE_SIGNUP = {
    "name": "Sample User Signup Workflow",
    "description": "A sample workflow to demonstrate user signup process.",
    "start_at": "validateInput",
    "steps": {
        "validateInput": {
            "name": "Validate User Input",
            "function_name": "validateUserData",
            "result_path": "$.validationResult",
            "next_step_id": "createUser",
        },
        "createUser": {
            "name": "Create User in DB",
            "function_name": "createUserInDB",
            "input_path": "$.validationResult",
            "result_path": "$.userCreationResult",
            "next_step_id": "sendEmail",
        },
        "sendEmail": {
            "name": "Send Welcome Email",
            "function_name": "sendWelcomeEmail",
            "input_path": "$.userCreationResult",
            "result_path": "$.emailSentResult",
            "next_step_id": "logAnalytics",
        },
        "logAnalytics": {
            "name": "Log Signup Analytics",
            "function_name": "logAnalytics",
            "input_path": "$.emailSentResult",
            "next_step_id": None,
        },
    },
}

SAMPLES = {SAMPLE_SIGNUP_ID: SAMPLE_SIGNUP}


async def load_sample_definitions(registry: DefinitionRegistry) -> None:
    """Register the bundled samples, skipping any already present."""
    for definition_id, data in SAMPLES.items():
        if await registry.get_by_id(definition_id) is not None:
            continue
        try:
            definition = await registry.create(data, definition_id=definition_id)
        except DefinitionConflictError:
            logger.warning(f"Sample workflow {definition_id} clashes with an existing name")
            continue
        logger.info(f"Loaded sample workflow: {definition.name}")
