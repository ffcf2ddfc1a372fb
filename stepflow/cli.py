"""Command line interface for managing and running stepflow workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer

from stepflow import create_engine, get_definition_registry, get_store, load_config
from stepflow.contracts import WorkflowDefinition, WorkflowInstance
from stepflow.exceptions import InstanceNotFoundError, StepflowError
from stepflow.registry import load_definition_file

app = typer.Typer(help="CLI for stepflow workflows")

# Command groups
definition_app = typer.Typer(help="Commands for managing workflow definitions")
workflow_app = typer.Typer(help="Commands for running and inspecting workflow instances")

app.add_typer(definition_app, name="definition")
app.add_typer(workflow_app, name="workflow")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, help="Logging level (defaults to log_level from config)"
    ),
) -> None:
    """stepflow CLI entry point."""
    level = (log_level or load_config().log_level).upper()
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _echo_definition(definition: WorkflowDefinition) -> None:
    typer.echo(f"Definition {definition.id}: {definition.name}")
    if definition.description:
        typer.echo(f"Description: {definition.description}")
    typer.echo(f"Start at: {definition.start_at}")
    for step_id, step in definition.steps.items():
        typer.echo(
            f"- {step_id}: {step.name} [{step.function_name}] -> {step.next_step_id or 'END'}"
        )


def _echo_instance(instance: WorkflowInstance) -> None:
    typer.echo(f"Instance {instance.instance_id}: {instance.status.value}")
    typer.echo(
        f"Definition: {instance.workflow_definition_name} ({instance.workflow_definition_id})"
    )
    typer.echo(f"Current step: {instance.current_step_id or '-'}")
    if instance.error:
        typer.echo(f"Error: {instance.error}")
    typer.echo(f"Payload: {json.dumps(instance.current_payload, default=str)}")
    for record in instance.history:
        line = (
            f"- {record.step_id} [{record.function_name}]: {record.status.value}"
            f" ({record.started_at} -> {record.ended_at})"
        )
        if record.error:
            line += f" {record.error}"
        typer.echo(line)


@definition_app.command("create")
def definition_create(
    path: Path,
    definition_id: Optional[str] = typer.Option(
        None, "--id", help="Explicit definition id (default: generated)"
    ),
) -> None:
    """
    Register a workflow definition from a YAML or JSON file.

    Example:
        stepflow definition create ./signup.yaml
        stepflow definition create ./signup.json --id user-signup
    """

    async def _create() -> WorkflowDefinition:
        draft = load_definition_file(path)
        return await get_definition_registry().create(draft, definition_id=definition_id)

    if not path.exists():
        _fail("Specified path does not exist")
    try:
        definition = asyncio.run(_create())
    except StepflowError as e:
        _fail(str(e))
    typer.echo(f"Created definition {definition.id}: {definition.name}")


@definition_app.command("replace")
def definition_replace(definition_id: str, path: Path) -> None:
    """
    Replace the definition stored under an id with the contents of a file.

    Example:
        stepflow definition replace user-signup ./signup-v2.yaml
    """

    async def _replace() -> WorkflowDefinition:
        draft = load_definition_file(path)
        return await get_definition_registry().replace(definition_id, draft)

    if not path.exists():
        _fail("Specified path does not exist")
    try:
        definition = asyncio.run(_replace())
    except StepflowError as e:
        _fail(str(e))
    typer.echo(f"Replaced definition {definition.id}: {definition.name}")


@definition_app.command("list")
def definition_list() -> None:
    """List registered workflow definitions."""
    definitions = asyncio.run(get_definition_registry().list_definitions())
    if not definitions:
        typer.echo("No definitions found")
        return
    for definition in definitions:
        typer.echo(f"{definition.id}\t{definition.name}")


@definition_app.command("show")
def definition_show(definition_id: str) -> None:
    """Show a definition and its steps."""
    definition = asyncio.run(get_definition_registry().get_by_id(definition_id))
    if definition is None:
        _fail(f'Workflow definition with ID "{definition_id}" not found.')
    _echo_definition(definition)


@definition_app.command("delete")
def definition_delete(definition_id: str) -> None:
    """Delete a definition by id."""
    try:
        asyncio.run(get_definition_registry().delete(definition_id))
    except StepflowError as e:
        _fail(str(e))
    typer.echo(f"Deleted definition {definition_id}")


@workflow_app.command("run")
def workflow_run(
    identifier: str,
    payload: Optional[str] = typer.Option(
        None, help="JSON document used as the trigger payload"
    ),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait at most"),
) -> None:
    """
    Trigger a workflow by definition id or name and wait for it to finish.

    The run loop lives inside this process, so the command stays up until
    the instance is COMPLETED or FAILED.

    Example:
        stepflow workflow run sample-user-signup --payload '{"email": "a@b.c", "password": "x"}'
    """
    try:
        data = json.loads(payload) if payload else None
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON payload: {e}")

    async def _run() -> WorkflowInstance:
        engine = await create_engine()
        try:
            instance = await engine.trigger(identifier, data)
            typer.echo(f"Triggered instance {instance.instance_id}")
            return await engine.wait_for(instance.instance_id, timeout=timeout)
        finally:
            await engine.close()

    try:
        instance = asyncio.run(_run())
    except StepflowError as e:
        _fail(str(e))
    except asyncio.TimeoutError:
        _fail("Timed out waiting for the workflow instance")
    _echo_instance(instance)


@workflow_app.command("list")
def workflow_list() -> None:
    """List workflow instances with their current status."""
    instances = asyncio.run(get_store().list_instances())
    if not instances:
        typer.echo("No workflow instances found")
        return
    for instance in instances:
        typer.echo(
            f"{instance.instance_id}\t{instance.workflow_definition_name}\t{instance.status.value}"
        )


@workflow_app.command("show")
def workflow_show(instance_id: str) -> None:
    """
    Show status, payload and step history of an instance.

    Example:
        stepflow workflow show 0b7d5c1e-...
    """
    instance = asyncio.run(get_store().load(instance_id))
    if instance is None:
        _fail(str(InstanceNotFoundError(instance_id)))
    _echo_instance(instance)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
