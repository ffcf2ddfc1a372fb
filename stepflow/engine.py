"""Execution engine driving workflow instances through their steps."""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Dict, Optional

from pydantic import TypeAdapter

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
    utcnow,
)
from .exceptions import (
    DefinitionMissingError,
    DefinitionNotFoundError,
    InstanceNotFoundError,
    StepExecutionError,
    StepMissingError,
)
from .functions import FUNCTIONS, FunctionRegistry, load_function_modules
from .paths import get_path, set_path
from .persistence import InstanceStore, get_store
from .registry import DefinitionRegistry, get_definition_registry, load_definition_file
from .samples import load_sample_definitions
from .transports import BaseTransport, get_transport

logger = logging.getLogger(__name__)

DEFAULT_EVENTS_TOPIC = "workflow_events"

# Step outputs must serialize the same way the instance document does.
_OUTPUT_ADAPTER = TypeAdapter(Any)


class WorkflowEngine:
    """Runs linear workflows as detached asyncio tasks.

    ``trigger`` persists a PENDING instance and returns immediately; the run
    loop then reloads the instance from the store, executes each step in
    order and persists after every step. Progress is observed through
    ``get_instance`` or the published events.
    """

    def __init__(
        self,
        definitions: DefinitionRegistry,
        store: InstanceStore,
        transport: BaseTransport,
        functions: FunctionRegistry | None = None,
        topic: str = DEFAULT_EVENTS_TOPIC,
    ) -> None:
        self._definitions = definitions
        self._store = store
        self._transport = transport
        self._functions = functions or FUNCTIONS
        self.topic = topic
        self._running: Dict[str, asyncio.Task[None]] = {}

    @property
    def definitions(self) -> DefinitionRegistry:
        return self._definitions

    # ------------------------------------------------------------------
    # Public API
    async def trigger(
        self, identifier: str, payload: Optional[Any] = None
    ) -> WorkflowInstance:
        """Start a new instance of the definition with id or name ``identifier``.

        Raises:
            DefinitionNotFoundError: If ``identifier`` matches no definition.
        """
        definition = await self._resolve_definition(identifier)
        payload = {} if payload is None else payload

        instance = WorkflowInstance(
            workflow_definition_id=definition.id,
            workflow_definition_name=definition.name,
            status=WorkflowInstanceStatus.PENDING,
            initial_payload=copy.deepcopy(payload),
            current_payload=copy.deepcopy(payload),
            current_step_id=definition.start_at,
        )

        await self._store.save(instance)
        logger.info(
            f"Workflow instance {instance.instance_id} ({definition.name}) created and PENDING."
        )
        await self._emit(
            WorkflowEvent(
                type=EventType.WORKFLOW_STARTED,
                instance_id=instance.instance_id,
                workflow_definition_id=definition.id,
                workflow_name=definition.name,
                initial_payload=instance.initial_payload,
                timestamp=instance.started_at,
            )
        )

        self._schedule(instance.instance_id, definition)
        return instance

    async def get_instance(self, instance_id: str) -> WorkflowInstance:
        """Return the persisted snapshot of an instance.

        Raises:
            InstanceNotFoundError: If no instance is stored under ``instance_id``.
        """
        instance = await self._store.load(instance_id)
        if instance is None:
            raise InstanceNotFoundError(instance_id)
        return instance

    async def list_instances(self) -> list[WorkflowInstance]:
        return await self._store.list_instances()

    async def wait_for(
        self, instance_id: str, timeout: Optional[float] = None
    ) -> WorkflowInstance:
        """Wait for the instance's run loop, if one is active, then return it."""
        task = self._running.get(instance_id)
        if task is not None:
            await asyncio.wait_for(asyncio.shield(task), timeout)
        return await self.get_instance(instance_id)

    async def drain(self) -> None:
        """Wait until every run loop started by this engine has finished."""
        while self._running:
            await asyncio.gather(*list(self._running.values()), return_exceptions=True)

    async def close(self) -> None:
        """Cancel run loops still in flight and release connections.

        Cancelled instances stay in whatever status was last persisted.
        """
        tasks = list(self._running.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._transport.disconnect()
        await self._store.close()

    # ------------------------------------------------------------------
    # Run loop
    async def process_instance(
        self, instance_id: str, definition: WorkflowDefinition | None = None
    ) -> None:
        """Drive a stored instance from its current step to a terminal status.

        Instances that are not PENDING or RUNNING are left untouched. Step
        failures are recorded on the instance and never raised.
        """
        instance = await self._store.load(instance_id)
        if instance is None:
            logger.error(f"Instance {instance_id} not found in store for processing.")
            return

        if not instance.is_runnable:
            logger.warning(
                f"Instance {instance_id} is not in a runnable state ({instance.status.value}). Aborting."
            )
            return

        if definition is None:
            definition = await self._definitions.get_by_id(
                instance.workflow_definition_id
            )
            if definition is None:
                await self._fail_missing_definition(instance)
                return

        if instance.status == WorkflowInstanceStatus.PENDING:
            instance.transition_to(WorkflowInstanceStatus.RUNNING)
            await self._store.save(instance)

        while (
            instance.current_step_id
            and instance.status == WorkflowInstanceStatus.RUNNING
        ):
            step = definition.get_step(instance.current_step_id)
            if step is None:
                error = StepMissingError(instance.current_step_id)
                logger.error(
                    f"[{instance_id}] Step {instance.current_step_id} not found in workflow {definition.name}."
                )
                instance.transition_to(WorkflowInstanceStatus.FAILED)
                instance.error = str(error)
                break

            await self._execute_step(instance, step)

        if (
            instance.status == WorkflowInstanceStatus.RUNNING
            and not instance.current_step_id
        ):
            instance.transition_to(WorkflowInstanceStatus.COMPLETED)
            logger.info(f"[{instance_id}] Workflow {definition.name} COMPLETED successfully.")

        instance.ended_at = utcnow()
        await self._store.save(instance)

        if instance.status == WorkflowInstanceStatus.COMPLETED:
            await self._emit(
                WorkflowEvent(
                    type=EventType.WORKFLOW_COMPLETED,
                    instance_id=instance_id,
                    workflow_definition_id=definition.id,
                    workflow_name=definition.name,
                    timestamp=instance.ended_at,
                )
            )
        elif instance.status == WorkflowInstanceStatus.FAILED:
            logger.error(
                f"[{instance_id}] Workflow {definition.name} FAILED. Final error: {instance.error}"
            )
            await self._emit(
                WorkflowEvent(
                    type=EventType.WORKFLOW_FAILED,
                    instance_id=instance_id,
                    workflow_definition_id=definition.id,
                    workflow_name=definition.name,
                    error=instance.error,
                    timestamp=instance.ended_at,
                )
            )

    async def _execute_step(self, instance: WorkflowInstance, step: WorkflowStep) -> None:
        """Run one step, record it in history and persist the instance."""
        instance_id = instance.instance_id
        started_at = utcnow()
        function_input = get_path(instance.current_payload, step.input_path)
        input_snapshot = copy.deepcopy(function_input)

        logger.info(f"[{instance_id}] Executing step: {step.name} ({step.id})")
        logger.debug(f"[{instance_id}] Step {step.id} input: {input_snapshot}")
        await self._emit(
            WorkflowEvent(
                type=EventType.STEP_STARTED,
                instance_id=instance_id,
                step_id=step.id,
                step_name=step.name,
                function_name=step.function_name,
                input=copy.deepcopy(input_snapshot),
                timestamp=started_at,
            )
        )

        try:
            func = self._functions.resolve(step.function_name)
            output = await func(copy.deepcopy(function_input))
            _OUTPUT_ADAPTER.dump_json(output)
        except Exception as exc:
            error = (
                exc
                if isinstance(exc, StepExecutionError)
                else StepExecutionError(str(exc) or type(exc).__name__, step.name, exc)
            )
            ended_at = utcnow()
            logger.error(f"[{instance_id}] Step {step.name} FAILED: {error}", exc_info=exc)
            instance.history.append(
                StepExecutionRecord(
                    step_id=step.id,
                    function_name=step.function_name,
                    status=StepExecutionStatus.ERROR,
                    started_at=started_at,
                    ended_at=ended_at,
                    input=input_snapshot,
                    error=str(error),
                )
            )
            instance.transition_to(WorkflowInstanceStatus.FAILED)
            instance.error = f"Error in step {step.name}: {error}"
            instance.current_step_id = step.id
            await self._emit(
                WorkflowEvent(
                    type=EventType.STEP_FAILED,
                    instance_id=instance_id,
                    step_id=step.id,
                    step_name=step.name,
                    function_name=step.function_name,
                    error=str(error),
                    timestamp=ended_at,
                )
            )
            await self._store.save(instance)
            return

        output_snapshot = copy.deepcopy(output)
        instance.current_payload = set_path(
            instance.current_payload, step.result_path, copy.deepcopy(output)
        )
        ended_at = utcnow()
        instance.history.append(
            StepExecutionRecord(
                step_id=step.id,
                function_name=step.function_name,
                status=StepExecutionStatus.SUCCESS,
                started_at=started_at,
                ended_at=ended_at,
                input=input_snapshot,
                output=output_snapshot,
            )
        )
        instance.current_step_id = step.next_step_id
        logger.info(f"[{instance_id}] Step {step.name} COMPLETED.")
        logger.debug(f"[{instance_id}] Step {step.id} output: {output_snapshot}")
        await self._emit(
            WorkflowEvent(
                type=EventType.STEP_COMPLETED,
                instance_id=instance_id,
                step_id=step.id,
                step_name=step.name,
                function_name=step.function_name,
                output=copy.deepcopy(output_snapshot),
                timestamp=ended_at,
            )
        )
        await self._store.save(instance)

    # ------------------------------------------------------------------
    # Helpers
    async def _resolve_definition(self, identifier: str) -> WorkflowDefinition:
        definition = await self._definitions.get_by_id(identifier)
        if definition is None:
            definition = await self._definitions.get_by_name(identifier)
        if definition is None:
            raise DefinitionNotFoundError(identifier)
        return definition

    def _schedule(self, instance_id: str, definition: WorkflowDefinition) -> None:
        task = asyncio.create_task(
            self._run(instance_id, definition), name=f"stepflow:{instance_id}"
        )
        self._running[instance_id] = task
        task.add_done_callback(lambda _: self._running.pop(instance_id, None))

    async def _run(self, instance_id: str, definition: WorkflowDefinition) -> None:
        """Task body; nothing raised here reaches the caller of ``trigger``."""
        try:
            await self.process_instance(instance_id, definition)
        except Exception as exc:
            logger.exception(f"[{instance_id}] Run loop aborted by infrastructure error")
            await self._record_infrastructure_failure(instance_id, exc)

    async def _record_infrastructure_failure(
        self, instance_id: str, exc: Exception
    ) -> None:
        try:
            instance = await self._store.load(instance_id)
            if instance is None or not instance.is_runnable:
                return
            instance.transition_to(WorkflowInstanceStatus.FAILED)
            instance.error = f"Infrastructure error: {exc}"
            instance.ended_at = utcnow()
            await self._store.save(instance)
        except Exception:
            logger.exception(f"[{instance_id}] Could not record instance failure")
            return
        await self._emit(
            WorkflowEvent(
                type=EventType.WORKFLOW_FAILED,
                instance_id=instance_id,
                workflow_definition_id=instance.workflow_definition_id,
                workflow_name=instance.workflow_definition_name,
                error=instance.error,
                timestamp=instance.ended_at,
            )
        )

    async def _fail_missing_definition(self, instance: WorkflowInstance) -> None:
        error = DefinitionMissingError(instance.workflow_definition_id)
        logger.error(
            f"Workflow definition {instance.workflow_definition_id} for instance {instance.instance_id} not found."
        )
        instance.transition_to(WorkflowInstanceStatus.FAILED)
        instance.error = str(error)
        instance.ended_at = utcnow()
        await self._store.save(instance)
        await self._emit(
            WorkflowEvent(
                type=EventType.WORKFLOW_FAILED,
                instance_id=instance.instance_id,
                workflow_definition_id=instance.workflow_definition_id,
                workflow_name=instance.workflow_definition_name,
                error=instance.error,
                timestamp=instance.ended_at,
            )
        )

    async def _emit(self, event: WorkflowEvent) -> None:
        """Publish an event; failures are logged and otherwise ignored."""
        try:
            await self._transport.publish(self.topic, event)
        except Exception as e:
            logger.warning(
                f"[{event.instance_id}] Failed to publish {event.type.value} to {self.topic}: {e}"
            )


async def create_engine(config: Optional[StepflowConfig] = None) -> WorkflowEngine:
    """Build an engine from configuration.

    Imports the configured function modules, prepares the definition
    registry (samples and definition files) and wires the store and
    transport factories.
    """
    explicit = config
    config = config or load_config()

    load_function_modules(config.functions.modules)

    registry = get_definition_registry(explicit)
    if config.definitions.load_samples:
        await load_sample_definitions(registry)
    for path in config.definitions.files:
        draft = load_definition_file(path)
        if await registry.get_by_name(draft.name) is None:
            await registry.create(draft)

    return WorkflowEngine(
        definitions=registry,
        store=get_store(config=explicit),
        transport=get_transport(config=config),
        functions=FUNCTIONS,
        topic=config.transport.topic,
    )


__all__ = ["DEFAULT_EVENTS_TOPIC", "WorkflowEngine", "create_engine"]
