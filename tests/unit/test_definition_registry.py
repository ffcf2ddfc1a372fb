"""Definition registry tests."""

import asyncio
import json

import pytest

from stepflow.config import StepflowConfig
from stepflow.exceptions import (
    DefinitionConflictError,
    DefinitionNotFoundError,
    WorkflowValidationError,
)
from stepflow.registry import (
    InMemoryDefinitionRegistry,
    get_definition_registry,
    load_definition_file,
    parse_definition,
)
from stepflow.registry.redis import RedisDefinitionRegistry
from stepflow.samples import SAMPLE_SIGNUP_ID, load_sample_definitions


def _draft(name: str = "Signup") -> dict:
    return {
        "name": name,
        "start_at": "s1",
        "steps": {
            "s1": {"name": "Step 1", "function_name": "f1", "next_step_id": "s2"},
            "s2": {"name": "Step 2", "function_name": "f2"},
        },
    }


def test_parse_definition_requires_string_fields():
    with pytest.raises(WorkflowValidationError) as exc_info:
        parse_definition({"name": "", "steps": {}})
    errors = exc_info.value.errors
    assert any(e.startswith("name") for e in errors)
    assert any(e.startswith("start_at") for e in errors)


def test_parse_definition_requires_step_function_name():
    data = _draft()
    del data["steps"]["s2"]["function_name"]
    with pytest.raises(WorkflowValidationError):
        parse_definition(data)


def test_parse_definition_does_not_check_graph_consistency():
    data = _draft()
    data["start_at"] = "nowhere"
    data["steps"]["s1"]["next_step_id"] = "also-nowhere"
    draft = parse_definition(data)
    assert draft.start_at == "nowhere"


def test_load_definition_file_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "wf.yaml"
    yaml_path.write_text(
        """
name: From YAML
start_at: only
steps:
  only:
    name: Only step
    function_name: f1
"""
    )
    json_path = tmp_path / "wf.json"
    json_path.write_text(json.dumps(_draft("From JSON")))

    assert load_definition_file(yaml_path).name == "From YAML"
    assert load_definition_file(json_path).steps["s2"].function_name == "f2"


@pytest.mark.asyncio
async def test_inmemory_registry_crud():
    registry = InMemoryDefinitionRegistry()

    created = await registry.create(_draft())
    assert created.id
    assert created.steps["s1"].id == "s1"
    assert await registry.get_by_id(created.id) == created
    assert await registry.get_by_name("Signup") == created
    assert [d.id for d in await registry.list_definitions()] == [created.id]

    replacement = _draft("Signup v2")
    replaced = await registry.replace(created.id, replacement)
    assert replaced.id == created.id
    assert replaced.name == "Signup v2"
    assert await registry.get_by_name("Signup") is None

    await registry.delete(created.id)
    assert await registry.get_by_id(created.id) is None
    with pytest.raises(DefinitionNotFoundError):
        await registry.delete(created.id)


@pytest.mark.asyncio
async def test_inmemory_registry_name_conflicts():
    registry = InMemoryDefinitionRegistry()
    first = await registry.create(_draft("A"))
    other = await registry.create(_draft("B"))

    with pytest.raises(DefinitionConflictError):
        await registry.create(_draft("A"))
    with pytest.raises(DefinitionConflictError):
        await registry.replace(other.id, _draft("A"))
    with pytest.raises(DefinitionNotFoundError):
        await registry.replace("missing", _draft("C"))

    # replacing a definition under its own name is fine
    await registry.replace(first.id, _draft("A"))


@pytest.mark.asyncio
async def test_concurrent_creates_with_same_name_only_one_wins():
    registry = InMemoryDefinitionRegistry()
    results = await asyncio.gather(
        *(registry.create(_draft("Race")) for _ in range(5)), return_exceptions=True
    )
    created = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, DefinitionConflictError)]
    assert len(created) == 1
    assert len(conflicts) == 4


@pytest.mark.asyncio
async def test_redis_registry_crud(fake_redis):
    registry = RedisDefinitionRegistry(client=fake_redis)

    created = await registry.create(_draft(), definition_id="wf-1")
    assert fake_redis.data["stepflow:definition-name:Signup"] == "wf-1"
    assert (await registry.get_by_id("wf-1")).name == "Signup"
    assert (await registry.get_by_name("Signup")).id == "wf-1"
    assert [d.id for d in await registry.list_definitions()] == ["wf-1"]

    with pytest.raises(DefinitionConflictError):
        await registry.create(_draft())

    await registry.replace(created.id, _draft("Renamed"))
    assert await registry.get_by_name("Signup") is None
    assert (await registry.get_by_name("Renamed")).id == "wf-1"

    await registry.delete("wf-1")
    assert fake_redis.data == {}
    with pytest.raises(DefinitionNotFoundError):
        await registry.delete("wf-1")


@pytest.mark.asyncio
async def test_redis_registry_releases_name_when_id_taken(fake_redis):
    registry = RedisDefinitionRegistry(client=fake_redis)
    await registry.create(_draft("A"), definition_id="wf-1")

    with pytest.raises(DefinitionConflictError):
        await registry.create(_draft("B"), definition_id="wf-1")
    assert "stepflow:definition-name:B" not in fake_redis.data


@pytest.mark.asyncio
async def test_sample_definitions_load_once():
    registry = InMemoryDefinitionRegistry()
    await load_sample_definitions(registry)
    await load_sample_definitions(registry)

    definitions = await registry.list_definitions()
    assert [d.id for d in definitions] == [SAMPLE_SIGNUP_ID]
    sample = definitions[0]
    assert sample.start_at == "validateInput"
    assert sample.steps["logAnalytics"].next_step_id is None


def test_get_definition_registry_is_cached():
    first = get_definition_registry()
    assert isinstance(first, InMemoryDefinitionRegistry)
    assert get_definition_registry() is first


def test_get_definition_registry_redis_backend():
    config = StepflowConfig(definitions={"backend": "redis", "redis": {"host": "h", "port": 1}})
    registry = get_definition_registry(config)
    assert isinstance(registry, RedisDefinitionRegistry)
    assert registry.host == "h"
