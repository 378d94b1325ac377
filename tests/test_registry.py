"""Tests for the function registry and its exported declarations."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from redox_chat.registry import (
    FunctionDescription,
    FunctionRegistry,
    build_function_registry,
)
from redox_chat.tools.patients import NoArguments


def _registry() -> FunctionRegistry:
    return build_function_registry(AsyncMock())


def test_reference_tools_in_order() -> None:
    assert _registry().names() == [
        "getCurrentWeather",
        "getPatients",
        "patientSearch",
        "getKevaGreenDetails",
    ]


def test_declarations_carry_name_description_and_schema() -> None:
    declarations = {d["name"]: d for d in _registry().declarations()}

    weather = declarations["getCurrentWeather"]
    assert weather["description"] == "Get the current weather in a given location"
    params = weather["parameters"]
    assert params["type"] == "object"
    assert set(params["properties"]) == {"location", "unit"}
    assert params["required"] == ["location"]
    assert "San Francisco" in params["properties"]["location"]["description"]

    search = declarations["patientSearch"]["parameters"]
    assert sorted(search["required"]) == ["DOB", "FirstName", "LastName"]

    assert declarations["getPatients"]["parameters"].get("properties", {}) == {}


def test_lookup_by_name() -> None:
    registry = _registry()
    assert registry.get("getPatients").schema is NoArguments
    assert registry.get("nope") is None
    assert "patientSearch" in registry
    assert len(registry) == 4


@pytest.mark.asyncio
async def test_redox_tools_are_bound_to_the_client() -> None:
    client = AsyncMock()
    client.fhir_post.return_value = {"total": 0}
    registry = build_function_registry(client)

    fn = registry.get("getKevaGreenDetails")
    assert await fn.func(NoArguments()) == {"total": 0}
    client.fhir_post.assert_awaited_once()


def test_duplicate_names_rejected() -> None:
    async def noop(args: NoArguments) -> str:
        return ""

    fn = FunctionDescription(name="x", description="", schema=NoArguments, func=noop)
    with pytest.raises(ValueError, match="Duplicate"):
        FunctionRegistry([fn, fn])
