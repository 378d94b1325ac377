"""The catalog of tools the model may call.

A FunctionRegistry is built once at startup and never changes. It does no
validation of its own: the orchestrator validates model-supplied arguments
against each tool's schema at dispatch time.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from functools import partial
from typing import Any

from langchain_core.utils.function_calling import convert_to_openai_function
from pydantic import BaseModel

from redox_chat.redox_client import RedoxClient
from redox_chat.tools.patients import (
    NoArguments,
    PatientDemographics,
    get_keva_green_details,
    get_patients,
    patient_search,
)
from redox_chat.tools.weather import CurrentWeatherInput, get_current_weather

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FunctionDescription:
    """One callable tool.

    Attributes:
        name: The name the model uses to request the tool.
        description: Tells the model when the tool is useful.
        schema: Pydantic model the raw arguments are validated into.
        func: Receives the validated schema instance; returns text or any
            JSON-serializable value.
    """

    name: str
    description: str
    schema: type[BaseModel]
    func: Callable[[Any], Awaitable[Any]]

    def declaration(self) -> dict[str, Any]:
        """The OpenAI function-calling declaration for this tool."""
        function = convert_to_openai_function(self.schema)
        return {
            "name": self.name,
            "description": self.description,
            "parameters": function["parameters"],
        }


class FunctionRegistry:
    """Ordered, immutable collection of FunctionDescriptions."""

    def __init__(self, functions: Iterable[FunctionDescription]) -> None:
        self._functions = tuple(functions)
        self._by_name: dict[str, FunctionDescription] = {}
        for fn in self._functions:
            if fn.name in self._by_name:
                raise ValueError(f"Duplicate function name: {fn.name}")
            self._by_name[fn.name] = fn

    def get(self, name: str) -> FunctionDescription | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [fn.name for fn in self._functions]

    def declarations(self) -> list[dict[str, Any]]:
        """Declarations for every tool, in registry order."""
        return [fn.declaration() for fn in self._functions]

    def __iter__(self) -> Iterator[FunctionDescription]:
        return iter(self._functions)

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def build_function_registry(redox: RedoxClient) -> FunctionRegistry:
    """Build the registry of reference tools.

    Args:
        redox: Client used by the tools that call the Redox APIs.
    """
    registry = FunctionRegistry(
        [
            FunctionDescription(
                name="getCurrentWeather",
                description="Get the current weather in a given location",
                schema=CurrentWeatherInput,
                func=get_current_weather,
            ),
            FunctionDescription(
                name="getPatients",
                description="Get a list of patients",
                schema=NoArguments,
                func=get_patients,
            ),
            FunctionDescription(
                name="patientSearch",
                description="Search for a patient",
                schema=PatientDemographics,
                func=partial(patient_search, redox),
            ),
            FunctionDescription(
                name="getKevaGreenDetails",
                description="Get Keva Green's details",
                schema=NoArguments,
                func=partial(get_keva_green_details, redox),
            ),
        ]
    )
    logger.debug("Registered functions: %s", ", ".join(registry.names()))
    return registry
