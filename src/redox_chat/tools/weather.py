"""Weather lookup tool.

Returns canned data; there is no weather API behind it.
"""

from __future__ import annotations

import json
from typing import Literal

from pydantic import BaseModel, Field


class CurrentWeatherInput(BaseModel):
    location: str = Field(description="The city and state, e.g. San Francisco, CA")
    unit: Literal["celsius", "fahrenheit"] | None = None


async def get_current_weather(args: CurrentWeatherInput) -> str:
    """Get the current weather in a given location."""
    weather_info = {
        "location": args.location,
        "temperature": "72",
        "unit": args.unit or "fahrenheit",
        "forecast": ["sunny", "windy"],
    }
    return json.dumps(weather_info)
