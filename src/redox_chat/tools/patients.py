"""Patient tools.

API endpoints used:
- POST <endpoint>                    — Redox PatientSearch query
- POST <fhir>/Patient/_search        — FHIR patient search

Errors from RedoxClient are not caught here: they are infrastructure
failures and end the turn.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from redox_chat.redox_client import RedoxClient

# The sandbox destination that answers PatientSearch queries.
PATIENT_SEARCH_DESTINATION = {
    "ID": "0f4bd1d1-451d-4351-8cfd-b767d1b488d6",
    "Name": "Patient Search Endpoint",
}

# Sandbox patients. The two records deliberately use different field
# conventions (Redox data model vs. FHIR search parameters).
SAMPLE_PATIENTS: list[dict[str, str]] = [
    {
        "FirstName": "Timothy",
        "LastName": "Bixby",
        "DOB": "2008-01-06",
    },
    {
        "given": "Keva",
        "family": "Green",
        "birthdate": "1995-08-26",
    },
]


class NoArguments(BaseModel):
    """Input for tools that take no arguments."""


class PatientDemographics(BaseModel):
    FirstName: str = Field(description="The patient's first name")
    LastName: str = Field(description="The patient's last name")
    DOB: str = Field(description="The patient's date of birth")


async def get_patients(args: NoArguments) -> dict[str, Any]:
    """Get a list of patients."""
    return {"patients": [dict(p) for p in SAMPLE_PATIENTS]}


def patient_search_query(demographics: PatientDemographics) -> dict[str, Any]:
    """Build the Redox PatientSearch query message for the given demographics."""
    return {
        "Meta": {
            "DataModel": "PatientSearch",
            "EventType": "Query",
            "Destinations": [dict(PATIENT_SEARCH_DESTINATION)],
        },
        "Patient": {
            "Demographics": demographics.model_dump(),
        },
    }


async def patient_search(client: RedoxClient, demographics: PatientDemographics) -> Any:
    """Search for a patient."""
    return await client.post(patient_search_query(demographics))


async def get_keva_green_details(client: RedoxClient, args: NoArguments) -> Any:
    """Get Keva Green's details."""
    return await client.fhir_post(
        "Patient/_search",
        {
            "given": "Keva",
            "family": "Green",
            "birthdate": "1995-08-26",
        },
    )
