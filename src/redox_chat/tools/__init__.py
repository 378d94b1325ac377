"""Tools the model can call during a conversation.

Each module pairs a pydantic input model (the tool's argument schema) with
an async function that receives a validated instance of it. The registry
(redox_chat.registry) gives each tool its model-facing name and
description.

- weather.py:  Current weather (canned data, no network call)
- patients.py: Patient list, Redox patient search, FHIR patient lookup
"""
