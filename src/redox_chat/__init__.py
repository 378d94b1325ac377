"""Redox chat agent.

A command-line chat in which an OpenAI model can call a fixed set of tools,
some of them backed by the Redox healthcare APIs (OAuth2 client credentials
with a signed JWT assertion).
"""
