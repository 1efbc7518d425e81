"""Domain layer — types, catalog, specification models, operations.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
