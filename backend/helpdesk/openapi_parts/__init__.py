"""Modular pieces for the programmatic OpenAPI builder.

This package holds the registries and helpers that ``helpdesk.openapi``
imports to keep the document generation readable as the API grows.
"""

__all__ = [
    "constants",
    "helpers",
]
