from __future__ import annotations
"""Reusable validation helpers for request handlers.

``parse_body`` turns a JSON request body into a pydantic request model and
maps failures onto the standard 400 error payload; ``validate_status`` keeps
enum checks for values that do not arrive through a schema.
"""
from typing import Iterable, Type, TypeVar
from flask import abort, request
from pydantic import BaseModel, ValidationError

M = TypeVar('M', bound=BaseModel)


def format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = '.'.join(str(p) for p in err.get('loc', ()) if p != '__root__')
        msg = err.get('msg', 'invalid')
        parts.append(f"{loc}: {msg}" if loc else msg)
    return '; '.join(parts)


def parse_body(model: Type[M], *, required: bool = True) -> M:
    """Validate the request JSON against ``model``.

    Aborts 400 when the body is not JSON (and ``required``) or when any field
    fails validation. Returns the populated model otherwise.
    """
    data = request.get_json(silent=True)
    if data is None:
        if required:
            abort(400, description='JSON body required')
        data = {}
    if not isinstance(data, dict):
        abort(400, description='JSON object expected')
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        abort(400, description=format_validation_error(exc))


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    if new_status not in allowed:
        abort(400, description=f"{field_name} invalid")
    return new_status

__all__ = ['parse_body', 'format_validation_error', 'validate_status']
