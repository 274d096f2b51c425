from __future__ import annotations
from typing import Any, Dict, Iterable
from flask import abort
from sqlalchemy import or_

def apply_filters(query, specs: Dict[str, Dict[str, Any]], params: Dict[str, Any]):
    """Generic filter builder.

    specs: { param_name: { 'op': callable(query, value)->query, 'coerce': type/func, 'validate': callable(optional) } }
    """
    for name, meta in specs.items():
        if name not in params or params[name] in (None, ''):
            continue
        val = params[name]
        if 'coerce' in meta:
            try:
                val = meta['coerce'](val)
            except (TypeError, ValueError):
                abort(400, description=f'{name} invalid')
        if 'validate' in meta and not meta['validate'](val):
            abort(400, description=f'{name} invalid')
        query = meta['op'](query, val)
    return query


def apply_search(query, term: str | None, columns: Iterable):
    """Case-insensitive substring match of ``term`` across any of ``columns``."""
    if not term or not term.strip():
        return query
    pattern = f"%{term.strip()}%"
    return query.filter(or_(*[col.ilike(pattern) for col in columns]))


def eq_filter(column):
    return lambda q, v: q.filter(column == v)


def in_choices(choices: Iterable[str]):
    allowed = set(choices)
    return lambda v: v in allowed
