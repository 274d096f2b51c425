from __future__ import annotations
"""Ticket history decorator to reduce repetitive add_history() calls in route handlers.

Usage example:

@track_changes(diff_keys=['status', 'assigned_to'])
def update_ticket(ticket_id): ... return _ticket_json(t)

Parameters:
  diff_keys: ticket fields compared before/after the handler runs; each
    change becomes one history message (see services.history.describe_change).
  ticket_id_arg: name of the path parameter carrying the ticket id.

Return handling:
  Flask view functions commonly return one of:
    dict
    (dict, status)
  The decorator inspects the first element as the JSON payload while
  preserving the original return value.
"""

from functools import wraps
from typing import Any, Dict, Iterable, Optional

from helpdesk import get_db
from helpdesk.models.ticket import Ticket
from helpdesk.services.history import add_history, describe_change


def _extract_payload(rv: Any):
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def snapshot_ticket(ticket_id: int, keys: Iterable[str]) -> Optional[Dict[str, Any]]:
    t = get_db().get(Ticket, ticket_id)
    if not t:
        return None
    return {k: getattr(t, k) for k in keys}


def track_changes(diff_keys: Iterable[str], *, ticket_id_arg: str = 'ticket_id'):
    keys = list(diff_keys)

    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            ticket_id = kwargs.get(ticket_id_arg)
            before = snapshot_ticket(ticket_id, keys) if ticket_id is not None else None
            rv = fn(*args, **kwargs)
            data = _extract_payload(rv)
            if not before or not isinstance(data, dict):
                return rv
            recorded = False
            for k in keys:
                if k in data and before.get(k) != data.get(k):
                    message = describe_change(k, before.get(k), data.get(k))
                    if message:
                        add_history(ticket_id, message)
                        recorded = True
            if recorded:
                get_db().commit()
            return rv
        return wrapper
    return outer
