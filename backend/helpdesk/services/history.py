from __future__ import annotations
from typing import Any, Optional
from flask_jwt_extended import get_jwt_identity
from helpdesk import get_db
from helpdesk.models.ticket import TicketUpdate
from helpdesk.models.user import User

UNKNOWN_USER = 'Unknown User'

TYPE_STATUS_CHANGE = 'status_change'
TYPE_COMMENT_ADDED = 'comment_added'
TYPE_ASSIGNED_CHANGE = 'assigned_change'
TYPE_OTHER = 'other'


def history_type(message: str) -> str:
    """Classify a history message; checks run in this order."""
    if 'status' in message:
        return TYPE_STATUS_CHANGE
    if 'Comment' in message:
        return TYPE_COMMENT_ADDED
    if 'assigned' in message:
        return TYPE_ASSIGNED_CHANGE
    return TYPE_OTHER


def _actor_id() -> Optional[int]:
    # Public intake has no JWT in the request context
    ident = get_jwt_identity()
    return int(ident) if ident is not None else None


def add_history(ticket_id: int, message: str, user_id: Optional[int] = None) -> TicketUpdate:
    """Persist a ticket history entry within the current DB session.

    ``user_id`` defaults to the authenticated caller. No commit here; the
    caller's transaction boundary controls durability.
    """
    session = get_db()
    entry = TicketUpdate(
        ticket_id=ticket_id,
        user_id=user_id if user_id is not None else _actor_id(),
        message=message,
    )
    session.add(entry)
    return entry


def user_display_name(user_id: Optional[int]) -> str:
    if user_id is None:
        return UNKNOWN_USER
    user = get_db().get(User, user_id)
    return user.name if user else UNKNOWN_USER


def describe_change(key: str, before: Any, after: Any) -> Optional[str]:
    """Human readable message for a tracked ticket field change (None when untracked)."""
    if key == 'status':
        return f"Ticket status changed from {before} to {after}"
    if key == 'priority':
        return f"Ticket priority changed from {before} to {after}"
    if key == 'assigned_to':
        if after is None:
            return f"Ticket unassigned from {user_display_name(before)}"
        return f"Ticket assigned to {user_display_name(after)}"
    return None
