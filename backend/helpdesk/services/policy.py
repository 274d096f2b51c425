from __future__ import annotations
from typing import Optional, Set
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity
from helpdesk.constants.permissions import (
    ROLE_CLIENT, ROLE_SUPERADMIN, STAFF_ROLES, expand_role_permissions,
)


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)


def has_any_permission(*codes: str) -> bool:
    perms = current_permissions()
    return any(c in perms for c in codes)


def current_user_id() -> int:
    # Identity stored as string, cast back to int for DB lookups
    return int(get_jwt_identity())


def current_role() -> Optional[str]:
    return get_jwt().get('role')


def current_client_id() -> Optional[int]:
    return get_jwt().get('client_id')


def is_staff() -> bool:
    return current_role() in STAFF_ROLES


def build_claims(user) -> dict:
    """Token claims for ``user``: role, effective permission codes and client link."""
    return {
        'role': user.role,
        'perms': expand_role_permissions(user.role),
        'client_id': user.client_id if user.role == ROLE_CLIENT else None,
    }


def assert_client_scope(client_id: int, staff_permission: str):
    """Allow holders of ``staff_permission``; otherwise only a client user linked to ``client_id``."""
    if has_permissions(staff_permission):
        return
    if current_role() == ROLE_CLIENT and current_client_id() is not None and current_client_id() == client_id:
        return
    abort(403, description='Access to this client is not allowed')


def assert_ticket_access(ticket):
    """Read access to a single ticket: TICKET.READ, or TICKET.READ_OWN on the caller's own client."""
    if has_permissions('TICKET.READ'):
        return
    if has_permissions('TICKET.READ_OWN') and current_client_id() == ticket.client_id:
        return
    abort(403, description='Access to this ticket is not allowed')


def assert_can_manage_user(target):
    """Admins may manage anyone except superadmins; only a superadmin touches a superadmin."""
    if target.role == ROLE_SUPERADMIN and current_role() != ROLE_SUPERADMIN:
        abort(403, description='Only superadmins can modify superadmin users')


def assert_can_grant_role(role: str):
    if role == ROLE_SUPERADMIN and current_role() != ROLE_SUPERADMIN:
        abort(403, description='Only superadmins can create superadmin users')
