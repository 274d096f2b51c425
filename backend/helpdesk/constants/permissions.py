"""Central enum-like definitions for roles and permission codes.
Codes are embedded in issued tokens; add new ones rather than renaming existing ones.
"""
from __future__ import annotations
from typing import List, Dict

ROLE_SUPERADMIN = 'superadmin'
ROLE_ADMIN = 'admin'
ROLE_TECHNICIAN = 'technician'
ROLE_CLIENT = 'client'
ALL_ROLES = (ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_TECHNICIAN, ROLE_CLIENT)
STAFF_ROLES = (ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_TECHNICIAN)
ASSIGNABLE_ROLES = (ROLE_ADMIN, ROLE_TECHNICIAN)

SERVICE_ACTIONS = {
    'TICKET': ['READ', 'READ_OWN', 'CREATE', 'UPDATE', 'ASSIGN', 'DELETE', 'APPROVE'],
    'COMMENT': ['READ', 'CREATE', 'DELETE'],
    'CLIENT': ['READ', 'MANAGE'],
    'TAG': ['READ', 'MANAGE'],
    'USER': ['READ', 'MANAGE'],
    'MAIL': ['SEND'],
    'STORAGE': ['UPLOAD'],
    'RPT': ['READ'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    ROLE_SUPERADMIN: ['*'],
    ROLE_ADMIN: ['*'],
    # Technician: day-to-day ticket work, no assignment/approval/deletion and no user management
    ROLE_TECHNICIAN: [
        'TICKET.READ', 'TICKET.CREATE', 'TICKET.UPDATE',
        'COMMENT.READ', 'COMMENT.CREATE',
        'CLIENT.READ', 'CLIENT.MANAGE',
        'TAG.READ', 'TAG.MANAGE',
        'USER.READ',
        'MAIL.SEND',
        'STORAGE.UPLOAD',
        'RPT.READ',
    ],
    # Client: own tickets only (ownership enforced in handlers)
    ROLE_CLIENT: ['TICKET.READ_OWN', 'TICKET.CREATE', 'COMMENT.READ', 'COMMENT.CREATE', 'STORAGE.UPLOAD'],
}


def expand_role_permissions(role: str) -> List[str]:
    """Resolve a role preset to concrete codes; the '*' wildcard expands to every code."""
    preset = ROLE_PRESETS.get(role, [])
    if '*' in preset:
        return sorted(ALL_PERMISSION_CODES)
    return sorted(set(preset))
