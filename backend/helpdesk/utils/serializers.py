"""JSON shapes shared by several blueprints (tickets appear under clients, tags and dashboard too)."""
from __future__ import annotations
from typing import Any, Dict, Optional
from helpdesk.utils.listing import isoformat


def user_ref(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {'id': user.id, 'name': user.name, 'email': user.email, 'role': user.role}


def user_json(u) -> Dict[str, Any]:
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'role': u.role,
        'is_disabled': u.is_disabled,
        'client_id': u.client_id,
        'created_at': isoformat(u.created_at),
        'updated_at': isoformat(u.updated_at),
    }


def client_json(c, service_tags_count: Optional[int] = None, tickets_count: Optional[int] = None) -> Dict[str, Any]:
    out = {
        'id': c.id,
        'name': c.name,
        'email': c.email,
        'phone': c.phone,
        'address': c.address,
        'company_name': c.company_name,
        'created_at': isoformat(c.created_at),
        'updated_at': isoformat(c.updated_at),
    }
    if service_tags_count is not None:
        out['service_tags_count'] = service_tags_count
    if tickets_count is not None:
        out['tickets_count'] = tickets_count
    return out


def service_tag_json(st) -> Dict[str, Any]:
    return {
        'id': st.id,
        'code': st.code,
        'tag': st.tag,
        'description': st.description,
        'client_id': st.client_id,
        'client_name': st.client.name if st.client else None,
        'hardware_type': st.hardware_type,
        'location': st.location,
        'created_at': isoformat(st.created_at),
        'updated_at': isoformat(st.updated_at),
    }


def ticket_json(t) -> Dict[str, Any]:
    return {
        'id': t.id,
        'code': t.code,
        'title': t.title,
        'description': t.description,
        'status': t.status,
        'priority': t.priority,
        'source': t.source,
        'client_id': t.client_id,
        'company_name': t.client.company_name if t.client else None,
        'reported_by': t.reported_by,
        'reporter': user_ref(t.reporter),
        'assigned_to': t.assigned_to,
        'assignee': user_ref(t.assignee),
        'service_tags': [{'id': st.id, 'code': st.code, 'tag': st.tag} for st in t.service_tags],
        'photo_urls': list(t.photo_urls or []),
        'time_open': isoformat(t.time_open),
        'time_closed': isoformat(t.time_closed),
        'approved_by': t.approved_by,
        'approved_at': isoformat(t.approved_at),
        'contact_name': t.contact_name,
        'contact_email': t.contact_email,
        'contact_phone': t.contact_phone,
        'is_public_submission': t.is_public_submission,
        'client_was_new': t.client_was_new,
        'created_at': isoformat(t.created_at),
        'updated_at': isoformat(t.updated_at),
    }
