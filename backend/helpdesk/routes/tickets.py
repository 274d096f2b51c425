from __future__ import annotations
from flask import Blueprint, request, abort
from sqlalchemy import select
from helpdesk import get_db
from helpdesk.constants.permissions import ROLE_CLIENT
from helpdesk.decorators.auth import require_permissions, require_any_permission
from helpdesk.decorators.history import track_changes
from helpdesk.models.base import utcnow
from helpdesk.models.client import Client
from helpdesk.models.service_tag import ServiceTag
from helpdesk.models.ticket import Ticket, TicketUpdate
from helpdesk.models.user import User
from helpdesk.schemas.tickets import (
    TicketCreateRequest, TicketUpdateRequest, TicketStatusRequest, TicketAssignRequest,
    TicketServiceTagRequest, TicketRejectRequest,
)
from helpdesk.services.history import add_history, history_type, user_display_name, UNKNOWN_USER
from helpdesk.services.policy import (
    assert_ticket_access, current_client_id, current_role, current_user_id, has_permissions,
)
from helpdesk.utils.filters import apply_filters, apply_search, eq_filter, in_choices
from helpdesk.utils.fsm import TransitionValidator
from helpdesk.utils.listing import respond_list, respond_item, isoformat
from helpdesk.utils.serializers import ticket_json, service_tag_json
from helpdesk.utils.sorting import apply_multi_sort
from helpdesk.utils.validation import parse_body

tickets_bp = Blueprint('tickets', __name__)

# Status is otherwise free-form; only the approval step is a guarded transition
APPROVAL_FSM = TransitionValidator({
    Ticket.STATUS_PENDING_APPROVAL: {Ticket.STATUS_OPEN, Ticket.STATUS_CLOSED},
})

SORT_FIELDS = {
    'created_at': Ticket.created_at,
    'updated_at': Ticket.updated_at,
    'status': Ticket.status,
    'priority': Ticket.priority,
    'title': Ticket.title,
    'id': Ticket.id,
}

FILTER_SPECS = {
    'status': {'op': eq_filter(Ticket.status), 'validate': in_choices(Ticket.ALL_STATUSES)},
    'priority': {'op': eq_filter(Ticket.priority), 'validate': in_choices(Ticket.ALL_PRIORITIES)},
    'source': {'op': eq_filter(Ticket.source), 'validate': in_choices(Ticket.ALL_SOURCES)},
    'client_id': {'op': eq_filter(Ticket.client_id), 'coerce': int},
    'assigned_to': {'op': eq_filter(Ticket.assigned_to), 'coerce': int},
}


def ticket_query(session):
    return session.query(Ticket).join(Client, Ticket.client_id == Client.id)


def ticket_listing(q):
    """Shared list flow: filters, search, sort (newest first by default), pagination."""
    q = apply_filters(q, FILTER_SPECS, request.args)
    q = apply_search(q, request.args.get('q'), [Ticket.title, Ticket.description, Client.company_name])
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, Ticket.id, default='-created_at')
    return respond_list(q, ticket_json)


def _get_ticket_or_404(ticket_id: int) -> Ticket:
    t = get_db().get(Ticket, ticket_id)
    if not t:
        abort(404, description='Ticket not found')
    return t


def _load_client_tags(session, client_id: int, tag_ids):
    ids = list(dict.fromkeys(tag_ids))
    tags = session.execute(select(ServiceTag).where(ServiceTag.id.in_(ids))).scalars().all()
    if len(tags) != len(ids):
        abort(400, description='One or more service tags do not exist')
    for st in tags:
        if st.client_id != client_id:
            abort(400, description=f'Service tag {st.tag} does not belong to this client')
    by_id = {st.id: st for st in tags}
    return [by_id[i] for i in ids]


def _validate_assignee(session, user_id):
    if user_id is None:
        return None
    user = session.get(User, user_id)
    if not user or not user.is_staff or user.is_disabled:
        abort(400, description='Assignee must be an active staff user')
    return user


def _apply_status(t: Ticket, status: str):
    if status == t.status:
        return
    now = utcnow()
    if status in Ticket.CLOSED_STATUSES:
        if t.status not in Ticket.CLOSED_STATUSES:
            t.time_closed = now
    else:
        t.time_closed = None
    if status != Ticket.STATUS_PENDING_APPROVAL and t.time_open is None:
        t.time_open = now
    t.status = status


@tickets_bp.get('')
@require_permissions('TICKET.READ')
def list_tickets():
    return ticket_listing(ticket_query(get_db()))


@tickets_bp.get('/pending')
@require_permissions('TICKET.APPROVE')
def list_pending():
    q = ticket_query(get_db()).filter(Ticket.status == Ticket.STATUS_PENDING_APPROVAL)
    return ticket_listing(q)


@tickets_bp.get('/<int:ticket_id>')
@require_any_permission('TICKET.READ', 'TICKET.READ_OWN')
def get_ticket(ticket_id: int):
    t = _get_ticket_or_404(ticket_id)
    assert_ticket_access(t)
    return respond_item(ticket_json(t), t.updated_at)


@tickets_bp.post('')
@require_permissions('TICKET.CREATE')
def create_ticket():
    body = parse_body(TicketCreateRequest)
    session = get_db()
    if current_role() == ROLE_CLIENT and current_client_id() != body.client_id:
        abort(403, description='Clients can only create tickets for their own account')
    client = session.get(Client, body.client_id)
    if not client:
        abort(400, description='Client not found')
    tags = _load_client_tags(session, client.id, body.service_tag_ids)
    user_id = current_user_id()
    t = Ticket(
        title=body.title,
        description=body.description,
        priority=body.priority,
        source=body.source,
        status=Ticket.STATUS_OPEN,
        client_id=client.id,
        reported_by=user_id,
        photo_urls=list(body.photo_urls),
        time_open=utcnow(),
    )
    t.service_tags = tags
    session.add(t)
    session.flush()
    add_history(t.id, f"Ticket created by {user_display_name(user_id)}")
    session.commit()
    return ticket_json(t), 201


@tickets_bp.patch('/<int:ticket_id>')
@require_permissions('TICKET.UPDATE')
@track_changes(['status', 'priority', 'assigned_to'])
def update_ticket(ticket_id: int):
    body = parse_body(TicketUpdateRequest)
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    fields = body.model_fields_set
    for name in fields:
        if name != 'assigned_to' and getattr(body, name) is None:
            abort(400, description=f'{name} cannot be null')
    if 'client_id' in fields and body.client_id != t.client_id:
        if not session.get(Client, body.client_id):
            abort(400, description='Client not found')
        t.client_id = body.client_id
        # tags of the previous client no longer apply
        t.service_tags = [st for st in t.service_tags if st.client_id == body.client_id]
    if 'assigned_to' in fields and body.assigned_to != t.assigned_to:
        if not has_permissions('TICKET.ASSIGN'):
            abort(403, description='Missing permission')
        _validate_assignee(session, body.assigned_to)
        t.assigned_to = body.assigned_to
    for name in ('title', 'description', 'priority', 'source'):
        if name in fields:
            setattr(t, name, getattr(body, name))
    if 'photo_urls' in fields:
        t.photo_urls = list(body.photo_urls)
    if 'status' in fields:
        _apply_status(t, body.status)
    session.commit()
    session.refresh(t)
    return ticket_json(t)


@tickets_bp.post('/<int:ticket_id>/status')
@require_permissions('TICKET.UPDATE')
@track_changes(['status'])
def update_status(ticket_id: int):
    body = parse_body(TicketStatusRequest)
    t = _get_ticket_or_404(ticket_id)
    _apply_status(t, body.status)
    get_db().commit()
    return ticket_json(t)


@tickets_bp.post('/<int:ticket_id>/assign')
@require_permissions('TICKET.ASSIGN')
@track_changes(['assigned_to'])
def assign_ticket(ticket_id: int):
    body = parse_body(TicketAssignRequest)
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    _validate_assignee(session, body.assigned_user_id)
    t.assigned_to = body.assigned_user_id
    session.commit()
    session.refresh(t)
    return ticket_json(t)


@tickets_bp.delete('/<int:ticket_id>')
@require_permissions('TICKET.DELETE')
def delete_ticket(ticket_id: int):
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    session.delete(t)
    session.commit()
    return {'success': True}


@tickets_bp.get('/<int:ticket_id>/service-tags')
@require_any_permission('TICKET.READ', 'TICKET.READ_OWN')
def ticket_service_tags(ticket_id: int):
    t = _get_ticket_or_404(ticket_id)
    assert_ticket_access(t)
    return {'data': [service_tag_json(st) for st in t.service_tags]}


@tickets_bp.post('/<int:ticket_id>/service-tags')
@require_permissions('TICKET.UPDATE')
def add_service_tag(ticket_id: int):
    body = parse_body(TicketServiceTagRequest)
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    st = session.get(ServiceTag, body.service_tag_id)
    if not st:
        abort(404, description='Service tag not found')
    if st.client_id != t.client_id:
        abort(400, description='Service tag does not belong to the ticket client')
    if st not in t.service_tags:
        t.service_tags.append(st)
        t.updated_at = utcnow()
        add_history(t.id, f"Service tag {st.tag} added")
        session.commit()
    return {'success': True, 'service_tags': [service_tag_json(s) for s in t.service_tags]}


@tickets_bp.delete('/<int:ticket_id>/service-tags/<int:tag_id>')
@require_permissions('TICKET.UPDATE')
def remove_service_tag(ticket_id: int, tag_id: int):
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    st = next((s for s in t.service_tags if s.id == tag_id), None)
    if not st:
        abort(404, description='Service tag is not attached to this ticket')
    t.service_tags.remove(st)
    t.updated_at = utcnow()
    add_history(t.id, f"Service tag {st.tag} removed")
    session.commit()
    return {'success': True, 'service_tags': [service_tag_json(s) for s in t.service_tags]}


@tickets_bp.get('/<int:ticket_id>/history')
@require_any_permission('TICKET.READ', 'TICKET.READ_OWN')
def ticket_history(ticket_id: int):
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    assert_ticket_access(t)
    rows = session.execute(
        select(TicketUpdate)
        .where(TicketUpdate.ticket_id == t.id)
        .order_by(TicketUpdate.created_at.desc(), TicketUpdate.id.desc())
    ).scalars().all()
    return {'data': [
        {
            'id': u.id,
            'ticket_id': u.ticket_id,
            'user_id': u.user_id,
            'user_name': u.user.name if u.user else UNKNOWN_USER,
            'message': u.message,
            'type': history_type(u.message),
            'created_at': isoformat(u.created_at),
        }
        for u in rows
    ]}


@tickets_bp.post('/<int:ticket_id>/approve')
@require_permissions('TICKET.APPROVE')
def approve_ticket(ticket_id: int):
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    APPROVAL_FSM.assert_can_transition(t.status, Ticket.STATUS_OPEN, 'Only tickets pending approval can be approved')
    user_id = current_user_id()
    now = utcnow()
    t.status = Ticket.STATUS_OPEN
    t.approved_by = user_id
    t.approved_at = now
    t.time_open = now
    add_history(t.id, f"Ticket approved by {user_display_name(user_id)} (status changed from pending_approval to open)")
    session.commit()
    return ticket_json(t)


@tickets_bp.post('/<int:ticket_id>/reject')
@require_permissions('TICKET.APPROVE')
def reject_ticket(ticket_id: int):
    body = parse_body(TicketRejectRequest, required=False)
    session = get_db()
    t = _get_ticket_or_404(ticket_id)
    APPROVAL_FSM.assert_can_transition(t.status, Ticket.STATUS_CLOSED, 'Only tickets pending approval can be rejected')
    user_id = current_user_id()
    t.status = Ticket.STATUS_CLOSED
    t.time_closed = utcnow()
    message = f"Ticket rejected by {user_display_name(user_id)} (status changed from pending_approval to closed)"
    if body.reason:
        message += f". Reason: {body.reason}"
    add_history(t.id, message)
    session.commit()
    return ticket_json(t)
