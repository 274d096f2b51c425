from flask import Blueprint, request, abort
from sqlalchemy import select, func
from helpdesk import get_db
from helpdesk.decorators.auth import require_permissions
from helpdesk.models.client import Client
from helpdesk.models.service_tag import ServiceTag
from helpdesk.models.ticket import Ticket, ticket_service_tags
from helpdesk.routes.tickets import ticket_listing, ticket_query
from helpdesk.schemas.directory import ServiceTagCreateRequest, ServiceTagUpdateRequest
from helpdesk.utils.filters import apply_filters, apply_search, eq_filter
from helpdesk.utils.listing import respond_list, respond_item
from helpdesk.utils.serializers import service_tag_json
from helpdesk.utils.sorting import apply_multi_sort
from helpdesk.utils.validation import parse_body

tags_bp = Blueprint('service_tags', __name__)

SORT_FIELDS = {
    'tag': ServiceTag.tag,
    'hardware_type': ServiceTag.hardware_type,
    'location': ServiceTag.location,
    'created_at': ServiceTag.created_at,
    'updated_at': ServiceTag.updated_at,
    'id': ServiceTag.id,
}

FILTER_SPECS = {
    'client_id': {'op': eq_filter(ServiceTag.client_id), 'coerce': int},
    'hardware_type': {'op': eq_filter(ServiceTag.hardware_type)},
}


def _get_tag_or_404(tag_id: int) -> ServiceTag:
    st = get_db().get(ServiceTag, tag_id)
    if not st:
        abort(404, description='Service tag not found')
    return st


def _assert_unique(session, client_id: int, tag: str, exclude_id=None):
    q = select(ServiceTag.id).where(ServiceTag.client_id == client_id, ServiceTag.tag == tag)
    if exclude_id is not None:
        q = q.where(ServiceTag.id != exclude_id)
    if session.execute(q).first():
        abort(400, description='DUPLICATE_TAG: this client already has a service tag with that identifier')


def _assert_client_exists(session, client_id: int):
    if not session.get(Client, client_id):
        abort(400, description='INVALID_CLIENT: the client does not exist')


@tags_bp.get('')
@require_permissions('TAG.READ')
def list_service_tags():
    q = get_db().query(ServiceTag)
    q = apply_filters(q, FILTER_SPECS, request.args)
    q = apply_search(q, request.args.get('q'), [ServiceTag.tag, ServiceTag.description, ServiceTag.hardware_type, ServiceTag.location])
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, ServiceTag.id, default='-created_at')
    return respond_list(q, service_tag_json)


@tags_bp.get('/<int:tag_id>')
@require_permissions('TAG.READ')
def get_service_tag(tag_id: int):
    st = _get_tag_or_404(tag_id)
    return respond_item(service_tag_json(st), st.updated_at)


@tags_bp.get('/<int:tag_id>/tickets')
@require_permissions('TICKET.READ')
def service_tag_tickets(tag_id: int):
    st = _get_tag_or_404(tag_id)
    q = ticket_query(get_db()).filter(Ticket.service_tags.any(ServiceTag.id == st.id))
    return ticket_listing(q)


@tags_bp.post('')
@require_permissions('TAG.MANAGE')
def create_service_tag():
    body = parse_body(ServiceTagCreateRequest)
    session = get_db()
    _assert_client_exists(session, body.client_id)
    _assert_unique(session, body.client_id, body.tag)
    st = ServiceTag(**body.model_dump())
    session.add(st)
    session.commit()
    return service_tag_json(st), 201


@tags_bp.patch('/<int:tag_id>')
@require_permissions('TAG.MANAGE')
def update_service_tag(tag_id: int):
    body = parse_body(ServiceTagUpdateRequest)
    session = get_db()
    st = _get_tag_or_404(tag_id)
    changes = body.model_dump(exclude_unset=True)
    for name in ('tag', 'description', 'client_id'):
        if name in changes and changes[name] is None:
            abort(400, description=f'{name} cannot be empty')
    client_id = changes.get('client_id', st.client_id)
    if client_id != st.client_id:
        _assert_client_exists(session, client_id)
        linked = session.execute(
            select(func.count()).select_from(ticket_service_tags).where(ticket_service_tags.c.service_tag_id == st.id)
        ).scalar_one()
        if linked:
            abort(400, description='Cannot move a service tag that is attached to tickets')
    _assert_unique(session, client_id, changes.get('tag', st.tag), exclude_id=st.id)
    for name, value in changes.items():
        setattr(st, name, value)
    session.commit()
    session.refresh(st)
    return service_tag_json(st)


@tags_bp.delete('/<int:tag_id>')
@require_permissions('TAG.MANAGE')
def delete_service_tag(tag_id: int):
    session = get_db()
    st = _get_tag_or_404(tag_id)
    linked = session.execute(
        select(func.count()).select_from(ticket_service_tags).where(ticket_service_tags.c.service_tag_id == st.id)
    ).scalar_one()
    if linked:
        abort(400, description='Cannot delete service tag that is associated with tickets')
    session.delete(st)
    session.commit()
    return {'success': True}
