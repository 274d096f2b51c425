from flask import Blueprint, request, abort
from sqlalchemy import select, func
from helpdesk import get_db
from helpdesk.decorators.auth import require_permissions, require_any_permission
from helpdesk.models.client import Client
from helpdesk.models.service_tag import ServiceTag
from helpdesk.models.ticket import Ticket
from helpdesk.routes.tickets import ticket_listing, ticket_query
from helpdesk.schemas.directory import ClientCreateRequest, ClientUpdateRequest
from helpdesk.services.policy import assert_client_scope
from helpdesk.utils.filters import apply_search
from helpdesk.utils.listing import respond_list, respond_item
from helpdesk.utils.serializers import client_json, service_tag_json
from helpdesk.utils.sorting import apply_multi_sort
from helpdesk.utils.validation import parse_body

clients_bp = Blueprint('clients', __name__)

SORT_FIELDS = {
    'name': Client.name,
    'company_name': Client.company_name,
    'created_at': Client.created_at,
    'updated_at': Client.updated_at,
    'id': Client.id,
}


def _counts(client_id: int):
    session = get_db()
    tags = session.execute(select(func.count(ServiceTag.id)).where(ServiceTag.client_id == client_id)).scalar_one()
    tickets = session.execute(select(func.count(Ticket.id)).where(Ticket.client_id == client_id)).scalar_one()
    return tags, tickets


def _client_with_counts(c: Client):
    tags, tickets = _counts(c.id)
    return client_json(c, service_tags_count=tags, tickets_count=tickets)


def _get_client_or_404(client_id: int) -> Client:
    c = get_db().get(Client, client_id)
    if not c:
        abort(404, description='Client not found')
    return c


@clients_bp.get('')
@require_permissions('CLIENT.READ')
def list_clients():
    q = get_db().query(Client)
    q = apply_search(q, request.args.get('q'), [Client.name, Client.company_name, Client.email])
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, Client.id, default='name')
    return respond_list(q, _client_with_counts)


@clients_bp.get('/<int:client_id>')
@require_any_permission('CLIENT.READ', 'TICKET.READ_OWN')
def get_client(client_id: int):
    assert_client_scope(client_id, 'CLIENT.READ')
    c = _get_client_or_404(client_id)
    return respond_item(_client_with_counts(c), c.updated_at)


@clients_bp.post('')
@require_permissions('CLIENT.MANAGE')
def create_client():
    body = parse_body(ClientCreateRequest)
    session = get_db()
    c = Client(**body.model_dump())
    session.add(c)
    session.commit()
    return client_json(c, service_tags_count=0, tickets_count=0), 201


@clients_bp.patch('/<int:client_id>')
@require_permissions('CLIENT.MANAGE')
def update_client(client_id: int):
    body = parse_body(ClientUpdateRequest)
    session = get_db()
    c = _get_client_or_404(client_id)
    for name, value in body.model_dump(exclude_unset=True).items():
        if value is None:
            abort(400, description=f'{name} cannot be empty')
        setattr(c, name, value)
    session.commit()
    return _client_with_counts(c)


@clients_bp.delete('/<int:client_id>')
@require_permissions('CLIENT.MANAGE')
def delete_client(client_id: int):
    session = get_db()
    c = _get_client_or_404(client_id)
    tags, tickets = _counts(c.id)
    if tags:
        abort(400, description='Cannot delete client with associated service tags')
    if tickets:
        abort(400, description='Cannot delete client with associated tickets')
    session.delete(c)
    session.commit()
    return {'success': True}


@clients_bp.get('/<int:client_id>/tickets')
@require_any_permission('TICKET.READ', 'TICKET.READ_OWN')
def client_tickets(client_id: int):
    assert_client_scope(client_id, 'TICKET.READ')
    _get_client_or_404(client_id)
    return ticket_listing(ticket_query(get_db()).filter(Ticket.client_id == client_id))


@clients_bp.get('/<int:client_id>/service-tags')
@require_any_permission('TAG.READ', 'TICKET.READ_OWN')
def client_service_tags(client_id: int):
    assert_client_scope(client_id, 'TAG.READ')
    _get_client_or_404(client_id)
    q = get_db().query(ServiceTag).filter(ServiceTag.client_id == client_id)
    q = apply_multi_sort(q, request.args.get('sort'), {'tag': ServiceTag.tag, 'id': ServiceTag.id}, ServiceTag.id, default='tag')
    return respond_list(q, service_tag_json)
