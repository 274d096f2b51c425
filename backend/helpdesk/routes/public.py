"""Anonymous ticket intake.

Submissions land as ``pending_approval`` tickets; the client and its service
tags are matched by name (case-insensitive) or created on the fly, and staff
approve or reject them later through ``/tickets/<id>/approve|reject``.
"""
from __future__ import annotations
import mimetypes
import uuid

from flask import Blueprint, abort, current_app, request
from flask_jwt_extended import jwt_required, get_jwt_identity
from sqlalchemy import select, func

from helpdesk import get_db
from helpdesk.models.client import Client
from helpdesk.models.service_tag import ServiceTag
from helpdesk.models.ticket import Ticket
from helpdesk.schemas.outbound import PublicTicketRequest
from helpdesk.services.history import add_history
from helpdesk.services.storage import StorageError, save_upload
from helpdesk.utils.validation import parse_body

public_bp = Blueprint('public', __name__)

USAGE = {
    'method': 'POST',
    'content_type': 'application/json',
    'required': ['title', 'description', 'company_name', 'service_tag_names',
                 'contact_name', 'contact_email', 'contact_phone'],
    'optional': ['priority', 'source', 'images'],
    'images': '[{"filename": "photo.jpg", "data": "<base64 or data URL>"}]',
}


def _find_or_create_client(session, body: PublicTicketRequest):
    client = session.execute(
        select(Client).where(func.lower(Client.company_name) == body.company_name.lower()).order_by(Client.id)
    ).scalars().first()
    if client:
        return client, False
    client = Client(
        name=body.contact_name,
        email=body.contact_email,
        phone=body.contact_phone,
        address='Not provided',
        company_name=body.company_name,
    )
    session.add(client)
    session.flush()
    return client, True


def _find_or_create_tags(session, client: Client, names):
    tags = []
    # Tag names compare case-insensitively; the first spelling wins
    unique = {}
    for name in names:
        unique.setdefault(name.lower(), name)
    for name in unique.values():
        st = session.execute(
            select(ServiceTag).where(ServiceTag.client_id == client.id, func.lower(ServiceTag.tag) == name.lower())
        ).scalars().first()
        if not st:
            st = ServiceTag(tag=name, description='Registered from a public ticket submission', client_id=client.id)
            session.add(st)
            session.flush()
        tags.append(st)
    return tags


def _store_images(images):
    urls = []
    batch = uuid.uuid4().hex
    for i, img in enumerate(images):
        filename = img.filename.replace('/', '_').replace('\\', '_')
        content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
        try:
            _, url = save_upload('tickets', f"public/{batch}/{i}_{filename}", img.data, content_type)
        except StorageError as exc:
            abort(400, description=f'Image {img.filename}: {exc}')
        urls.append(url)
    return urls


@public_bp.post('/tickets')
@jwt_required(optional=True)
def submit_ticket():
    if not request.is_json:
        abort(400, description='Request body must be JSON')
    body = parse_body(PublicTicketRequest)
    session = get_db()
    client, client_was_new = _find_or_create_client(session, body)
    tags = _find_or_create_tags(session, client, body.service_tag_names)
    photo_urls = _store_images(body.images)
    ident = get_jwt_identity()
    t = Ticket(
        title=body.title,
        description=body.description,
        priority=body.priority,
        source=body.source,
        status=Ticket.STATUS_PENDING_APPROVAL,
        client_id=client.id,
        reported_by=int(ident) if ident is not None else None,
        photo_urls=photo_urls,
        contact_name=body.contact_name,
        contact_email=body.contact_email,
        contact_phone=body.contact_phone,
        is_public_submission=True,
        client_was_new=client_was_new,
    )
    t.service_tags = tags
    session.add(t)
    session.flush()
    add_history(t.id, f"Ticket submitted through the public form by {body.contact_name}")
    session.commit()
    current_app.logger.info('public ticket %s submitted for client %s (new=%s)', t.code, client.id, client_was_new)
    return {
        'success': True,
        'ticket_id': t.id,
        'ticket_code': t.code,
        'client_was_new': client_was_new,
        'message': 'Ticket submitted successfully and is pending approval',
    }, 201


@public_bp.get('/tickets')
def public_usage():
    return {
        'error': {
            'status': 405,
            'title': 'Method Not Allowed',
            'detail': 'Use POST to submit a ticket',
        },
        'usage': USAGE,
    }, 405, {'Allow': 'POST'}
