"""Centralized constants for the OpenAPI spec builder.

Tests depend on deterministic ordering and content, so everything here is
declared in insertion order and never derived from dict/set iteration of
runtime state.
"""
from typing import Any, Dict, List, Optional, Tuple

from helpdesk.schemas.directory import (
    LoginRequest, ClientCreateRequest, ClientUpdateRequest, ServiceTagCreateRequest,
    ServiceTagUpdateRequest, CommentCreateRequest, UserCreateRequest, UserUpdateRequest, UserStatusRequest,
)
from helpdesk.schemas.outbound import MailSendRequest, AccessEmailRequest, UploadRequest, PublicTicketRequest
from helpdesk.schemas.tickets import (
    TicketCreateRequest, TicketUpdateRequest, TicketStatusRequest, TicketAssignRequest,
    TicketServiceTagRequest, TicketRejectRequest,
)

# Request body models exposed as components (name -> pydantic model)
REQUEST_MODELS = {
    'LoginRequest': LoginRequest,
    'TicketCreateRequest': TicketCreateRequest,
    'TicketUpdateRequest': TicketUpdateRequest,
    'TicketStatusRequest': TicketStatusRequest,
    'TicketAssignRequest': TicketAssignRequest,
    'TicketServiceTagRequest': TicketServiceTagRequest,
    'TicketRejectRequest': TicketRejectRequest,
    'CommentCreateRequest': CommentCreateRequest,
    'ClientCreateRequest': ClientCreateRequest,
    'ClientUpdateRequest': ClientUpdateRequest,
    'ServiceTagCreateRequest': ServiceTagCreateRequest,
    'ServiceTagUpdateRequest': ServiceTagUpdateRequest,
    'UserCreateRequest': UserCreateRequest,
    'UserUpdateRequest': UserUpdateRequest,
    'UserStatusRequest': UserStatusRequest,
    'MailSendRequest': MailSendRequest,
    'AccessEmailRequest': AccessEmailRequest,
    'UploadRequest': UploadRequest,
    'PublicTicketRequest': PublicTicketRequest,
}

# Entity registry: (SchemaName, collection path, id param, read permission)
ENTITIES: List[Tuple[str, str, str, str]] = [
    ('Ticket', '/tickets', 'ticket_id', 'TICKET.READ'),
    ('Client', '/clients', 'client_id', 'CLIENT.READ'),
    ('ServiceTag', '/service-tags', 'tag_id', 'TAG.READ'),
]

SORT_DETAILS: Dict[str, str] = {
    'TicketSortParam': 'Allowed fields: created_at, updated_at, status, priority, title, id (prefix - for desc). Default -created_at',
    'ClientSortParam': 'Allowed fields: name, company_name, created_at, updated_at, id (prefix - for desc). Default name',
    'ServiceTagSortParam': 'Allowed fields: tag, hardware_type, location, created_at, updated_at, id (prefix - for desc). Default -created_at',
    'UserSortParam': 'Allowed fields: name, email, role, created_at, id (prefix - for desc). Default -created_at',
}

_STR = {'type': 'string'}
_INT = {'type': 'integer'}
_BOOL = {'type': 'boolean'}
_TS = {'type': 'string', 'format': 'date-time'}
_NULL_TS = {'type': 'string', 'format': 'date-time', 'nullable': True}

ENTITY_SCHEMAS: Dict[str, Dict[str, Any]] = {
    'Ticket': {
        'id': _INT, 'code': _STR, 'title': _STR, 'description': _STR,
        'status': {'type': 'string', 'enum': ['pending_approval', 'open', 'in_progress', 'resolved', 'closed']},
        'priority': {'type': 'string', 'enum': ['low', 'medium', 'high']},
        'source': {'type': 'string', 'enum': ['email', 'phone', 'web', 'in_person']},
        'client_id': _INT, 'company_name': _STR, 'assigned_to': {'type': 'integer', 'nullable': True},
        'photo_urls': {'type': 'array', 'items': _STR},
        'time_open': _NULL_TS, 'time_closed': _NULL_TS,
        'is_public_submission': _BOOL, 'client_was_new': _BOOL,
        'created_at': _TS, 'updated_at': _TS,
    },
    'Client': {
        'id': _INT, 'name': _STR, 'email': _STR, 'phone': _STR, 'address': _STR, 'company_name': _STR,
        'service_tags_count': _INT, 'tickets_count': _INT, 'created_at': _TS, 'updated_at': _TS,
    },
    'ServiceTag': {
        'id': _INT, 'code': _STR, 'tag': _STR, 'description': _STR, 'client_id': _INT, 'client_name': _STR,
        'hardware_type': {'type': 'string', 'nullable': True}, 'location': {'type': 'string', 'nullable': True},
        'created_at': _TS, 'updated_at': _TS,
    },
    'User': {
        'id': _INT, 'name': _STR, 'email': _STR,
        'role': {'type': 'string', 'enum': ['superadmin', 'admin', 'technician', 'client']},
        'is_disabled': _BOOL, 'client_id': {'type': 'integer', 'nullable': True},
        'created_at': _TS, 'updated_at': _TS,
    },
}

# Declarative registry for non-list operations:
# (method, path, summary, permission (None = public, '' = any signed-in user), request body component or None)
OPERATIONS: List[Tuple[str, str, str, Optional[str], Optional[str]]] = [
    ('post', '/auth/login', 'Login', None, 'LoginRequest'),
    ('get', '/auth/me', 'Current user', '', None),
    ('post', '/tickets', 'Create ticket', 'TICKET.CREATE', 'TicketCreateRequest'),
    ('patch', '/tickets/{ticket_id}', 'Update ticket', 'TICKET.UPDATE', 'TicketUpdateRequest'),
    ('delete', '/tickets/{ticket_id}', 'Delete ticket', 'TICKET.DELETE', None),
    ('post', '/tickets/{ticket_id}/status', 'Change ticket status', 'TICKET.UPDATE', 'TicketStatusRequest'),
    ('post', '/tickets/{ticket_id}/assign', 'Assign ticket', 'TICKET.ASSIGN', 'TicketAssignRequest'),
    ('get', '/tickets/{ticket_id}/service-tags', 'Service tags attached to a ticket', 'TICKET.READ', None),
    ('post', '/tickets/{ticket_id}/service-tags', 'Attach service tag', 'TICKET.UPDATE', 'TicketServiceTagRequest'),
    ('delete', '/tickets/{ticket_id}/service-tags/{tag_id}', 'Detach service tag', 'TICKET.UPDATE', None),
    ('get', '/tickets/{ticket_id}/history', 'Ticket history', 'TICKET.READ', None),
    ('get', '/tickets/pending', 'Tickets pending approval', 'TICKET.APPROVE', None),
    ('post', '/tickets/{ticket_id}/approve', 'Approve public ticket', 'TICKET.APPROVE', None),
    ('post', '/tickets/{ticket_id}/reject', 'Reject public ticket', 'TICKET.APPROVE', 'TicketRejectRequest'),
    ('get', '/tickets/{ticket_id}/comments', 'List ticket comments', 'COMMENT.READ', None),
    ('post', '/tickets/{ticket_id}/comments', 'Add comment', 'COMMENT.CREATE', 'CommentCreateRequest'),
    ('delete', '/comments/{comment_id}', 'Delete comment', 'COMMENT.READ', None),
    ('post', '/clients', 'Create client', 'CLIENT.MANAGE', 'ClientCreateRequest'),
    ('patch', '/clients/{client_id}', 'Update client', 'CLIENT.MANAGE', 'ClientUpdateRequest'),
    ('delete', '/clients/{client_id}', 'Delete client', 'CLIENT.MANAGE', None),
    ('get', '/clients/{client_id}/tickets', 'Tickets of a client', 'TICKET.READ', None),
    ('get', '/clients/{client_id}/service-tags', 'Service tags of a client', 'TAG.READ', None),
    ('post', '/service-tags', 'Create service tag', 'TAG.MANAGE', 'ServiceTagCreateRequest'),
    ('patch', '/service-tags/{tag_id}', 'Update service tag', 'TAG.MANAGE', 'ServiceTagUpdateRequest'),
    ('delete', '/service-tags/{tag_id}', 'Delete service tag', 'TAG.MANAGE', None),
    ('get', '/service-tags/{tag_id}/tickets', 'Tickets linked to a service tag', 'TICKET.READ', None),
    ('get', '/users', 'List users', 'USER.READ', None),
    ('get', '/users/assignable', 'Active admins and technicians', 'USER.READ', None),
    ('post', '/users', 'Create user', 'USER.MANAGE', 'UserCreateRequest'),
    ('patch', '/users/{user_id}', 'Update user', 'USER.MANAGE', 'UserUpdateRequest'),
    ('post', '/users/{user_id}/status', 'Enable or disable user', 'USER.MANAGE', 'UserStatusRequest'),
    ('delete', '/users/{user_id}', 'Delete user', 'USER.MANAGE', None),
    ('post', '/mail/send', 'Send email (SMTP, then HTTP API fallback)', 'MAIL.SEND', 'MailSendRequest'),
    ('post', '/mail/access', 'Send account access email', 'USER.MANAGE', 'AccessEmailRequest'),
    ('post', '/storage/upload', 'Upload base64 file', 'STORAGE.UPLOAD', 'UploadRequest'),
    ('get', '/storage/files/{key}', 'Download stored file', None, None),
    ('post', '/public/tickets', 'Submit public ticket', None, 'PublicTicketRequest'),
    ('get', '/dashboard/stats', 'Ticket, client, tag and user counts', 'RPT.READ', None),
    ('get', '/dashboard/recent', 'Most recent tickets', 'RPT.READ', None),
]
