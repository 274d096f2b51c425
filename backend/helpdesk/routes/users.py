from flask import Blueprint, request, abort, current_app
from sqlalchemy import select, func
from helpdesk import get_db
from helpdesk.constants.permissions import ROLE_CLIENT, ASSIGNABLE_ROLES, ALL_ROLES
from helpdesk.decorators.auth import require_permissions
from helpdesk.models.client import Client
from helpdesk.models.ticket import Ticket
from helpdesk.models.user import User
from helpdesk.schemas.directory import UserCreateRequest, UserUpdateRequest, UserStatusRequest
from helpdesk.services.mail import MailDeliveryError, send_access_email
from helpdesk.services.passwords import generate_readable_password
from helpdesk.services.policy import assert_can_grant_role, assert_can_manage_user, current_user_id
from helpdesk.utils.filters import apply_filters, apply_search, eq_filter, in_choices
from helpdesk.utils.listing import respond_list
from helpdesk.utils.serializers import user_json
from helpdesk.utils.sorting import apply_multi_sort
from helpdesk.utils.validation import parse_body

users_bp = Blueprint('users', __name__)

SORT_FIELDS = {
    'name': User.name,
    'email': User.email,
    'role': User.role,
    'created_at': User.created_at,
    'id': User.id,
}

FILTER_SPECS = {
    'role': {'op': eq_filter(User.role), 'validate': in_choices(ALL_ROLES)},
    'client_id': {'op': eq_filter(User.client_id), 'coerce': int},
}


def _get_user_or_404(user_id: int) -> User:
    u = get_db().get(User, user_id)
    if not u:
        abort(404, description='User not found')
    return u


def _assert_email_free(session, email: str, exclude_id=None):
    q = select(User.id).where(User.email == email)
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    if session.execute(q).first():
        abort(400, description='A user with this email already exists')


@users_bp.get('')
@require_permissions('USER.READ')
def list_users():
    q = get_db().query(User)
    q = apply_filters(q, FILTER_SPECS, request.args)
    q = apply_search(q, request.args.get('q'), [User.name, User.email])
    q = apply_multi_sort(q, request.args.get('sort'), SORT_FIELDS, User.id, default='-created_at')
    return respond_list(q, user_json)


@users_bp.get('/assignable')
@require_permissions('USER.READ')
def assignable_users():
    rows = get_db().execute(
        select(User)
        .where(User.role.in_(ASSIGNABLE_ROLES), User.is_disabled.is_(False))
        .order_by(User.name.asc(), User.id.asc())
    ).scalars().all()
    return {'data': [{'id': u.id, 'name': u.name, 'email': u.email, 'role': u.role} for u in rows]}


@users_bp.post('')
@require_permissions('USER.MANAGE')
def create_user():
    body = parse_body(UserCreateRequest)
    session = get_db()
    assert_can_grant_role(body.role)
    _assert_email_free(session, body.email)
    client = None
    if body.role == ROLE_CLIENT:
        client = session.get(Client, body.client_id)
        if not client:
            abort(400, description='Client not found')
    password = body.password or generate_readable_password()
    u = User(
        name=body.name,
        email=body.email,
        role=body.role,
        client_id=client.id if client else None,
        password_hash='',
    )
    u.set_password(password)
    session.add(u)
    session.commit()
    current_app.logger.info('user %s created with role %s', u.id, u.role)

    out = {'success': True, 'user': user_json(u)}
    if body.send_access_email:
        try:
            result = send_access_email(
                u.email, password, login_url=body.login_url,
                client_name=client.company_name if client else None,
            )
            out['email'] = {'sent': True, 'transport': result.transport}
        except MailDeliveryError as exc:
            # account exists already; surface the delivery failure without failing creation
            out['email'] = {'sent': False, 'error': str(exc)}
    if body.password is None:
        out['password'] = password
    return out, 201


@users_bp.patch('/<int:user_id>')
@require_permissions('USER.MANAGE')
def update_user(user_id: int):
    body = parse_body(UserUpdateRequest)
    session = get_db()
    u = _get_user_or_404(user_id)
    assert_can_manage_user(u)
    changes = body.model_dump(exclude_unset=True)
    if 'role' in changes and changes['role'] != u.role:
        abort(403, description='User roles cannot be changed after creation')
    if 'name' in changes:
        if changes['name'] is None:
            abort(400, description='name cannot be empty')
        u.name = changes['name']
    if 'email' in changes:
        if changes['email'] is None:
            abort(400, description='email cannot be empty')
        _assert_email_free(session, changes['email'], exclude_id=u.id)
        u.email = changes['email']
    session.commit()
    return {'success': True, 'user': user_json(u)}


@users_bp.post('/<int:user_id>/status')
@require_permissions('USER.MANAGE')
def toggle_user_status(user_id: int):
    body = parse_body(UserStatusRequest)
    session = get_db()
    u = _get_user_or_404(user_id)
    assert_can_manage_user(u)
    if u.id == current_user_id() and body.is_disabled:
        abort(400, description='You cannot disable your own account')
    u.is_disabled = body.is_disabled
    session.commit()
    return {'success': True, 'user': user_json(u)}


@users_bp.delete('/<int:user_id>')
@require_permissions('USER.MANAGE')
def delete_user(user_id: int):
    session = get_db()
    u = _get_user_or_404(user_id)
    if u.id == current_user_id():
        abort(400, description='You cannot delete your own account')
    assert_can_manage_user(u)
    assigned = session.execute(select(func.count(Ticket.id)).where(Ticket.assigned_to == u.id)).scalar_one()
    if assigned:
        abort(400, description='Cannot delete user with assigned tickets. Please reassign tickets first.')
    session.delete(u)
    session.commit()
    return {'success': True}
