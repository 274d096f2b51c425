from flask import Blueprint, abort, current_app
from flask_jwt_extended import create_access_token, jwt_required
from sqlalchemy import select
from helpdesk import get_db
from helpdesk.models.user import User
from helpdesk.schemas.directory import LoginRequest
from helpdesk.services.policy import build_claims, current_user_id
from helpdesk.utils.serializers import user_json
from helpdesk.utils.validation import parse_body

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    body = parse_body(LoginRequest)
    session = get_db()
    user = session.execute(select(User).where(User.email == body.email.lower())).scalar_one_or_none()
    if not user or not user.verify_password(body.password):
        abort(401, description='invalid credentials')
    if user.is_disabled:
        current_app.logger.info('login refused for disabled user %s', user.id)
        abort(403, description='User account is disabled')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(user.id), additional_claims=build_claims(user))
    return {'access_token': token}


@auth_bp.get('/me')
@jwt_required()
def me():
    session = get_db()
    user = session.get(User, current_user_id())
    if not user:
        abort(404)
    claims = build_claims(user)
    return {**user_json(user), 'perms': claims['perms']}
