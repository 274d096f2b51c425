from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from helpdesk.services.policy import has_permissions, has_any_permission


def require_permissions(*codes: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_any_permission(*codes: str):
    """Like ``require_permissions`` but one of ``codes`` is enough (staff-or-owner endpoints)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_any_permission(*codes):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer
