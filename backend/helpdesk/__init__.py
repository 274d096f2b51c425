from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any

from .config.settings import load_config

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _error_payload(status: int, title: str, detail: str):
    return {'error': {'status': status, 'title': title, 'detail': detail}}, status


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return _error_payload(401, 'Unauthorized', reason)


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return _error_payload(401, 'Unauthorized', reason)


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return _error_payload(401, 'Unauthorized', 'Token has expired')


@jwt.user_lookup_loader
def _load_active_user(jwt_header, jwt_payload):
    # Returning None rejects the token; disabling or deleting an account revokes its sessions
    from .models.user import User
    user = get_db().get(User, int(jwt_payload['sub']))
    if user is None or user.is_disabled:
        return None
    return user


@jwt.user_lookup_error_loader
def _inactive_user(jwt_header, jwt_payload):
    return _error_payload(401, 'Unauthorized', 'Account is disabled or no longer exists')


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config.update(load_config())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    if db_engine.dialect.name == 'sqlite':
        event.listen(db_engine, 'connect', _enable_sqlite_foreign_keys)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    # Register every model before the first mapper configuration
    from .models import user, client, service_tag, ticket, comment  # noqa: F401

    from .routes.auth import auth_bp
    from .routes.tickets import tickets_bp
    from .routes.comments import comments_bp
    from .routes.clients import clients_bp
    from .routes.service_tags import tags_bp
    from .routes.users import users_bp
    from .routes.mail import mail_bp
    from .routes.storage import storage_bp
    from .routes.public import public_bp
    from .routes.dashboard import dashboard_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(tickets_bp, url_prefix='/tickets')
    app.register_blueprint(comments_bp)  # spans /tickets/<id>/comments and /comments/<id>
    app.register_blueprint(clients_bp, url_prefix='/clients')
    app.register_blueprint(tags_bp, url_prefix='/service-tags')
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(mail_bp, url_prefix='/mail')
    app.register_blueprint(storage_bp, url_prefix='/storage')
    app.register_blueprint(public_bp, url_prefix='/public')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        # Drop half-applied changes so they cannot ride along with the next commit
        SessionLocal().rollback()
        if isinstance(e, HTTPException):
            resp = _error_payload(e.code, e.name, e.description)
            if e.code == 405 and getattr(e, 'valid_methods', None):
                return resp[0], e.code, {'Allow': ', '.join(e.valid_methods)}
            return resp
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error_payload(500, 'Internal Server Error', 'Unexpected error')

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    @app.route('/docs')
    def docs_index():
        # Lightweight HTML referencing Redoc CDN (no local install) for quick browsing
        return (
            "<!DOCTYPE html><html><head><title>Helpdesk API Docs</title>"
            "<link rel=\"stylesheet\" href=\"https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.css\" />"
            "</head><body><redoc spec-url='/openapi.json'></redoc>"
            "<script src='https://cdn.jsdelivr.net/npm/redoc@next/bundles/redoc.standalone.js'></script>"
            "</body></html>"
        )

    return app


def get_db():
    return SessionLocal()
