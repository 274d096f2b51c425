"""Environment-driven settings.

Values are read once per ``create_app`` call (after ``load_dotenv``) and copied
into ``app.config`` under their upper-case names so handlers and services only
ever look at ``current_app.config``.
"""
from __future__ import annotations
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass(frozen=True)
class Settings:
    jwt_secret_key: str
    database_url: str
    storage_root: str
    public_base_url: str
    company_name: str

    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_secure: bool
    smtp_from_email: str

    resend_api_key: str
    resend_api_url: str
    resend_from_email: str
    mail_timeout_seconds: float


def _getenv(name: str, default: str = '') -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_bool(name: str, default: bool = False) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    return raw.lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> Settings:
    try:
        smtp_port = int(_getenv('SMTP_PORT', '587'))
    except ValueError:
        smtp_port = 587
    try:
        timeout = float(_getenv('MAIL_TIMEOUT_SECONDS', '10'))
    except ValueError:
        timeout = 10.0
    return Settings(
        jwt_secret_key=_getenv('JWT_SECRET_KEY', 'dev-secret'),
        database_url=_getenv('DATABASE_URL', 'sqlite:///dev.db'),
        storage_root=_getenv('STORAGE_ROOT', 'storage'),
        public_base_url=_getenv('PUBLIC_BASE_URL', 'http://localhost:5000'),
        company_name=_getenv('COMPANY_NAME', 'Helpdesk'),
        smtp_host=_getenv('SMTP_HOST'),
        smtp_port=smtp_port,
        smtp_user=_getenv('SMTP_USER'),
        smtp_password=_getenv('SMTP_PASSWORD'),
        smtp_secure=_getenv_bool('SMTP_SECURE'),
        smtp_from_email=_getenv('SMTP_FROM_EMAIL'),
        resend_api_key=_getenv('RESEND_API_KEY'),
        resend_api_url=_getenv('RESEND_API_URL', 'https://api.resend.com/emails'),
        resend_from_email=_getenv('RESEND_FROM_EMAIL', 'no-reply@helpdesk.local'),
        mail_timeout_seconds=timeout,
    )


def load_config() -> Dict[str, Any]:
    """Return settings as a Flask config mapping (upper-case keys)."""
    s = load_settings()
    cfg = {k.upper(): v for k, v in asdict(s).items()}
    # base64 payloads for uploads and public intake images
    cfg['MAX_CONTENT_LENGTH'] = 25 * 1024 * 1024
    return cfg
