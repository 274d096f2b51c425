import re

import pytest

from helpdesk.config.pagination import normalize_pagination, DEFAULT_LIMIT, MAX_LIMIT
from helpdesk.config.settings import load_config, load_settings
from helpdesk.constants.permissions import ALL_PERMISSION_CODES, expand_role_permissions
from helpdesk.services.passwords import generate_readable_password


def test_readable_password_shape():
    for _ in range(25):
        pw = generate_readable_password()
        assert re.match(r'^[A-Z][a-z]+\d{3}[!@#$%&*]$', pw), pw
        assert len(pw) >= 8


def test_readable_password_pads_to_min_length():
    assert len(generate_readable_password(min_length=20)) >= 20


def test_normalize_pagination_bounds():
    assert normalize_pagination(None, None) == (DEFAULT_LIMIT, 0)
    assert normalize_pagination('1000', '-5') == (MAX_LIMIT, 0)
    assert normalize_pagination('0', '3') == (1, 3)
    with pytest.raises(ValueError):
        normalize_pagination('x', None)


def test_role_presets_expand():
    assert expand_role_permissions('admin') == sorted(ALL_PERMISSION_CODES)
    tech = expand_role_permissions('technician')
    assert 'TICKET.UPDATE' in tech and 'TICKET.APPROVE' not in tech
    assert expand_role_permissions('client') == sorted(
        ['TICKET.READ_OWN', 'TICKET.CREATE', 'COMMENT.READ', 'COMMENT.CREATE', 'STORAGE.UPLOAD']
    )
    assert expand_role_permissions('nobody') == []


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv('SMTP_PORT', '465')
    monkeypatch.setenv('SMTP_SECURE', 'true')
    monkeypatch.setenv('COMPANY_NAME', '  Globex Help  ')
    monkeypatch.delenv('RESEND_API_URL', raising=False)
    s = load_settings()
    assert s.smtp_port == 465
    assert s.smtp_secure is True
    assert s.company_name == 'Globex Help'
    assert s.resend_api_url == 'https://api.resend.com/emails'


def test_settings_tolerate_bad_numbers(monkeypatch):
    monkeypatch.setenv('SMTP_PORT', 'abc')
    monkeypatch.setenv('MAIL_TIMEOUT_SECONDS', 'soon')
    s = load_settings()
    assert s.smtp_port == 587
    assert s.mail_timeout_seconds == 10.0


def test_load_config_uses_flask_keys(monkeypatch):
    monkeypatch.setenv('STORAGE_ROOT', '/tmp/helpdesk-files')
    cfg = load_config()
    assert cfg['STORAGE_ROOT'] == '/tmp/helpdesk-files'
    assert 'JWT_SECRET_KEY' in cfg
    assert cfg['MAX_CONTENT_LENGTH'] == 25 * 1024 * 1024
