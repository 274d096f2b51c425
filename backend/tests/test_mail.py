import logging

import pytest
import requests

import helpdesk.services.mail as mail_mod
from helpdesk.services.mail import (
    MailDeliveryError, MailError, MailMessage, MailService, ResendTransport, SmtpTransport, TransportConfigError,
)
from test_utils_seed import ensure_client, ensure_user, login

MESSAGE = MailMessage(to='someone@example.com', subject='Hello', html='<p>Hi</p>')


class StubTransport:
    def __init__(self, name, error=None, message_id='stub-id'):
        self.name = name
        self.error = error
        self.message_id = message_id
        self.calls = []

    def send(self, message):
        self.calls.append(message)
        if self.error:
            raise self.error
        return self.message_id


class FakeSMTP:
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


class FailingSMTP(FakeSMTP):
    def login(self, user, password):
        raise mail_mod.smtplib.SMTPAuthenticationError(535, b'bad credentials')


class FakeResponse:
    def __init__(self, status_code, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text
        self.content = b'{}' if payload is not None else b''

    def json(self):
        return self._payload


def test_first_transport_success_skips_fallback():
    primary = StubTransport('smtp')
    fallback = StubTransport('resend')
    result = MailService([primary, fallback], logger=logging.getLogger('test')).send(MESSAGE)
    assert result.transport == 'smtp'
    assert result.message_id == 'stub-id'
    assert fallback.calls == []


def test_falls_back_when_primary_fails():
    primary = StubTransport('smtp', error=MailError('connection refused'))
    fallback = StubTransport('resend', message_id='re_123')
    result = MailService([primary, fallback], logger=logging.getLogger('test')).send(MESSAGE)
    assert result.transport == 'resend'
    assert result.message_id == 're_123'
    assert len(primary.calls) == 1


def test_all_failures_are_combined(caplog):
    primary = StubTransport('smtp', error=OSError('timed out'))
    fallback = StubTransport('resend', error=MailError('HTTP 500: boom'))
    with caplog.at_level(logging.WARNING, logger='test'):
        with pytest.raises(MailDeliveryError) as exc_info:
            MailService([primary, fallback], logger=logging.getLogger('test')).send(MESSAGE)
    err = exc_info.value
    assert err.errors == ['smtp: timed out', 'resend: HTTP 500: boom']
    assert str(err) == 'All mail transports failed: smtp: timed out | resend: HTTP 500: boom'
    assert 'failed on every transport' in caplog.text


def test_smtp_transport_requires_configuration():
    transport = SmtpTransport.from_config({})
    with pytest.raises(TransportConfigError):
        transport.send(MESSAGE)


def test_smtp_transport_sends(monkeypatch):
    monkeypatch.setattr(mail_mod.smtplib, 'SMTP', FakeSMTP)
    FakeSMTP.sent.clear()
    transport = SmtpTransport.from_config({
        'SMTP_HOST': 'smtp.test', 'SMTP_PORT': '2525', 'SMTP_USER': 'u', 'SMTP_PASSWORD': 'p',
        'SMTP_FROM_EMAIL': 'desk@example.com',
    })
    message_id = transport.send(MESSAGE)
    assert message_id
    assert FakeSMTP.sent[0]['To'] == 'someone@example.com'
    assert FakeSMTP.sent[0]['From'] == 'desk@example.com'


def test_resend_transport_http_error(monkeypatch):
    monkeypatch.setattr(mail_mod.requests, 'post', lambda *a, **k: FakeResponse(422, text='invalid from'))
    transport = ResendTransport.from_config({'RESEND_API_KEY': 'key', 'RESEND_FROM_EMAIL': 'desk@example.com'})
    with pytest.raises(MailError) as exc_info:
        transport.send(MESSAGE)
    assert 'HTTP 422' in str(exc_info.value)


def test_resend_transport_sends_payload(monkeypatch):
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(url=url, json=json, headers=headers)
        return FakeResponse(200, {'id': 're_abc'})

    monkeypatch.setattr(mail_mod.requests, 'post', fake_post)
    transport = ResendTransport.from_config({'RESEND_API_KEY': 'key', 'RESEND_FROM_EMAIL': 'desk@example.com'})
    assert transport.send(MESSAGE) == 're_abc'
    assert captured['url'] == 'https://api.resend.com/emails'
    assert captured['json']['to'] == ['someone@example.com']
    assert captured['headers']['Authorization'] == 'Bearer key'


def _mail_headers(client):
    ensure_user('mail_tech@example.com', role='technician')
    return login(client, 'mail_tech@example.com')


def test_send_endpoint_uses_smtp(client, app_instance, monkeypatch):
    headers = _mail_headers(client)
    for key, value in {'SMTP_HOST': 'smtp.test', 'SMTP_USER': 'u', 'SMTP_PASSWORD': 'p'}.items():
        monkeypatch.setitem(app_instance.config, key, value)
    monkeypatch.setattr(mail_mod.smtplib, 'SMTP', FakeSMTP)
    FakeSMTP.sent.clear()
    resp = client.post('/mail/send', json={'to': 'Someone@Example.com', 'subject': 'Hi', 'html': '<b>x</b>'}, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['transport'] == 'smtp'
    assert FakeSMTP.sent[0]['To'] == 'someone@example.com'


def test_send_endpoint_falls_back_to_resend(client, app_instance, monkeypatch):
    headers = _mail_headers(client)
    for key, value in {'SMTP_HOST': 'smtp.test', 'SMTP_USER': 'u', 'SMTP_PASSWORD': 'p', 'RESEND_API_KEY': 'key'}.items():
        monkeypatch.setitem(app_instance.config, key, value)
    monkeypatch.setattr(mail_mod.smtplib, 'SMTP', FailingSMTP)
    monkeypatch.setattr(mail_mod.requests, 'post', lambda *a, **k: FakeResponse(200, {'id': 're_fallback'}))
    resp = client.post('/mail/send', json={'to': 'someone@example.com', 'subject': 'Hi', 'html': '<b>x</b>'}, headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['transport'] == 'resend'
    assert body['message_id'] == 're_fallback'


def test_send_endpoint_reports_combined_failure(client, app_instance, monkeypatch):
    headers = _mail_headers(client)
    monkeypatch.setitem(app_instance.config, 'RESEND_API_KEY', 'key')

    def broken_post(*a, **k):
        raise requests.ConnectionError('resend unreachable')

    monkeypatch.setattr(mail_mod.requests, 'post', broken_post)
    resp = client.post('/mail/send', json={'to': 'someone@example.com', 'subject': 'Hi', 'html': '<b>x</b>'}, headers=headers)
    assert resp.status_code == 502
    detail = resp.get_json()['error']['detail']
    assert detail.startswith('All mail transports failed: smtp: SMTP configuration is incomplete')
    assert 'resend: resend unreachable' in detail


def test_send_endpoint_validates_body(client):
    headers = _mail_headers(client)
    resp = client.post('/mail/send', json={'to': 'nobody', 'subject': 'Hi', 'html': 'x'}, headers=headers)
    assert resp.status_code == 400


def test_access_email_renders_template(client, app_instance, monkeypatch):
    ensure_user('mail_admin@example.com', role='admin')
    headers = login(client, 'mail_admin@example.com')
    monkeypatch.setitem(app_instance.config, 'RESEND_API_KEY', 'key')
    captured = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        captured.update(json)
        return FakeResponse(200, {'id': 're_access'})

    monkeypatch.setattr(mail_mod.requests, 'post', fake_post)
    resp = client.post('/mail/access', json={
        'email': 'welcome@example.com', 'password': 'Desk123!', 'login_url': 'https://desk.example.com/login',
    }, headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert captured['subject'] == 'Your Acme Support access'
    assert 'Desk123!' in captured['html']
    assert 'https://desk.example.com/login' in captured['html']


def test_user_creation_survives_mail_failure(client):
    ensure_user('mail_admin2@example.com', role='admin')
    headers = login(client, 'mail_admin2@example.com')
    c = ensure_client('Mail Failure Co')
    resp = client.post('/users', json={
        'email': 'mail.fail.user@example.com', 'name': 'Mail Fail', 'role': 'client',
        'client_id': c.id, 'send_access_email': True,
    }, headers=headers)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['email']['sent'] is False
    assert 'smtp:' in body['email']['error'] and 'resend:' in body['email']['error']
    assert body['password']
