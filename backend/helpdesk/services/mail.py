"""Outbound email with a primary SMTP transport and an HTTP API fallback.

``MailService.send`` walks its transports in order and returns on the first
success. When every transport fails the individual error messages are joined
into a single ``MailDeliveryError`` so callers report one failure carrying
all the underlying causes. There is no retry, backoff or de-duplication.
"""
from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any, List, Mapping, Optional, Sequence

import requests
from flask import current_app, render_template

log = logging.getLogger(__name__)


class MailError(RuntimeError):
    pass


class TransportConfigError(MailError):
    """A transport is missing required configuration."""


class MailDeliveryError(MailError):
    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__('All mail transports failed: ' + ' | '.join(self.errors))


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    html: str
    sender: Optional[str] = None


@dataclass(frozen=True)
class MailResult:
    transport: str
    message_id: Optional[str]


@dataclass(frozen=True)
class SmtpTransport:
    host: str
    port: int
    user: str
    password: str
    secure: bool
    from_email: str
    timeout: float

    name = 'smtp'

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'SmtpTransport':
        return cls(
            host=config.get('SMTP_HOST') or '',
            port=int(config.get('SMTP_PORT') or 587),
            user=config.get('SMTP_USER') or '',
            password=config.get('SMTP_PASSWORD') or '',
            secure=bool(config.get('SMTP_SECURE')),
            from_email=config.get('SMTP_FROM_EMAIL') or '',
            timeout=float(config.get('MAIL_TIMEOUT_SECONDS') or 10),
        )

    def send(self, message: MailMessage) -> str:
        if not self.host or not self.user or not self.password:
            raise TransportConfigError(
                'SMTP configuration is incomplete (SMTP_HOST, SMTP_USER and SMTP_PASSWORD are required)'
            )
        msg = EmailMessage()
        msg['Subject'] = message.subject
        msg['From'] = message.sender or self.from_email or self.user
        msg['To'] = message.to
        msg['Message-ID'] = make_msgid()
        msg.set_content('This message requires an HTML capable mail client.')
        msg.add_alternative(message.html, subtype='html')

        # SMTP_SECURE selects implicit TLS (usually port 465); otherwise upgrade with STARTTLS
        if self.secure:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                server.login(self.user, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(msg)
        return msg['Message-ID']


@dataclass(frozen=True)
class ResendTransport:
    api_key: str
    api_url: str
    from_email: str
    timeout: float

    name = 'resend'

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'ResendTransport':
        return cls(
            api_key=config.get('RESEND_API_KEY') or '',
            api_url=config.get('RESEND_API_URL') or 'https://api.resend.com/emails',
            from_email=config.get('RESEND_FROM_EMAIL') or '',
            timeout=float(config.get('MAIL_TIMEOUT_SECONDS') or 10),
        )

    def send(self, message: MailMessage) -> Optional[str]:
        if not self.api_key:
            raise TransportConfigError('RESEND_API_KEY is not set')
        resp = requests.post(
            self.api_url,
            json={
                'from': message.sender or self.from_email,
                'to': [message.to],
                'subject': message.subject,
                'html': message.html,
            },
            headers={'Authorization': f'Bearer {self.api_key}'},
            timeout=self.timeout,
        )
        if resp.status_code >= 400:
            raise MailError(f'HTTP {resp.status_code}: {resp.text[:200]}')
        body = resp.json() if resp.content else {}
        return body.get('id') if isinstance(body, dict) else None


class MailService:
    def __init__(self, transports: Sequence[Any], logger: Optional[logging.Logger] = None):
        self.transports = list(transports)
        self.log = logger or log

    def send(self, message: MailMessage) -> MailResult:
        errors: List[str] = []
        for transport in self.transports:
            try:
                message_id = transport.send(message)
            except (MailError, smtplib.SMTPException, requests.RequestException, OSError, ValueError) as exc:
                self.log.warning('mail transport %s failed for %s: %s', transport.name, message.to, exc)
                errors.append(f'{transport.name}: {exc}')
                continue
            self.log.info('mail sent to %s via %s', message.to, transport.name)
            return MailResult(transport=transport.name, message_id=message_id)
        self.log.error('mail delivery to %s failed on every transport', message.to)
        raise MailDeliveryError(errors)


def get_mail_service() -> MailService:
    config = current_app.config
    return MailService(
        [SmtpTransport.from_config(config), ResendTransport.from_config(config)],
        logger=current_app.logger,
    )


def send_access_email(email: str, password: str, *, login_url: Optional[str] = None,
                      company_name: Optional[str] = None, client_name: Optional[str] = None) -> MailResult:
    """Render the account-access template and send it through the fallback chain."""
    config = current_app.config
    company = company_name or config.get('COMPANY_NAME') or 'Helpdesk'
    html = render_template(
        'emails/user_access.html',
        email=email,
        password=password,
        login_url=login_url or f"{(config.get('PUBLIC_BASE_URL') or '').rstrip('/')}/login",
        company_name=company,
        client_name=client_name,
    )
    return get_mail_service().send(MailMessage(to=email, subject=f'Your {company} access', html=html))
