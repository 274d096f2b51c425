"""Request bodies for mail, storage uploads and anonymous ticket intake."""
from __future__ import annotations
from typing import Optional

from pydantic import Field

from helpdesk.schemas.common import RequestModel, NonEmptyStr, Email, TicketPriority, TicketSource


class MailSendRequest(RequestModel):
    to: Email
    subject: NonEmptyStr
    html: NonEmptyStr
    sender: Optional[Email] = Field(default=None, alias='from')


class AccessEmailRequest(RequestModel):
    email: Email
    password: NonEmptyStr
    login_url: Optional[str] = None
    company_name: Optional[str] = None
    client_name: Optional[str] = None


class UploadRequest(RequestModel):
    bucket: str = Field(min_length=1, max_length=64, pattern=r'^[a-z0-9_-]+$')
    path: NonEmptyStr
    file: NonEmptyStr
    content_type: NonEmptyStr


class PublicImage(RequestModel):
    filename: NonEmptyStr
    data: NonEmptyStr


class PublicTicketRequest(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    description: NonEmptyStr
    company_name: NonEmptyStr
    service_tag_names: list[NonEmptyStr] = Field(min_length=1)
    contact_name: NonEmptyStr
    contact_email: Email
    contact_phone: NonEmptyStr
    priority: TicketPriority = 'medium'
    source: TicketSource = 'web'
    images: list[PublicImage] = Field(default_factory=list, max_length=10)
