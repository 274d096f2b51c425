"""Shared request-body building blocks.

Every request schema derives from ``RequestModel`` so whitespace is stripped
and unknown keys are ignored consistently across the API.
"""
from __future__ import annotations
import re
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
URL_RE = re.compile(r'^https?://[^\s/$.?#].[^\s]*$', re.IGNORECASE)

TicketStatus = Literal['pending_approval', 'open', 'in_progress', 'resolved', 'closed']
TicketPriority = Literal['low', 'medium', 'high']
TicketSource = Literal['email', 'phone', 'web', 'in_person']
UserRole = Literal['superadmin', 'admin', 'technician', 'client']


def _check_email(value: str) -> str:
    if not EMAIL_RE.match(value):
        raise ValueError('Invalid email format')
    return value.lower()


def _check_url(value: str) -> str:
    if not URL_RE.match(value):
        raise ValueError('Invalid URL')
    return value


Email = Annotated[str, AfterValidator(_check_email)]
Url = Annotated[str, AfterValidator(_check_url)]
NonEmptyStr = Annotated[str, Field(min_length=1)]
UrlList = Annotated[list[Url], Field(default_factory=list)]


class RequestModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')
