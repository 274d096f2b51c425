from __future__ import annotations
from typing import Optional

from pydantic import Field

from helpdesk.schemas.common import (
    RequestModel, NonEmptyStr, UrlList, Url, TicketStatus, TicketPriority, TicketSource,
)


class TicketCreateRequest(RequestModel):
    title: str = Field(min_length=1, max_length=200)
    description: NonEmptyStr
    priority: TicketPriority = 'medium'
    source: TicketSource = 'web'
    client_id: int
    service_tag_ids: list[int] = Field(min_length=1)
    photo_urls: UrlList


class TicketUpdateRequest(RequestModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[NonEmptyStr] = None
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    source: Optional[TicketSource] = None
    client_id: Optional[int] = None
    photo_urls: Optional[list[Url]] = None
    assigned_to: Optional[int] = None


class TicketStatusRequest(RequestModel):
    status: TicketStatus


class TicketAssignRequest(RequestModel):
    assigned_user_id: Optional[int] = None


class TicketServiceTagRequest(RequestModel):
    service_tag_id: int


class TicketRejectRequest(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=500)
