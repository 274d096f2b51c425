"""Request bodies for clients, service tags, users, comments and auth."""
from __future__ import annotations
from typing import Optional

from pydantic import Field, model_validator

from helpdesk.schemas.common import RequestModel, NonEmptyStr, Email, UrlList, UserRole


class LoginRequest(RequestModel):
    email: NonEmptyStr
    password: NonEmptyStr


class ClientCreateRequest(RequestModel):
    name: NonEmptyStr
    email: Email
    phone: NonEmptyStr
    address: NonEmptyStr
    company_name: NonEmptyStr


class ClientUpdateRequest(RequestModel):
    name: Optional[NonEmptyStr] = None
    email: Optional[Email] = None
    phone: Optional[NonEmptyStr] = None
    address: Optional[NonEmptyStr] = None
    company_name: Optional[NonEmptyStr] = None


class ServiceTagCreateRequest(RequestModel):
    tag: str = Field(min_length=1, max_length=120)
    description: NonEmptyStr
    client_id: int
    hardware_type: Optional[str] = None
    location: Optional[str] = None


class ServiceTagUpdateRequest(RequestModel):
    tag: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[NonEmptyStr] = None
    client_id: Optional[int] = None
    hardware_type: Optional[str] = None
    location: Optional[str] = None


class CommentCreateRequest(RequestModel):
    content: NonEmptyStr
    photo_urls: UrlList


class UserCreateRequest(RequestModel):
    email: Email
    name: NonEmptyStr
    role: UserRole
    password: Optional[str] = Field(default=None, min_length=6)
    client_id: Optional[int] = None
    send_access_email: bool = False
    login_url: Optional[str] = None

    @model_validator(mode='after')
    def _client_link(self):
        if self.role == 'client' and self.client_id is None:
            raise ValueError('client_id is required for client users')
        return self


class UserUpdateRequest(RequestModel):
    name: Optional[NonEmptyStr] = None
    email: Optional[Email] = None
    role: Optional[UserRole] = None


class UserStatusRequest(RequestModel):
    is_disabled: bool
