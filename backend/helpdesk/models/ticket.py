from __future__ import annotations
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Table, Column, UniqueConstraint, func
from helpdesk.models.base import Base, utcnow

# Junction table linking tickets and service tags
ticket_service_tags = Table(
    'ticket_service_tags',
    Base.metadata,
    Column('id', Integer, primary_key=True),
    Column('ticket_id', ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False, index=True),
    Column('service_tag_id', ForeignKey('service_tags.id', ondelete='CASCADE'), nullable=False, index=True),
    Column('created_at', DateTime(timezone=True), server_default=func.now(), nullable=False),
    UniqueConstraint('ticket_id', 'service_tag_id', name='uq_ticket_service_tag'),
)


class Ticket(Base):
    __tablename__ = 'tickets'
    CODE_PREFIX = 'TK'
    # Status constants
    STATUS_PENDING_APPROVAL = 'pending_approval'
    STATUS_OPEN = 'open'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_RESOLVED = 'resolved'
    STATUS_CLOSED = 'closed'
    ALL_STATUSES = (STATUS_PENDING_APPROVAL, STATUS_OPEN, STATUS_IN_PROGRESS, STATUS_RESOLVED, STATUS_CLOSED)
    CLOSED_STATUSES = (STATUS_RESOLVED, STATUS_CLOSED)
    # Priority constants
    PRIORITY_LOW = 'low'
    PRIORITY_MEDIUM = 'medium'
    PRIORITY_HIGH = 'high'
    ALL_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH)
    # Source constants
    SOURCE_EMAIL = 'email'
    SOURCE_PHONE = 'phone'
    SOURCE_WEB = 'web'
    SOURCE_IN_PERSON = 'in_person'
    ALL_SOURCES = (SOURCE_EMAIL, SOURCE_PHONE, SOURCE_WEB, SOURCE_IN_PERSON)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_OPEN, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_MEDIUM, index=True)
    source: Mapped[str] = mapped_column(String(16), nullable=False, default=SOURCE_WEB)
    client_id: Mapped[int] = mapped_column(ForeignKey('clients.id'), nullable=False, index=True)
    reported_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True, index=True)
    photo_urls: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    time_open: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    time_closed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # Public intake contact details
    contact_name: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    is_public_submission: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_was_new: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    client = relationship('Client')
    reporter = relationship('User', foreign_keys=[reported_by])
    assignee = relationship('User', foreign_keys=[assigned_to])
    service_tags = relationship('ServiceTag', secondary=ticket_service_tags, order_by='ServiceTag.id')

    @property
    def code(self) -> str:
        return f"{self.CODE_PREFIX}-{self.id:06d}"


class TicketUpdate(Base):
    """Ticket history entry; ``message`` is human readable and drives the derived history type."""
    __tablename__ = 'ticket_updates'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    user = relationship('User')
