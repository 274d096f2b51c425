from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from helpdesk.models.base import Base, utcnow


class ServiceTag(Base):
    __tablename__ = 'service_tags'
    CODE_PREFIX = 'ST'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tag: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    client_id: Mapped[int] = mapped_column(ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True)
    hardware_type: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    client = relationship('Client')

    __table_args__ = (UniqueConstraint('client_id', 'tag', name='uq_service_tag_client_tag'),)

    @property
    def code(self) -> str:
        return f"{self.CODE_PREFIX}-{self.id:06d}"
