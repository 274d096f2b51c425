"""initial helpdesk schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table('clients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('email', sa.String(length=160), nullable=False),
        sa.Column('phone', sa.String(length=40), nullable=False),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('company_name', sa.String(length=160), nullable=False),
        *_timestamps()
    )
    op.create_index('ix_clients_name', 'clients', ['name'])
    op.create_index('ix_clients_company_name', 'clients', ['company_name'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='client'),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_disabled', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True),
        *_timestamps()
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_client_id', 'users', ['client_id'])

    op.create_table('service_tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tag', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('hardware_type', sa.String(length=80), nullable=True),
        sa.Column('location', sa.String(length=160), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('client_id', 'tag', name='uq_service_tag_client_tag')
    )
    op.create_index('ix_service_tags_client_id', 'service_tags', ['client_id'])

    op.create_table('tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='open'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('source', sa.String(length=16), nullable=False, server_default='web'),
        sa.Column('client_id', sa.Integer(), sa.ForeignKey('clients.id'), nullable=False),
        sa.Column('reported_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('photo_urls', sa.JSON(), nullable=False),
        sa.Column('time_open', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_closed', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('contact_name', sa.String(length=160), nullable=True),
        sa.Column('contact_email', sa.String(length=160), nullable=True),
        sa.Column('contact_phone', sa.String(length=40), nullable=True),
        sa.Column('is_public_submission', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('client_was_new', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        *_timestamps()
    )
    op.create_index('ix_tickets_status', 'tickets', ['status'])
    op.create_index('ix_tickets_priority', 'tickets', ['priority'])
    op.create_index('ix_tickets_client_id', 'tickets', ['client_id'])
    op.create_index('ix_tickets_assigned_to', 'tickets', ['assigned_to'])

    op.create_table('ticket_service_tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_tag_id', sa.Integer(), sa.ForeignKey('service_tags.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('ticket_id', 'service_tag_id', name='uq_ticket_service_tag')
    )
    op.create_index('ix_ticket_service_tags_ticket_id', 'ticket_service_tags', ['ticket_id'])
    op.create_index('ix_ticket_service_tags_service_tag_id', 'ticket_service_tags', ['service_tag_id'])

    op.create_table('ticket_updates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    )
    op.create_index('ix_ticket_updates_ticket_id', 'ticket_updates', ['ticket_id'])
    op.create_index('ix_ticket_updates_created_at', 'ticket_updates', ['created_at'])

    op.create_table('comments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('photo_urls', sa.JSON(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        *_timestamps()
    )
    op.create_index('ix_comments_ticket_id', 'comments', ['ticket_id'])


def downgrade():
    for table in ('comments', 'ticket_updates', 'ticket_service_tags', 'tickets', 'service_tags', 'users', 'clients'):
        op.drop_table(table)
