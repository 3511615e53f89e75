"""create_identity_tables

Revision ID: 5c1e8a2f9d41
Revises:
Create Date: 2026-10-18 09:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e8a2f9d41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=200), nullable=True),
        sa.Column('firstname', sa.String(length=100), nullable=True),
        sa.Column('lastname', sa.String(length=100), nullable=True),
        sa.Column('redirect_uri', sa.String(length=500), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table(
        'apps',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('redirect_uri', sa.String(length=500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            'user_id',
            sa.String(length=36),
            sa.ForeignKey('users.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'credentials',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('consumer_type', sa.String(length=10), nullable=False, server_default='user'),
        sa.Column('consumer_id', sa.String(length=100), nullable=True),
        sa.Column(
            'app_id',
            sa.String(length=36),
            sa.ForeignKey('apps.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='basic-auth'),
        sa.Column('scope', sa.String(length=200), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('key_id', sa.String(length=36), nullable=True),
        sa.Column('key_secret_hash', sa.Text(), nullable=True),
        sa.Column('password', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('secret_hash', sa.Text(), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True, server_default='system'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(consumer_type = 'user' AND consumer_id IS NOT NULL AND app_id IS NULL) OR "
            "(consumer_type = 'app' AND app_id IS NOT NULL AND consumer_id IS NULL)",
            name='ck_credentials_consumer',
        ),
        sa.UniqueConstraint('key_id', name='uq_credentials_key_id'),
    )
    op.create_index('ix_credentials_consumer_id', 'credentials', ['consumer_id'])
    op.create_index('ix_credentials_app_id', 'credentials', ['app_id'])
    op.create_index('ix_credentials_type_active', 'credentials', ['type', 'is_active'])
    # At most one active credential per consumer
    op.create_index(
        'uq_credentials_active_consumer',
        'credentials',
        ['consumer_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )
    op.create_index(
        'uq_credentials_active_app',
        'credentials',
        ['app_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('uq_credentials_active_app', table_name='credentials')
    op.drop_index('uq_credentials_active_consumer', table_name='credentials')
    op.drop_index('ix_credentials_type_active', table_name='credentials')
    op.drop_index('ix_credentials_app_id', table_name='credentials')
    op.drop_index('ix_credentials_consumer_id', table_name='credentials')
    op.drop_table('credentials')
    op.drop_table('apps')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')
