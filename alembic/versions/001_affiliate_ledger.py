"""affiliate ledger: users, clicks, links, transactions, withdrawals

Revision ID: 001
Revises: 
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', sa.Enum('user', 'owner', name='user_role'), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('username')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=False)

    op.create_table(
        'clicks',
        sa.Column('id', sa.String(40), nullable=False),
        sa.Column('product_id', sa.String(255), nullable=False),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('client_ip', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.String(500), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('status', sa.Enum('pending', 'converted', name='click_status'), nullable=False),
        sa.Column('order_id', sa.String(255), nullable=True),
        sa.Column('converted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_clicks_product_id'), 'clicks', ['product_id'], unique=False)
    op.create_index(op.f('ix_clicks_platform'), 'clicks', ['platform'], unique=False)
    op.create_index(op.f('ix_clicks_user_id'), 'clicks', ['user_id'], unique=False)
    op.create_index('idx_clicks_platform_status', 'clicks', ['platform', 'status'], unique=False)

    op.create_table(
        'affiliate_links',
        sa.Column('id', sa.String(40), nullable=False),
        sa.Column('product_id', sa.String(255), nullable=False),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('click_id', sa.String(40), nullable=True),
        sa.Column('destination_url', sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_affiliate_links_platform'), 'affiliate_links', ['platform'], unique=False)
    op.create_index(op.f('ix_affiliate_links_user_id'), 'affiliate_links', ['user_id'], unique=False)
    op.create_index(op.f('ix_affiliate_links_click_id'), 'affiliate_links', ['click_id'], unique=False)

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(40), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('product_id', sa.String(255), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('order_id', sa.String(255), nullable=False),
        sa.Column('click_id', sa.String(40), nullable=True),
        sa.Column('status', sa.Enum('confirmed', 'pending', 'reversed', name='transaction_status'), nullable=False),
        sa.Column('raw_payload', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('platform', 'order_id', name='uq_transactions_platform_order')
    )
    op.create_index(op.f('ix_transactions_user_id'), 'transactions', ['user_id'], unique=False)
    op.create_index(op.f('ix_transactions_click_id'), 'transactions', ['click_id'], unique=False)

    op.create_table(
        'withdrawals',
        sa.Column('id', sa.String(40), nullable=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method', sa.String(50), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'approved', 'completed', 'rejected', name='withdrawal_status'),
            nullable=False,
        ),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_withdrawals_user_id'), 'withdrawals', ['user_id'], unique=False)
    op.create_index(op.f('ix_withdrawals_status'), 'withdrawals', ['status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('withdrawals')
    op.drop_table('transactions')
    op.drop_table('affiliate_links')
    op.drop_table('clicks')
    op.drop_table('users')
    for enum_name in ('withdrawal_status', 'transaction_status', 'click_status', 'user_role'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
