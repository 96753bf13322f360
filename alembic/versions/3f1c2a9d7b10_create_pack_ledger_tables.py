"""create_pack_ledger_tables

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-02-16 17:46:58.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

pack_status = sa.Enum('active', 'paused', 'exhausted', 'expired', name='pack_status')
pack_payment_status = sa.Enum('paid', 'partial', 'unpaid', name='pack_payment_status')
pack_payment_method = sa.Enum('cash', 'card', 'transfer', 'wallet', name='pack_payment_method')


def upgrade() -> None:
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('member_code', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
    )
    op.create_index('ix_members_id', 'members', ['id'])
    op.create_index('ix_members_member_code', 'members', ['member_code'], unique=True)

    op.create_table(
        'pack_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('total_sessions', sa.Integer(), nullable=False),
        sa.Column('price_total', sa.Numeric(10, 2), nullable=False),
        sa.Column('validity_days', sa.Integer(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
    )
    op.create_index('ix_pack_templates_id', 'pack_templates', ['id'])

    op.create_table(
        'pack_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('pack_template_id', sa.Integer(), sa.ForeignKey('pack_templates.id'), nullable=False),
        sa.Column('total_sessions', sa.Integer(), nullable=False),
        sa.Column('remaining_sessions', sa.Integer(), nullable=False),
        sa.Column('session_name', sa.String(), nullable=True),
        sa.Column('session_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('purchased_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', pack_status, nullable=False),
        sa.Column('payment_status', pack_payment_status, nullable=False),
        sa.Column('payment_method', pack_payment_method, nullable=True),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.CheckConstraint(
            'remaining_sessions >= 0 AND remaining_sessions <= total_sessions',
            name='ck_pack_assignments_remaining_bounds',
        ),
    )
    op.create_index('ix_pack_assignments_id', 'pack_assignments', ['id'])
    op.create_index('ix_pack_assignments_member_status', 'pack_assignments', ['member_id', 'status'])

    op.create_table(
        'pack_check_ins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('pack_assignments.id'), nullable=False),
        sa.Column('member_id', sa.Integer(), sa.ForeignKey('members.id'), nullable=False),
        sa.Column('idempotency_key', sa.String(128), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('performed_by', sa.Integer(), nullable=True),
        sa.Column('session_name', sa.String(), nullable=True),
        sa.Column('session_price', sa.Numeric(10, 2), nullable=True),
        sa.UniqueConstraint('assignment_id', 'idempotency_key', name='uq_pack_check_ins_assignment_key'),
    )
    op.create_index('ix_pack_check_ins_id', 'pack_check_ins', ['id'])
    op.create_index(
        'ix_pack_check_ins_assignment_checked_in_at', 'pack_check_ins', ['assignment_id', 'checked_in_at']
    )


def downgrade() -> None:
    op.drop_index('ix_pack_check_ins_assignment_checked_in_at', table_name='pack_check_ins')
    op.drop_index('ix_pack_check_ins_id', table_name='pack_check_ins')
    op.drop_table('pack_check_ins')
    op.drop_index('ix_pack_assignments_member_status', table_name='pack_assignments')
    op.drop_index('ix_pack_assignments_id', table_name='pack_assignments')
    op.drop_table('pack_assignments')
    op.drop_index('ix_pack_templates_id', table_name='pack_templates')
    op.drop_table('pack_templates')
    op.drop_index('ix_members_member_code', table_name='members')
    op.drop_index('ix_members_id', table_name='members')
    op.drop_table('members')
    pack_payment_method.drop(op.get_bind(), checkfirst=True)
    pack_payment_status.drop(op.get_bind(), checkfirst=True)
    pack_status.drop(op.get_bind(), checkfirst=True)
