"""leave balances per employee, leave type and year

Revision ID: 0002b3c4d5e6
Revises: 0001a2b3c4d5
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002b3c4d5e6'
down_revision: Union[str, Sequence[str], None] = '0001a2b3c4d5'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'leave_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', sa.Integer(), sa.ForeignKey('leave_types.id', ondelete='CASCADE'),
                  nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('allocated_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('used_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('employee_id', 'leave_type_id', 'year', name='uq_leave_balance_year'),
    )
    op.create_index('ix_leave_balances_employee_id', 'leave_balances', ['employee_id'])
    op.create_index('ix_leave_balances_leave_type_id', 'leave_balances', ['leave_type_id'])


def downgrade() -> None:
    op.drop_index('ix_leave_balances_leave_type_id', table_name='leave_balances')
    op.drop_index('ix_leave_balances_employee_id', table_name='leave_balances')
    op.drop_table('leave_balances')
