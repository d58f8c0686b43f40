"""initial schema: auth, masters, employees, movements, attendance, leave, transfers

Revision ID: 0001a2b3c4d5
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001a2b3c4d5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ---- auth / rbac ----
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=50), nullable=False, unique=True),
        sa.Column('name', sa.String(length=120), nullable=True),
    )
    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=120), nullable=False, unique=True),
        sa.Column('name', sa.String(length=150), nullable=True),
    )
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.Integer(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('permission_id', sa.Integer(), sa.ForeignKey('permissions.id', ondelete='CASCADE'),
                  primary_key=True),
    )

    # ---- masters ----
    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    # head_employee_id FK is added after employees exists
    op.create_table(
        'departments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('branch_id', sa.Integer(), sa.ForeignKey('branches.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('parent_department_id', sa.Integer(),
                  sa.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('head_employee_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_department_branch_id', 'departments', ['branch_id'])
    op.create_index('ix_department_parent_id', 'departments', ['parent_department_id'])

    op.create_table(
        'designations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'),
                  nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('department_id', 'name', name='uq_designation_dept_name'),
    )

    # ---- employees ----
    op.create_table(
        'employees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('designation_id', sa.Integer(), sa.ForeignKey('designations.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('branch_id', sa.Integer(), sa.ForeignKey('branches.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True,
                  unique=True),
        sa.Column('code', sa.String(length=32), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('first_name', sa.String(length=80), nullable=False),
        sa.Column('last_name', sa.String(length=80), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('gender', sa.String(length=10), nullable=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_emp_dept_id', 'employees', ['department_id'])
    op.create_index('ix_emp_branch_id', 'employees', ['branch_id'])
    op.create_index('ix_emp_manager_id', 'employees', ['manager_id'])
    op.create_index('ix_emp_status', 'employees', ['status'])

    with op.batch_alter_table('departments') as batch:
        batch.create_foreign_key(
            'fk_departments_head_employee', 'employees', ['head_employee_id'], ['id'], ondelete='SET NULL',
        )

    # ---- movements ----
    op.create_table(
        'movements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('movement_type', sa.String(length=16), nullable=False, server_default='official'),
        sa.Column('from_datetime', sa.DateTime(), nullable=False),
        sa.Column('to_datetime', sa.DateTime(), nullable=False),
        sa.Column('purpose', sa.String(length=255), nullable=False),
        sa.Column('destination', sa.String(length=255), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('to_datetime > from_datetime', name='ck_movement_range'),
    )
    op.create_index('ix_movements_employee_id', 'movements', ['employee_id'])
    op.create_index('ix_movement_status', 'movements', ['status'])
    op.create_index('ix_movement_from', 'movements', ['from_datetime'])

    # ---- attendance ----
    op.create_table(
        'attendances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in', sa.DateTime(), nullable=True),
        sa.Column('check_out', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='present'),
        sa.Column('working_hours', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('overtime_hours', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('employee_id', 'date', name='uq_attendance_employee_date'),
    )
    op.create_index('ix_attendances_employee_id', 'attendances', ['employee_id'])
    op.create_index('ix_attendance_date', 'attendances', ['date'])

    # ---- leave ----
    op.create_table(
        'leave_types',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'leave_applications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('leave_type_id', sa.Integer(), sa.ForeignKey('leave_types.id', ondelete='RESTRICT'),
                  nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('days', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('end_date >= start_date', name='ck_leave_range'),
    )
    op.create_index('ix_leave_applications_employee_id', 'leave_applications', ['employee_id'])

    # ---- transfers ----
    op.create_table(
        'transfers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('employee_id', sa.Integer(), sa.ForeignKey('employees.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_branch_id', sa.Integer(), sa.ForeignKey('branches.id', ondelete='RESTRICT'),
                  nullable=False),
        sa.Column('to_branch_id', sa.Integer(), sa.ForeignKey('branches.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('from_department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('to_department_id', sa.Integer(), sa.ForeignKey('departments.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('from_designation_id', sa.Integer(), sa.ForeignKey('designations.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('to_designation_id', sa.Integer(), sa.ForeignKey('designations.id', ondelete='RESTRICT'),
                  nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('transfer_order_no', sa.String(length=50), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_transfers_employee_id', 'transfers', ['employee_id'])
    op.create_index('ix_transfer_effective_date', 'transfers', ['effective_date'])


def downgrade() -> None:
    op.drop_table('transfers')
    op.drop_table('leave_applications')
    op.drop_table('leave_types')
    op.drop_table('attendances')
    op.drop_table('movements')
    with op.batch_alter_table('departments') as batch:
        batch.drop_constraint('fk_departments_head_employee', type_='foreignkey')
    op.drop_table('employees')
    op.drop_table('designations')
    op.drop_table('departments')
    op.drop_table('branches')
    op.drop_table('role_permissions')
    op.drop_table('user_roles')
    op.drop_table('permissions')
    op.drop_table('roles')
    op.drop_table('users')
