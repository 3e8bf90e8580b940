"""Initial FarmStaff schema

Revision ID: 20261017_0900_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000

Creates the staff directory, invitations, leave, attendance, payroll and
notification tables.

PostgreSQL only:
- btree_gist extension and an exclusion constraint that forbids two
  PENDING/APPROVED leave requests of the same staff member sharing a day
- partial unique index allowing one open attendance record per staff per day
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '20261017_0900_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    # ===========================================
    # CREATE ENUMS
    # ===========================================

    staff_role_enum = postgresql.ENUM(
        'ADMIN', 'VETERINARIAN', 'WORKER',
        name='staff_role',
        create_type=False
    )
    leave_type_enum = postgresql.ENUM(
        'SICK', 'ANNUAL', 'MATERNITY', 'PATERNITY', 'CASUAL', 'UNPAID',
        name='leave_type',
        create_type=False
    )
    leave_status_enum = postgresql.ENUM(
        'PENDING', 'APPROVED', 'REJECTED', 'CANCELLED',
        name='leave_status',
        create_type=False
    )
    attendance_status_enum = postgresql.ENUM(
        'PRESENT', 'CHECKED_OUT', 'ABSENT', 'ON_LEAVE',
        name='attendance_status',
        create_type=False
    )
    notification_type_enum = postgresql.ENUM(
        'GENERAL', 'LEAVE', 'PAYROLL', 'ATTENDANCE', 'INVITE', 'SYSTEM',
        name='notification_type',
        create_type=False
    )
    for enum in (
        staff_role_enum,
        leave_type_enum,
        leave_status_enum,
        attendance_status_enum,
        notification_type_enum,
    ):
        enum.create(bind, checkfirst=True)

    # ===========================================
    # STAFF
    # ===========================================

    op.create_table(
        'staff',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('name', sa.String(201), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(30), nullable=True),
        sa.Column('role', staff_role_enum, nullable=False, server_default='WORKER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_staff'),
    )
    op.create_index('ix_staff_email', 'staff', ['email'], unique=True)
    op.create_index('ix_staff_role', 'staff', ['role'])

    # ===========================================
    # INVITES
    # ===========================================

    op.create_table(
        'invites',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', staff_role_enum, nullable=False, server_default='WORKER'),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_invites'),
        sa.ForeignKeyConstraint(
            ['created_by_id'], ['staff.id'],
            name='fk_invites_created_by_id_staff', ondelete='SET NULL'
        ),
        sa.UniqueConstraint('token', name='uq_invites_token'),
    )
    op.create_index('ix_invites_email', 'invites', ['email'])

    # ===========================================
    # LEAVE
    # ===========================================

    op.create_table(
        'leave_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('leave_type', leave_type_enum, nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', leave_status_enum, nullable=False, server_default='PENDING'),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_leave_requests'),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['staff.id'],
            name='fk_leave_requests_staff_id_staff', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['approved_by'], ['staff.id'],
            name='fk_leave_requests_approved_by_staff', ondelete='SET NULL'
        ),
        sa.CheckConstraint('start_date <= end_date', name='ck_leave_requests_date_order'),
    )
    op.create_index('ix_leave_requests_staff_id', 'leave_requests', ['staff_id'])
    op.create_index('ix_leave_requests_status', 'leave_requests', ['status'])

    op.execute('CREATE EXTENSION IF NOT EXISTS btree_gist')
    op.execute(
        """
        ALTER TABLE leave_requests
        ADD CONSTRAINT ex_leave_requests_no_overlap
        EXCLUDE USING gist (
            staff_id WITH =,
            daterange(start_date, end_date, '[]') WITH &&
        )
        WHERE (status IN ('PENDING', 'APPROVED'))
        """
    )

    op.create_table(
        'leave_balances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('total_leave_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('used_leave_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('remaining_leave_days', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_leave_balances'),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['staff.id'],
            name='fk_leave_balances_staff_id_staff', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('staff_id', name='uq_leave_balances_staff_id'),
        sa.CheckConstraint(
            'remaining_leave_days = total_leave_days - used_leave_days',
            name='ck_leave_balances_remaining_matches'
        ),
        sa.CheckConstraint('total_leave_days >= 0', name='ck_leave_balances_total_non_negative'),
    )

    # ===========================================
    # ATTENDANCE
    # ===========================================

    op.create_table(
        'attendance',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in', sa.DateTime(), nullable=True),
        sa.Column('check_out', sa.DateTime(), nullable=True),
        sa.Column('hours', sa.Numeric(6, 2), nullable=True),
        sa.Column('status', attendance_status_enum, nullable=False, server_default='PRESENT'),
        sa.Column('location', sa.String(255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_attendance'),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['staff.id'],
            name='fk_attendance_staff_id_staff', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_attendance_staff_id', 'attendance', ['staff_id'])
    op.create_index('ix_attendance_date', 'attendance', ['date'])
    op.create_index(
        'uq_attendance_open_per_day',
        'attendance',
        ['staff_id', 'date'],
        unique=True,
        postgresql_where=sa.text('check_out IS NULL'),
    )

    # ===========================================
    # PAYROLL
    # ===========================================

    op.create_table(
        'payroll',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('salary', sa.Numeric(12, 2), nullable=False),
        sa.Column('bonus', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('deductions', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('paid_on', sa.Date(), nullable=False),
        sa.Column('pay_period', sa.String(7), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_payroll'),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['staff.id'],
            name='fk_payroll_staff_id_staff', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('staff_id', 'pay_period', name='uq_payroll_staff_period'),
    )
    op.create_index('ix_payroll_staff_id', 'payroll', ['staff_id'])
    op.create_index('ix_payroll_paid_on', 'payroll', ['paid_on'])

    # ===========================================
    # NOTIFICATIONS
    # ===========================================

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('staff_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('notification_type', notification_type_enum, nullable=False, server_default='GENERAL'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('email_sent_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_notifications'),
        sa.ForeignKeyConstraint(
            ['staff_id'], ['staff.id'],
            name='fk_notifications_staff_id_staff', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_notifications_staff_id', 'notifications', ['staff_id'])
    op.create_index('ix_notifications_notification_type', 'notifications', ['notification_type'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('payroll')
    op.drop_table('attendance')
    op.drop_table('leave_balances')
    op.drop_table('leave_requests')
    op.drop_table('invites')
    op.drop_table('staff')

    bind = op.get_bind()
    for name in ('notification_type', 'attendance_status', 'leave_status', 'leave_type', 'staff_role'):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
