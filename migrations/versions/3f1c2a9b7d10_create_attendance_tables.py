"""create_attendance_tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2025-03-03 09:12:44.118203

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2a9b7d10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Skip tables create_all() already made on a fresh database
    from sqlalchemy import inspect
    conn = op.get_bind()
    existing_tables = inspect(conn).get_table_names()

    if 'employees' not in existing_tables:
        op.create_table(
            'employees',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('email', sa.String(length=120), nullable=True),
            sa.Column('department', sa.String(length=100), nullable=True),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='employee'),
            sa.Column('is_trainer', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('email')
        )
        op.create_index('ix_employees_is_active', 'employees', ['is_active'])

    if 'organizations' not in existing_tables:
        op.create_table(
            'organizations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('center_latitude', sa.Numeric(10, 7), nullable=True),
            sa.Column('center_longitude', sa.Numeric(10, 7), nullable=True),
            sa.Column('max_distance_meters', sa.Float(), nullable=True),
            sa.Column('geofencing_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )

    if 'classes' not in existing_tables:
        op.create_table(
            'classes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=100), nullable=False),
            sa.Column('code', sa.String(length=30), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('department', sa.String(length=100), nullable=True),
            sa.Column('duration_hours', sa.Float(), nullable=False, server_default='2'),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('code')
        )

    if 'trainer_class_assignments' not in existing_tables:
        op.create_table(
            'trainer_class_assignments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('trainer_id', sa.Integer(), nullable=False),
            sa.Column('class_id', sa.Integer(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('assigned_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['trainer_id'], ['employees.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('trainer_id', 'class_id', name='uix_trainer_class')
        )
        op.create_index('ix_trainer_class_assignments_trainer_id', 'trainer_class_assignments', ['trainer_id'])

    if 'work_attendance' not in existing_tables:
        op.create_table(
            'work_attendance',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('employee_id', sa.Integer(), nullable=False),
            sa.Column('attendance_date', sa.Date(), nullable=False),
            sa.Column('status', sa.String(length=10), nullable=False),
            sa.Column('sessions', sa.JSON(), nullable=False),
            sa.Column('check_in_time', sa.DateTime(), nullable=True),
            sa.Column('check_out_time', sa.DateTime(), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('employee_id', 'attendance_date', name='uix_work_attendance_employee_date')
        )
        op.create_index('ix_work_attendance_employee_id', 'work_attendance', ['employee_id'])
        op.create_index('ix_work_attendance_attendance_date', 'work_attendance', ['attendance_date'])
        op.create_index('ix_work_attendance_date_status', 'work_attendance', ['attendance_date', 'status'])

    if 'class_attendance' not in existing_tables:
        op.create_table(
            'class_attendance',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('trainer_id', sa.Integer(), nullable=False),
            sa.Column('class_id', sa.Integer(), nullable=False),
            sa.Column('attendance_date', sa.Date(), nullable=False),
            sa.Column('check_in_time', sa.DateTime(), nullable=False),
            sa.Column('check_out_time', sa.DateTime(), nullable=True),
            sa.Column('auto_checkout', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('status', sa.String(length=10), nullable=False, server_default='Present'),
            sa.Column('work_attendance_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['trainer_id'], ['employees.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['class_id'], ['classes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['work_attendance_id'], ['work_attendance.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('trainer_id', 'class_id', 'attendance_date',
                                name='uix_class_attendance_trainer_class_date')
        )
        op.create_index('ix_class_attendance_trainer_id', 'class_attendance', ['trainer_id'])
        op.create_index('ix_class_attendance_attendance_date', 'class_attendance', ['attendance_date'])

    if 'attendance_processing_log' not in existing_tables:
        op.create_table(
            'attendance_processing_log',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('processing_date', sa.Date(), nullable=False),
            sa.Column('records_processed', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
            sa.Column('processed_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('processing_date')
        )

    if 'location_heartbeats' not in existing_tables:
        op.create_table(
            'location_heartbeats',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('employee_id', sa.Integer(), nullable=False),
            sa.Column('latitude', sa.Float(), nullable=False),
            sa.Column('longitude', sa.Float(), nullable=False),
            sa.Column('accuracy', sa.Float(), nullable=False),
            sa.Column('distance_meters', sa.Float(), nullable=True),
            sa.Column('is_inside_fence', sa.Boolean(), nullable=False),
            sa.Column('recorded_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_location_heartbeats_employee_id', 'location_heartbeats', ['employee_id'])
        op.create_index('ix_location_heartbeats_recorded_at', 'location_heartbeats', ['recorded_at'])


def downgrade():
    op.drop_table('location_heartbeats')
    op.drop_table('attendance_processing_log')
    op.drop_table('class_attendance')
    op.drop_table('work_attendance')
    op.drop_table('trainer_class_assignments')
    op.drop_table('classes')
    op.drop_table('organizations')
    op.drop_table('employees')
