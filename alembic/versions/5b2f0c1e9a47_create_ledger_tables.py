"""create ledger tables

Revision ID: 5b2f0c1e9a47
Revises: 
Create Date: 2026-10-19 09:12:40.518204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b2f0c1e9a47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

attendance_status = sa.Enum('present', 'absent', 'late', name='attendance_status')
assessment_type = sa.Enum('assignment', 'quiz', 'midterm', 'final', 'total', name='assessment_type')
recipient_type = sa.Enum('student', 'teacher', 'admin', name='recipient_type')
sender_type = sa.Enum('student', 'teacher', 'admin', 'system', name='sender_type')
notification_type = sa.Enum(
    'message', 'assignment', 'announcement', 'quiz', 'material', 'event', 'attendance', 'grade',
    name='notification_type',
)


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
    ]


def _base_indexes(table: str):
    op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
    op.create_index(op.f(f'ix_{table}_created_at'), table, ['created_at'], unique=False)


def upgrade() -> None:
    op.create_table(
        'teacher_classes',
        *_base_columns(),
        sa.Column('teacher_id', sa.String(length=64), nullable=False),
        sa.Column('teacher_name', sa.String(length=100), nullable=False),
        sa.Column('class_name', sa.String(length=100), nullable=False),
        sa.Column('subject_name', sa.String(length=100), nullable=False),
        sa.Column('school_year', sa.String(length=20), nullable=True),
        sa.Column('student_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('teacher_classes')
    op.create_index(op.f('ix_teacher_classes_teacher_id'), 'teacher_classes', ['teacher_id'], unique=False)
    op.create_index(op.f('ix_teacher_classes_class_name'), 'teacher_classes', ['class_name'], unique=False)

    op.create_table(
        'students',
        *_base_columns(),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('reg_no', sa.String(length=30), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('students')
    op.create_index(op.f('ix_students_reg_no'), 'students', ['reg_no'], unique=False)

    op.create_table(
        'enrollments',
        *_base_columns(),
        sa.Column('class_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['class_id'], ['teacher_classes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'student_id', name='uq_enrollment_class_student'),
    )
    _base_indexes('enrollments')
    op.create_index(op.f('ix_enrollments_class_id'), 'enrollments', ['class_id'], unique=False)
    op.create_index(op.f('ix_enrollments_student_id'), 'enrollments', ['student_id'], unique=False)

    op.create_table(
        'attendance_records',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('class_id', sa.Uuid(), nullable=False),
        sa.Column('session_date', sa.Date(), nullable=False),
        sa.Column('status', attendance_status, nullable=False),
        sa.Column('marked_by', sa.String(length=64), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=False),
        sa.Column('marked_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'class_id', 'session_date', name='uq_attendance_student_class_date'),
    )
    _base_indexes('attendance_records')
    op.create_index(op.f('ix_attendance_records_student_id'), 'attendance_records', ['student_id'], unique=False)
    op.create_index(op.f('ix_attendance_records_class_id'), 'attendance_records', ['class_id'], unique=False)
    op.create_index(op.f('ix_attendance_records_session_date'), 'attendance_records', ['session_date'], unique=False)
    op.create_index('ix_attendance_class_date', 'attendance_records', ['class_id', 'session_date'], unique=False)

    op.create_table(
        'grade_records',
        *_base_columns(),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('class_id', sa.Uuid(), nullable=False),
        sa.Column('assessment_type', assessment_type, nullable=False),
        sa.Column('assessment_id', sa.String(length=64), nullable=True),
        sa.Column('assessment_title', sa.String(length=200), nullable=False),
        sa.Column('max_marks', sa.Float(), nullable=False),
        sa.Column('obtained_marks', sa.Float(), nullable=False),
        sa.Column('percentage', sa.Float(), nullable=False),
        sa.Column('letter_grade', sa.String(length=4), nullable=False),
        sa.Column('remarks', sa.Text(), nullable=False),
        sa.Column('graded_by', sa.String(length=64), nullable=False),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'student_id', 'class_id', 'assessment_type', 'assessment_id',
            name='uq_grade_student_assessment',
            postgresql_nulls_not_distinct=True,
        ),
    )
    _base_indexes('grade_records')
    op.create_index(op.f('ix_grade_records_student_id'), 'grade_records', ['student_id'], unique=False)
    op.create_index(op.f('ix_grade_records_class_id'), 'grade_records', ['class_id'], unique=False)
    op.create_index('ix_grade_class_type', 'grade_records', ['class_id', 'assessment_type'], unique=False)
    op.create_index('ix_grade_student_published', 'grade_records', ['student_id', 'is_published'], unique=False)

    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('recipient_id', sa.String(length=64), nullable=False),
        sa.Column('recipient_type', recipient_type, nullable=False),
        sa.Column('sender_id', sa.String(length=64), nullable=False),
        sa.Column('sender_type', sender_type, nullable=False),
        sa.Column('sender_name', sa.String(length=100), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_id', sa.String(length=64), nullable=True),
        sa.Column('related_type', sa.String(length=50), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    _base_indexes('notifications')
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)
    op.create_index(op.f('ix_notifications_is_deleted'), 'notifications', ['is_deleted'], unique=False)
    op.create_index(
        'ix_notification_recipient_read', 'notifications', ['recipient_id', 'is_read', 'created_at'], unique=False
    )
    op.create_index('ix_notification_recipient_deleted', 'notifications', ['recipient_id', 'is_deleted'], unique=False)


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('grade_records')
    op.drop_table('attendance_records')
    op.drop_table('enrollments')
    op.drop_table('students')
    op.drop_table('teacher_classes')

    bind = op.get_bind()
    for enum_type in (notification_type, sender_type, recipient_type, assessment_type, attendance_status):
        enum_type.drop(bind, checkfirst=True)
