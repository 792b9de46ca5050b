"""initial marketplace schema: users, tutors, tuitions, applications, payments, reviews, notifications

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16
"""
from alembic import op
import sqlalchemy as sa

revision = '20261016_0001'
down_revision = None
branch_labels = None
depends_on = None

NOTIFICATION_TYPES = (
    'NEW_APPLICATION', 'APPLICATION_ACCEPTED', 'TUITION_STARTED', 'NEW_REVIEW',
    'TUTOR_APPLICATION', 'PROFILE_APPROVED', 'PROFILE_REJECTED',
)


def _ts(name, nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('photo_url', sa.Text, nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('role', sa.Enum('student', 'tutor', 'admin', name='user_role_enum'), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        _ts('created_at', nullable=False),
        _ts('updated_at', nullable=False),
        _ts('last_login_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # ── tutors ────────────────────────────────────────────────────────────────
    op.create_table(
        'tutors',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('photo_url', sa.Text, nullable=True),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('institution', sa.String(255), nullable=True),
        sa.Column('experience_years', sa.Integer, nullable=True),
        sa.Column('experience_months', sa.Integer, nullable=True),
        sa.Column('subjects', sa.JSON, nullable=False),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('district', sa.String(100), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('expected_salary', sa.Integer, nullable=True),
        sa.Column('mode', sa.String(50), nullable=True),
        sa.Column('time', sa.String(100), nullable=True),
        sa.Column('id_card_url', sa.Text, nullable=False),
        sa.Column('status', sa.Enum('pending', 'approved', 'rejected', name='tutor_status_enum'), nullable=False),
        _ts('submitted_at', nullable=False),
        _ts('reviewed_at'),
        sa.Column('rating_sum', sa.Integer, nullable=False, server_default='0'),
        sa.Column('rating_count', sa.Integer, nullable=False, server_default='0'),
    )
    op.create_index('ix_tutors_user_id', 'tutors', ['user_id'], unique=True)
    op.create_index('ix_tutors_email', 'tutors', ['email'], unique=True)
    op.create_index('ix_tutors_district', 'tutors', ['district'])
    op.create_index('ix_tutors_status', 'tutors', ['status'])

    # ── tuitions ──────────────────────────────────────────────────────────────
    op.create_table(
        'tuitions',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('idempotency_key', sa.String(255), nullable=False, unique=True),
        sa.Column('student_id', sa.Uuid(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_email', sa.String(255), nullable=False),
        sa.Column('student_name', sa.String(255), nullable=True),
        sa.Column('student_phone', sa.String(20), nullable=True),
        sa.Column('student_photo', sa.Text, nullable=True),
        sa.Column('subjects', sa.JSON, nullable=False),
        sa.Column('class_level', sa.String(50), nullable=False),
        sa.Column('mode', sa.String(50), nullable=False),
        sa.Column('district', sa.String(100), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('days', sa.Integer, nullable=True),
        sa.Column('time', sa.String(100), nullable=True),
        sa.Column('duration', sa.String(100), nullable=True),
        sa.Column('min_budget', sa.Integer, nullable=True),
        sa.Column('max_budget', sa.Integer, nullable=True),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column(
            'status',
            sa.Enum('open', 'assigned', 'ongoing', 'completed', 'closed', name='tuition_status_enum'),
            nullable=False,
        ),
        sa.Column('tutor_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tutors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('tutor_email', sa.String(255), nullable=True),
        sa.Column('tutor_name', sa.String(255), nullable=True),
        sa.Column('tutor_photo', sa.Text, nullable=True),
        sa.Column('tutor_phone', sa.String(20), nullable=True),
        sa.Column('salary', sa.Integer, nullable=True),
        sa.Column('assigned_application_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('reviewed', sa.Boolean, nullable=False, server_default=sa.false()),
        _ts('reviewed_at'),
        sa.Column('review_id', sa.Uuid(as_uuid=True), nullable=True),
        _ts('posted_at', nullable=False),
        _ts('assigned_at'),
        _ts('started_at'),
        _ts('closed_at'),
        _ts('completed_at'),
        _ts('updated_at', nullable=False),
    )
    op.create_index('ix_tuitions_student_id', 'tuitions', ['student_id'])
    op.create_index('ix_tuitions_student_email', 'tuitions', ['student_email'])
    op.create_index('ix_tuitions_district', 'tuitions', ['district'])
    op.create_index('ix_tuitions_status', 'tuitions', ['status'])
    op.create_index('ix_tuitions_tutor_id', 'tuitions', ['tutor_id'])
    op.create_index('ix_tuitions_tutor_email', 'tuitions', ['tutor_email'])
    op.create_index('ix_tuitions_posted_at', 'tuitions', ['posted_at'])

    # ── applications ──────────────────────────────────────────────────────────
    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tuition_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tuitions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tutor_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tutors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('salary', sa.Integer, nullable=False),
        sa.Column('cover_letter', sa.Text, nullable=False, server_default=''),
        sa.Column('tutor_name', sa.String(255), nullable=True),
        sa.Column('tutor_photo', sa.Text, nullable=True),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('institution', sa.String(255), nullable=True),
        sa.Column('experience_years', sa.Integer, nullable=True),
        sa.Column('experience_months', sa.Integer, nullable=True),
        sa.Column('tuition_time', sa.String(100), nullable=True),
        sa.Column('days', sa.Integer, nullable=True),
        sa.Column('class_level', sa.String(50), nullable=True),
        sa.Column('subjects', sa.JSON, nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column(
            'status',
            sa.Enum('pending', 'accepted', 'rejected', name='application_status_enum'),
            nullable=False,
        ),
        _ts('applied_at', nullable=False),
        _ts('decided_at'),
        sa.UniqueConstraint('tuition_id', 'tutor_id', name='uq_applications_tuition_tutor'),
    )
    op.create_index('ix_applications_tuition_id', 'applications', ['tuition_id'])
    op.create_index('ix_applications_tutor_id', 'applications', ['tutor_id'])
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index('ix_applications_applied_at', 'applications', ['applied_at'])

    # ── payments ──────────────────────────────────────────────────────────────
    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('transaction_id', sa.String(255), nullable=False),
        sa.Column('checkout_session_id', sa.String(255), nullable=True),
        sa.Column('payment_status', sa.String(50), nullable=False),
        sa.Column('tuition_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('student_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('tutor_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('application_id', sa.Uuid(as_uuid=True), nullable=True),
        sa.Column('student_email', sa.String(255), nullable=False),
        sa.Column('tutor_email', sa.String(255), nullable=True),
        sa.Column('amount_paise', sa.Integer, nullable=False),
        sa.Column('platform_fee_paise', sa.Integer, nullable=False),
        sa.Column('tutor_earning_paise', sa.Integer, nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        _ts('paid_at', nullable=False),
    )
    op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'], unique=True)
    op.create_index('ix_payments_checkout_session_id', 'payments', ['checkout_session_id'])
    op.create_index('ix_payments_tuition_id', 'payments', ['tuition_id'])
    op.create_index('ix_payments_student_id', 'payments', ['student_id'])
    op.create_index('ix_payments_tutor_id', 'payments', ['tutor_id'])
    op.create_index('ix_payments_student_email', 'payments', ['student_email'])
    op.create_index('ix_payments_tutor_email', 'payments', ['tutor_email'])
    op.create_index('ix_payments_paid_at', 'payments', ['paid_at'])

    # ── reviews ───────────────────────────────────────────────────────────────
    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('tuition_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tuitions.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('tutor_id', sa.Uuid(as_uuid=True), sa.ForeignKey('tutors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(as_uuid=True), nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('review', sa.Text, nullable=False, server_default=''),
        sa.Column('student_name', sa.String(255), nullable=True),
        sa.Column('student_photo', sa.Text, nullable=True),
        sa.Column('tutor_name', sa.String(255), nullable=True),
        sa.Column('tutor_photo', sa.Text, nullable=True),
        sa.Column('subjects', sa.JSON, nullable=True),
        _ts('posted_at', nullable=False),
        sa.CheckConstraint('rating BETWEEN 1 AND 5', name='ck_reviews_rating_range'),
    )
    op.create_index('ix_reviews_tutor_id', 'reviews', ['tutor_id'])
    op.create_index('ix_reviews_student_id', 'reviews', ['student_id'])
    op.create_index('ix_reviews_posted_at', 'reviews', ['posted_at'])

    # ── notifications ─────────────────────────────────────────────────────────
    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('notification_type', sa.Enum(*NOTIFICATION_TYPES, name='notification_type_enum'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text, nullable=True),
        sa.Column('link', sa.String(512), nullable=True),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        _ts('created_at', nullable=False),
    )
    op.create_index('ix_notifications_user_email', 'notifications', ['user_email'])
    op.create_index('ix_notifications_notification_type', 'notifications', ['notification_type'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('reviews')
    op.drop_table('payments')
    op.drop_table('applications')
    op.drop_table('tuitions')
    op.drop_table('tutors')
    op.drop_table('users')
    for enum_name in (
        'notification_type_enum', 'application_status_enum', 'tuition_status_enum',
        'tutor_status_enum', 'user_role_enum',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
