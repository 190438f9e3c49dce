"""Initial schema – users, courses, students and attendance

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Document-shaped fields (addresses, enrollments, attendance rows, profile
settings) are JSON columns.  Uniqueness that the application relies on is
enforced here: email and CNIC per table, student roll ID, and one
attendance record per course and date.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("cnic", sa.String(32), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("expertise", sa.JSON(), nullable=False),
        sa.Column("languages", sa.JSON(), nullable=False),
        sa.Column("location", sa.JSON(), nullable=False),
        sa.Column("qualification", sa.String(255), nullable=True),
        sa.Column("profile_picture", sa.String(1024), nullable=False, server_default=""),
        sa.Column(
            "role",
            sa.Enum("user", "admin", "maintenance_office", "teacher", name="user_role"),
            nullable=False,
            server_default="user",
        ),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        # base64( nonce || AES-GCM ciphertext ) of the TOTP seed
        sa.Column("two_factor_secret", sa.Text(), nullable=True),
        sa.Column("two_factor_enabled", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("notifications", sa.JSON(), nullable=False),
        sa.Column("preferences", sa.JSON(), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_cnic", "users", ["cnic"], unique=True)

    # -- courses --------------------------------------------------------
    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("days", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "mode_of_delivery",
            sa.Enum("Online", "Offline", "Hybrid", "Onsite", name="delivery_mode"),
            nullable=False,
        ),
        sa.Column("outline", sa.Text(), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=False),
        sa.Column("poster", sa.String(1024), nullable=False, server_default=""),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("starting_date", sa.Date(), nullable=False),
        sa.Column("students", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_courses_is_active", "courses", ["is_active"])

    # -- students -------------------------------------------------------
    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("cnic", sa.String(13), nullable=False),
        sa.Column("phone_number", sa.String(32), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(16), nullable=False),
        sa.Column("address", sa.JSON(), nullable=False),
        sa.Column("guardian_name", sa.String(200), nullable=False),
        sa.Column("guardian_phone", sa.String(32), nullable=False),
        sa.Column("guardian_relation", sa.String(64), nullable=False),
        sa.Column("enrolled_courses", sa.JSON(), nullable=False),
        sa.Column("enrollment_date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("Pending", "Enrolled", "Eliminated", "Suspended", name="student_status"),
            nullable=False,
            server_default="Pending",
        ),
        sa.Column("profile_picture", sa.String(1024), nullable=False, server_default=""),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("roll_id", sa.String(6), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_students_email", "students", ["email"], unique=True)
    op.create_index("ix_students_cnic", "students", ["cnic"], unique=True)
    op.create_index("ix_students_roll_id", "students", ["roll_id"], unique=True)

    # -- attendance -----------------------------------------------------
    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("students", sa.JSON(), nullable=False),
        sa.Column("marked_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("course_id", "date", name="uq_attendance_course_date"),
    )
    op.create_index("ix_attendance_course_id", "attendance", ["course_id"])


def downgrade() -> None:
    op.drop_index("ix_attendance_course_id", table_name="attendance")
    op.drop_table("attendance")
    op.drop_index("ix_students_roll_id", table_name="students")
    op.drop_index("ix_students_cnic", table_name="students")
    op.drop_index("ix_students_email", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_courses_is_active", table_name="courses")
    op.drop_table("courses")
    op.drop_index("ix_users_cnic", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
