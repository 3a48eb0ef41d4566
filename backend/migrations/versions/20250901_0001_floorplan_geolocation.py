"""create walkers, submissions, survey photos and floor plans"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision: str = "20250901_0001_floorplan_geolocation"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def _uuid_column(name: str = "id", **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(length=36), **kwargs)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    inspector = sa.inspect(op.get_bind())

    if not inspector.has_table("walkers"):
        op.create_table(
            "walkers",
            _uuid_column(primary_key=True),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("school", sa.String(length=255), nullable=False),
            _timestamp("created_at"),
        )

    if not inspector.has_table("submissions"):
        op.create_table(
            "submissions",
            _uuid_column(primary_key=True),
            _uuid_column(
                "walker_id",
                sa.ForeignKey("walkers.id", ondelete="CASCADE"),
                nullable=False,
            ),
            _timestamp("created_at"),
        )

    if not inspector.has_table("survey_photos"):
        op.create_table(
            "survey_photos",
            _uuid_column(primary_key=True),
            _uuid_column(
                "submission_id",
                sa.ForeignKey("submissions.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("survey_category", sa.String(length=100), nullable=False),
            sa.Column("question_key", sa.String(length=255), nullable=True),
            sa.Column("room_number", sa.String(length=50), nullable=True),
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column("file_path", sa.String(length=512), nullable=False),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("mime_type", sa.String(length=100), nullable=True),
            sa.Column("caption", sa.Text(), nullable=True),
            _timestamp("uploaded_at"),
            sa.Column("location_x", sa.Float(), nullable=True),
            sa.Column("location_y", sa.Float(), nullable=True),
            sa.Column("floor_level", sa.String(length=32), nullable=True),
            sa.CheckConstraint(
                "(location_x IS NULL AND location_y IS NULL) OR "
                "(location_x IS NOT NULL AND location_y IS NOT NULL)",
                name="ck_survey_photos_location_pair",
            ),
            sa.CheckConstraint(
                "location_x IS NULL OR (location_x >= 0 AND location_x <= 100)",
                name="ck_survey_photos_location_x_range",
            ),
            sa.CheckConstraint(
                "location_y IS NULL OR (location_y >= 0 AND location_y <= 100)",
                name="ck_survey_photos_location_y_range",
            ),
        )
        op.create_index("ix_survey_photos_submission_id", "survey_photos", ["submission_id"])

    if not inspector.has_table("floor_plans"):
        op.create_table(
            "floor_plans",
            _uuid_column(primary_key=True),
            sa.Column("building_name", sa.String(length=255), nullable=False),
            sa.Column("floor_level", sa.String(length=32), nullable=False),
            sa.Column("bucket", sa.String(length=63), nullable=False),
            sa.Column("file_path", sa.String(length=512), nullable=False),
            sa.Column("file_name", sa.String(length=255), nullable=False),
            sa.Column("file_size", sa.Integer(), nullable=True),
            sa.Column("mime_type", sa.String(length=100), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("uploaded_by", sa.String(length=255), nullable=True),
            _timestamp("uploaded_at"),
            _timestamp("created_at"),
            _timestamp("updated_at"),
            sa.UniqueConstraint("file_path", name="uq_floor_plans_file_path"),
            sa.CheckConstraint(
                "length(building_name) > 0", name="ck_floor_plans_building_name_not_blank"
            ),
            sa.CheckConstraint("version >= 1", name="ck_floor_plans_version_positive"),
        )
        op.create_index(
            "ix_floor_plans_building_active",
            "floor_plans",
            ["building_name", "is_active"],
        )


def downgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    if inspector.has_table("floor_plans"):
        op.drop_index("ix_floor_plans_building_active", table_name="floor_plans")
        op.drop_table("floor_plans")
    if inspector.has_table("survey_photos"):
        op.drop_index("ix_survey_photos_submission_id", table_name="survey_photos")
        op.drop_table("survey_photos")
    if inspector.has_table("submissions"):
        op.drop_table("submissions")
    if inspector.has_table("walkers"):
        op.drop_table("walkers")
