"""photo building and location status, one active floor plan per floor"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision: str = "20250915_0002_photo_building_and_active_plan"
down_revision: str | None = "20250901_0001_floorplan_geolocation"
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None

ACTIVE_PLAN_INDEX = "uq_floor_plans_active_building_floor"


def _column_names(table: str) -> set[str]:
    inspector = sa.inspect(op.get_bind())
    return {column["name"] for column in inspector.get_columns(table)}


def upgrade() -> None:
    columns = _column_names("survey_photos")
    with op.batch_alter_table("survey_photos") as batch:
        if "building" not in columns:
            batch.add_column(sa.Column("building", sa.String(length=255), nullable=True))
        if "location_status" not in columns:
            batch.add_column(
                sa.Column(
                    "location_status",
                    sa.String(length=32),
                    nullable=False,
                    server_default="pending",
                )
            )

    # Rows tagged before statuses existed: the (0, 0) sentinel meant "skipped".
    op.execute(
        sa.text(
            "UPDATE survey_photos SET location_status = 'skipped' "
            "WHERE location_x = 0 AND location_y = 0"
        )
    )
    op.execute(
        sa.text(
            "UPDATE survey_photos SET location_status = 'located' "
            "WHERE location_x IS NOT NULL AND location_status = 'pending'"
        )
    )
    op.execute(
        sa.text(
            "UPDATE survey_photos SET floor_level = NULL WHERE floor_level = 'unknown'"
        )
    )
    op.execute(
        sa.text(
            "UPDATE survey_photos SET building = NULL WHERE building = 'Unknown Building'"
        )
    )

    op.create_index(
        "ix_survey_photos_building_floor",
        "survey_photos",
        ["building", "floor_level"],
    )

    # Keep only the newest active plan per floor before enforcing uniqueness.
    op.execute(
        sa.text(
            """
            UPDATE floor_plans SET is_active = false
            WHERE is_active AND EXISTS (
                SELECT 1 FROM floor_plans AS newer
                WHERE newer.building_name = floor_plans.building_name
                  AND newer.floor_level = floor_plans.floor_level
                  AND newer.is_active
                  AND (newer.version, newer.uploaded_at, newer.id)
                      > (floor_plans.version, floor_plans.uploaded_at, floor_plans.id)
            )
            """
        )
    )
    op.create_index(
        ACTIVE_PLAN_INDEX,
        "floor_plans",
        ["building_name", "floor_level"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )


def downgrade() -> None:
    op.drop_index(ACTIVE_PLAN_INDEX, table_name="floor_plans")
    op.drop_index("ix_survey_photos_building_floor", table_name="survey_photos")
    columns = _column_names("survey_photos")
    with op.batch_alter_table("survey_photos") as batch:
        if "location_status" in columns:
            batch.drop_column("location_status")
        if "building" in columns:
            batch.drop_column("building")
