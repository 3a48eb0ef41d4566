from __future__ import annotations

import argparse
import mimetypes
import sys
from dataclasses import dataclass
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent.parent
BACKEND_DIR = ROOT_DIR / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.config import get_settings  # noqa: E402
from app.core.db import Database  # noqa: E402
from app.services.floorplans import (  # noqa: E402
    FloorPlanError,
    get_active_floor_plan,
    upload_floor_plan,
)
from app.services.storage import (  # noqa: E402
    ObjectStorage,
    StorageUnavailableError,
    build_s3_client,
)

DEFAULT_SOURCE_DIR = ROOT_DIR / "public"


@dataclass(frozen=True)
class FloorPlanSeed:
    file_name: str
    building: str
    floor: str
    description: str


DEFAULT_FLOOR_PLANS = (
    FloorPlanSeed("floorplan.jpg", "Main Building", "first", "First floor plan"),
    FloorPlanSeed("second-floor-plan.jpg", "Main Building", "second", "Second floor plan"),
)


def seed_floor_plans(
    database: Database,
    storage: ObjectStorage,
    source_dir: Path,
    seeds: tuple[FloorPlanSeed, ...] = DEFAULT_FLOOR_PLANS,
    *,
    replace: bool = False,
) -> int:
    """Upload the bundled floor-plan images; returns how many were stored."""

    settings = storage.settings
    for bucket in (settings.floor_plans_bucket, settings.photos_bucket):
        storage.ensure_bucket_exists(bucket)
        print(f"Bucket '{bucket}' ready.")

    stored = 0
    with database.session() as db:
        for seed in seeds:
            path = source_dir / seed.file_name
            if not path.exists():
                print(f"Floor plan file '{path}' not found; skipping.")
                continue

            if not replace and get_active_floor_plan(db, seed.building, seed.floor):
                print(f"{seed.building} / {seed.floor} already has an active plan; skipping.")
                continue

            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            try:
                plan = upload_floor_plan(
                    db,
                    storage,
                    building=seed.building,
                    floor=seed.floor,
                    filename=path.name,
                    content=path.read_bytes(),
                    mime_type=mime_type,
                    description=seed.description,
                    uploaded_by="seed_floorplans",
                )
            except FloorPlanError as exc:
                print(f"Unable to store {path.name}: {exc}")
                continue
            print(f"Stored {path.name} as {plan.file_path} (version {plan.version}).")
            stored += 1
    return stored


def main() -> None:
    parser = argparse.ArgumentParser(description="Upload bundled floor plans to object storage")
    parser.add_argument(
        "--source-dir",
        type=Path,
        default=DEFAULT_SOURCE_DIR,
        help=f"Directory holding the floor-plan images (default: {DEFAULT_SOURCE_DIR})",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Upload a new version even when a floor already has an active plan",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables from the ORM metadata (local sqlite setups)",
    )
    args = parser.parse_args()

    settings = get_settings()
    database = Database.from_settings(settings)
    if args.create_tables:
        database.create_all()

    storage = ObjectStorage(build_s3_client(settings), settings)
    try:
        stored = seed_floor_plans(database, storage, args.source_dir, replace=args.replace)
    except StorageUnavailableError as exc:
        print(f"Storage unavailable: {exc}")
        raise SystemExit(1) from exc
    finally:
        database.dispose()

    print(f"Seeding completed: {stored} floor plan(s) stored.")


if __name__ == "__main__":
    main()
