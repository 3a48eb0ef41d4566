from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

from botocore.exceptions import ClientError
from sqlalchemy.orm import Session

from app.models import LocationStatus, Photo, Submission, Walker


class FakeS3Client:
    """In-memory stand-in for the handful of S3 calls the service makes."""

    def __init__(self) -> None:
        self.buckets: set[str] = set()
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.deleted: list[tuple[str, str]] = []
        self.presigned: list[dict[str, Any]] = []
        self.fail_deletes = False
        self.fail_puts = False

    def head_bucket(self, *, Bucket: str) -> dict[str, Any]:
        if Bucket not in self.buckets:
            raise ClientError({"Error": {"Code": "404"}}, "HeadBucket")
        return {}

    def create_bucket(self, *, Bucket: str, **_kwargs: Any) -> dict[str, Any]:
        if Bucket in self.buckets:
            raise ClientError({"Error": {"Code": "BucketAlreadyOwnedByYou"}}, "CreateBucket")
        self.buckets.add(Bucket)
        return {}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **kwargs: Any) -> dict[str, Any]:
        if self.fail_puts:
            raise ClientError({"Error": {"Code": "InternalError"}}, "PutObject")
        self.objects[(Bucket, Key)] = {"Body": Body, **kwargs}
        return {}

    def delete_object(self, *, Bucket: str, Key: str) -> dict[str, Any]:
        if self.fail_deletes:
            raise ClientError({"Error": {"Code": "InternalError"}}, "DeleteObject")
        self.deleted.append((Bucket, Key))
        self.objects.pop((Bucket, Key), None)
        return {}

    def generate_presigned_url(
        self,
        ClientMethod: str,
        *,
        Params: dict[str, Any],
        ExpiresIn: int,
    ) -> str:
        self.presigned.append({"method": ClientMethod, "params": Params, "expires_in": ExpiresIn})
        return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


def create_walker(
    db: Session,
    *,
    name: str = "Jordan Walker",
    school: str = "Lincoln Elementary",
) -> Walker:
    walker = Walker(name=name, email=f"{uuid4().hex[:8]}@example.com", school=school)
    db.add(walker)
    db.commit()
    db.refresh(walker)
    return walker


def create_submission(db: Session, walker: Walker) -> Submission:
    submission = Submission(walker_id=walker.id)
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def create_photo(
    db: Session,
    submission: Submission,
    *,
    location: tuple[float, float] | None = None,
    floor_level: str | None = None,
    building: str | None = None,
    status: LocationStatus | None = None,
    minutes_ago: int = 0,
) -> Photo:
    if status is None:
        status = LocationStatus.LOCATED if location is not None else LocationStatus.PENDING
    photo = Photo(
        submission_id=submission.id,
        survey_category="classroom",
        question_key="natural_light",
        room_number="101",
        file_name="photo.jpg",
        file_path=f"survey-photos/{submission.id}/{uuid4().hex}.jpg",
        file_size=1024,
        mime_type="image/jpeg",
        uploaded_at=datetime.now(UTC) - timedelta(minutes=minutes_ago),
        location_x=location[0] if location else None,
        location_y=location[1] if location else None,
        floor_level=floor_level,
        building=building,
        location_status=status,
    )
    db.add(photo)
    db.commit()
    db.refresh(photo)
    return photo
