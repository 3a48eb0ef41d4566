"""Walker and submission records owned by the survey collaborator."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base


class Walker(Base):
    """A field surveyor; ``school`` doubles as the fallback building name."""

    __tablename__ = "walkers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    school: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    submissions: Mapped[list["Submission"]] = relationship(
        "Submission", back_populates="walker", cascade="all, delete-orphan"
    )


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid4())
    )
    walker_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("walkers.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    walker: Mapped[Walker] = relationship("Walker", back_populates="submissions")
    photos: Mapped[list["Photo"]] = relationship(
        "Photo",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="Photo.uploaded_at.desc()",
    )


__all__ = ["Submission", "Walker"]
