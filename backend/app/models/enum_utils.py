"""SQLAlchemy Enum helpers.

Columns built with :func:`sqla_enum` persist the lowercase ``value`` of each
member (``"located"``) rather than its Python name (``"LOCATED"``) so the
stored labels match the Alembic migration and the JSON API.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from sqlalchemy import Enum as SQLEnum

E = TypeVar("E", bound=Enum)


def enum_values(enum_cls: type[E]) -> list[str]:
    return [member.value for member in enum_cls]


def sqla_enum(enum_cls: type[E], **kwargs) -> SQLEnum:
    """Build an ``SQLEnum`` storing member values, validated on assignment."""

    kwargs.setdefault("native_enum", False)
    kwargs.setdefault("length", 32)
    return SQLEnum(
        enum_cls,
        values_callable=enum_values,
        validate_strings=True,
        **kwargs,
    )


__all__ = ["sqla_enum", "enum_values"]
