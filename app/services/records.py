"""
Helpers shared by the entity CRUD routes: lookups, referential checks and
partial updates.
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from pydantic import BaseModel
from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.staff import Staff, StaffRole

ModelT = TypeVar("ModelT")


async def get_or_404(db: AsyncSession, model: type[ModelT], record_id: int, label: str) -> ModelT:
    obj = await db.get(model, record_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


async def reload(db: AsyncSession, model: Any, record_id: int) -> Any:
    """Re-select a row so its eager relationships reflect what was just written."""
    db.expire_all()
    result = await db.execute(select(model).where(model.id == record_id))
    return result.unique().scalar_one()


def changes(body: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """Fields the client actually sent. An empty update is rejected."""
    data = body.model_dump(exclude_unset=True, exclude=exclude)
    if not data and not (exclude and body.model_fields_set & exclude):
        raise ValidationError("No valid fields to update")
    return data


def apply_changes(obj: Any, data: dict[str, Any]) -> None:
    """Copy *data* onto *obj*, refusing nulls for NOT NULL columns."""
    columns = inspect(obj).mapper.columns
    for field, value in data.items():
        if value is None and field in columns and not columns[field].nullable:
            raise ValidationError(f"{field} cannot be null")
    for field, value in data.items():
        setattr(obj, field, value)


async def ensure_exists(db: AsyncSession, model: Any, record_id: int, message: str) -> Any:
    """Referential check on a request body: a missing target is a 400, not a 404."""
    obj = await db.get(model, record_id)
    if obj is None:
        raise ValidationError(message)
    return obj


async def ensure_staff_role(
    db: AsyncSession, staff_id: int, roles: Iterable[StaffRole], message: str
) -> Staff:
    staff = await db.get(Staff, staff_id)
    if staff is None or staff.role not in tuple(roles):
        raise ValidationError(message)
    return staff


async def count_where(db: AsyncSession, column: Any, value: Any) -> int:
    result = await db.execute(select(func.count()).where(column == value))
    return result.scalar_one()


def escape_like(term: str) -> str:
    # Escape LIKE metacharacters so user input cannot act as a wildcard
    return term.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
