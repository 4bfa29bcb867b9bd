"""
Partial UPDATE builder.

Turns a dict of optional named fields into a parameterised
``UPDATE <table> SET ... WHERE id = :id`` statement. Column names only ever
come from the caller's allow-list and every value is a bound parameter.
"""

from typing import Any, Dict, Iterable

from sqlalchemy import Table, update
from sqlalchemy.sql.dml import Update

from gearguard.errors import AppError


def collect_changes(changes: Dict[str, Any], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep only the allowed fields, preserving None as an explicit NULL."""
    allowed = set(allowed)
    return {field: value for field, value in changes.items() if field in allowed}


def build_update(
    table: Table,
    row_id: int,
    changes: Dict[str, Any],
    allowed: Iterable[str],
) -> Update:
    """
    Build the UPDATE statement for one row.

    Args:
        table: Target table (``Model.__table__``)
        row_id: Primary key of the row
        changes: Supplied fields, typically ``schema.model_dump(exclude_unset=True)``
        allowed: Field names the caller may change

    Raises:
        AppError: 400 when no allowed field was supplied
    """
    values = collect_changes(changes, allowed)
    if not values:
        raise AppError("No fields to update", 400)

    unknown = [field for field in values if field not in table.c]
    if unknown:
        raise ValueError(f"Unknown columns for {table.name}: {', '.join(unknown)}")

    return update(table).where(table.c.id == row_id).values(**values)
