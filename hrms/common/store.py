"""Thin async store contract over SQLAlchemy sessions.

Services talk to the database through these helpers so that uniqueness
violations and connectivity faults come back as typed application errors:

  - ``find_one`` / ``find``  → reads
  - ``create``               → INSERT; unique violation → DuplicateRecordError
  - ``update_atomic``        → single conditional UPDATE, True iff the row matched
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional, Sequence, TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.base import Executable

from hrms.common.exceptions import DuplicateRecordError, StoreUnavailableError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


async def _execute(db: AsyncSession, statement: Executable) -> Any:
    try:
        return await db.execute(statement)
    except (OperationalError, InterfaceError) as exc:
        logger.error("Store unavailable: %s", exc)
        raise StoreUnavailableError() from exc


async def find_one(
    db: AsyncSession,
    model: type[ModelT],
    *criteria: Any,
) -> Optional[ModelT]:
    """Return the first row matching *criteria*, or None."""
    result = await _execute(db, select(model).where(*criteria).limit(1))
    return result.scalars().first()


async def find(
    db: AsyncSession,
    model: type[ModelT],
    *criteria: Any,
    order_by: Sequence[Any] = (),
) -> list[ModelT]:
    """Return every row matching *criteria* in the given order."""
    query = select(model).where(*criteria)
    if order_by:
        query = query.order_by(*order_by)
    result = await _execute(db, query)
    return list(result.scalars().all())


async def create(db: AsyncSession, instance: ModelT) -> ModelT:
    """Add and flush *instance*.

    A unique-constraint violation rolls the session back and raises
    ``DuplicateRecordError``.
    """
    db.add(instance)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        entity = type(instance).__name__
        logger.info("Duplicate %s rejected by the store: %s", entity, exc.orig)
        raise DuplicateRecordError(entity) from exc
    except (OperationalError, InterfaceError) as exc:
        logger.error("Store unavailable: %s", exc)
        raise StoreUnavailableError() from exc
    return instance


async def update_atomic(
    db: AsyncSession,
    model: Any,
    entity_id: uuid.UUID,
    values: dict[str, Any],
    *preconditions: Any,
) -> bool:
    """Apply *values* to one row iff *preconditions* hold at write time.

    Runs as a single ``UPDATE … WHERE id = :id AND <preconditions>`` so a
    concurrent writer cannot slip between the check and the write. Returns
    False (nothing written) when the row is missing or a precondition fails.
    Loaded instances are not synchronised; callers refresh what they need.
    """
    statement = (
        update(model)
        .where(model.id == entity_id, *preconditions)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await _execute(db, statement)
    return result.rowcount == 1
