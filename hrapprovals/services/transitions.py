"""
Guarded status transitions

A transition is a single conditional UPDATE: the row moves from the expected
status to the new one only if it still holds the expected status. The
rowcount is the success flag, so two concurrent approvals cannot both win.
"""
import logging
from typing import Any, Dict, Iterable, Optional, Union

from sqlalchemy import update
from sqlalchemy.orm import Session

from hrapprovals.core.errors import StateError

logger = logging.getLogger(__name__)


def _status_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "value", str(value))


def _is_many(expected: Any) -> bool:
    return isinstance(expected, (list, tuple, set, frozenset))


def compare_and_set_status(
    db: Session,
    model,
    entity_id: int,
    expected: Union[Any, Iterable[Any]],
    new_status: Any,
    values: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Move ``model`` row ``entity_id`` to ``new_status`` only if its status is ``expected``.

    ``expected`` may be a single status or an iterable of acceptable statuses.
    Does not commit. Returns True when exactly one row changed.
    """
    if _is_many(expected):
        status_clause = model.status.in_(list(expected))
    else:
        status_clause = model.status == expected

    stmt = (
        update(model)
        .where(model.id == entity_id, status_clause)
        .values(status=new_status, **(values or {}))
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    return result.rowcount == 1


def transition_or_raise(
    db: Session,
    entity,
    expected: Union[Any, Iterable[Any]],
    new_status: Any,
    action: str,
    values: Optional[Dict[str, Any]] = None,
    label: Optional[str] = None,
) -> None:
    """
    Apply a guarded transition to a loaded entity, raising StateError on a lost race.

    On success the entity is refreshed from the database inside the open
    transaction; the caller commits. On failure the transaction is rolled back
    and the error names the status the row actually holds.
    """
    model = type(entity)
    label = label or model.__name__
    entity_id = entity.id
    before = _status_value(entity.status)

    if not compare_and_set_status(db, model, entity_id, expected, new_status, values):
        db.rollback()
        current = db.query(model.status).filter(model.id == entity_id).scalar()
        logger.info(
            "%s status transition refused: id=%s expected=%s actual=%s action=%s",
            model.__tablename__, entity_id,
            [_status_value(e) for e in expected] if _is_many(expected) else _status_value(expected),
            _status_value(current), action,
        )
        raise StateError(label, _status_value(current))

    db.refresh(entity)
    logger.info(
        "%s status transition: id=%s before=%s after=%s action=%s",
        model.__tablename__, entity_id, before, _status_value(new_status), action,
    )
