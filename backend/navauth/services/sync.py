from __future__ import annotations
"""Transaction boundary and the generic association-set sync used by both registries.

``sync_association`` makes the rows of a junction table that belong to one owner equal
to a desired member set: it deletes the rows for members outside the set, then inserts
the members that are missing. Run it inside ``transaction()`` so both phases commit
together; if the insert phase fails after rows were deleted the error surfaces as
PartialReconciliationError and the outer transaction rolls the delete back.
"""
import logging
from contextlib import contextmanager
from typing import Iterable, Set, Tuple

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError

from navauth.errors import NavAuthError, StorageError, PartialReconciliationError, ValidationError

logger = logging.getLogger('navauth.storage')


@contextmanager
def transaction(session, context: str):
    """Commit on success; roll back and translate storage failures on error."""
    try:
        yield session
        session.commit()
    except NavAuthError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error('storage failure during %s: %s', context, exc)
        raise StorageError(f'storage failure during {context}', context=context) from exc


def coerce_ids(values: Iterable, field_name: str) -> Set[int]:
    """Validate a collection of integer ids (bools and numeric strings rejected)."""
    if values is None:
        return set()
    if isinstance(values, (str, bytes, dict)):
        raise ValidationError(f'{field_name} must be a list of integer ids')
    out = set()
    for v in values:
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValidationError(f'{field_name} must be a list of integer ids')
        out.add(v)
    return out


def sync_association(
    session,
    model,
    owner_attr: str,
    owner_id: int,
    member_attr: str,
    desired: Iterable[int],
    *,
    prune: bool = True,
    insert: bool = True,
) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    """Reconcile ``model`` rows where ``owner_attr == owner_id`` against ``desired``.

    prune: delete rows whose member is not in ``desired``
    insert: add rows for members of ``desired`` that are not stored yet
    Returns (added, removed) member ids, each sorted. Does not commit.
    """
    owner_col = getattr(model, owner_attr)
    member_col = getattr(model, member_attr)
    wanted = set(desired)
    current = set(session.execute(select(member_col).where(owner_col == owner_id)).scalars())
    to_remove = current - wanted if prune else set()
    to_add = wanted - current if insert else set()

    phase = 'delete'
    try:
        if to_remove:
            session.execute(delete(model).where(owner_col == owner_id, member_col.in_(sorted(to_remove))))
        phase = 'insert'
        if to_add:
            session.add_all([model(**{owner_attr: owner_id, member_attr: m}) for m in sorted(to_add)])
            session.flush()
    except SQLAlchemyError as exc:
        if phase == 'insert' and to_remove:
            logger.error('%s sync for %s=%s failed after delete phase', model.__tablename__, owner_attr, owner_id)
            raise PartialReconciliationError(model.__tablename__, owner_id, phase, exc) from exc
        raise
    logger.debug('%s sync %s=%s added=%s removed=%s', model.__tablename__, owner_attr, owner_id, sorted(to_add), sorted(to_remove))
    return tuple(sorted(to_add)), tuple(sorted(to_remove))


__all__ = ['transaction', 'coerce_ids', 'sync_association']
