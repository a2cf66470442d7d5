from __future__ import annotations
"""Audit logging decorator for admin route handlers.

Usage examples:

@audit_log('NAV.CREATE', entity='Navigation', entity_id_key='id', meta_keys=['title'])
def create_navigation_handler():
    ... return {'id': nav.id, 'title': nav.title}, 201

@audit_log('GROUP.NAV.REPLACE', entity='Group', entity_id_arg='group_id',
           meta_builder=lambda data, rv, args, kwargs: {'added': data.get('added')})
def replace_group_navigation(group_id): ...

Parameters:
  action: required audit action code (e.g. NAV.DELETE)
  entity: optional entity label (Navigation, Group, User)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the path parameter to use for entity_id (fallback if entity_id_key absent).
  meta_keys: list of keys to project from returned JSON into meta dict (shallow copy).
  meta_builder: callable returning a meta dict; receives (data, original_return_value, args, kwargs).
    If provided it overrides meta_keys.

The first element of a (dict, status[, headers]) return value is inspected; the original
return value is passed through untouched. Audit failures are logged and never change the response.
"""

import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from navauth.services.audit import add_audit
from navauth import get_db

logger = logging.getLogger('navauth.audit')


def _extract_payload(rv: Any):
    """Return (data, original_rv) where data is the JSON-able dict for inspection."""
    if isinstance(rv, tuple) and rv:
        return rv[0], rv
    return rv, rv


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            rv = fn(*args, **kwargs)
            data, _ = _extract_payload(rv)
            if not isinstance(data, dict):
                data = {}
            entity_id = None
            if entity_id_key and entity_id_key in data:
                entity_id = data.get(entity_id_key)
            elif entity_id_arg and entity_id_arg in kwargs:
                entity_id = kwargs.get(entity_id_arg)
            meta = None
            if meta_builder:
                try:
                    meta = meta_builder(data, rv, args, kwargs)
                except (KeyError, TypeError, ValueError, AttributeError):
                    logger.warning('audit meta builder failed for %s', action, exc_info=True)
            elif meta_keys:
                meta = {k: data.get(k) for k in meta_keys if k in data}
            session = get_db()
            try:
                add_audit(action, entity, entity_id, meta)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.exception('failed to persist audit entry %s (%s %s)', action, entity, entity_id)
            return rv
        return wrapper
    return outer
