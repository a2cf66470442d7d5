from __future__ import annotations
"""Navigation store: CRUD over the navigation table.

Writes that carry a permitted-groups list also reconcile the item's grants in the same
transaction. Unknown ids on update/delete/toggle raise NotFoundError; a zero row count is
never reported as success.
"""
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update, delete

from navauth import get_db
from navauth.constants.permissions import STATUS_ENABLED, STATUS_DISABLED, ROOT_ONLY_TYPES
from navauth.errors import ValidationError, NotFoundError
from navauth.events import AccessChanged
from navauth.models.authz import Navigation, GroupNav
from navauth.services.permissions import stage_upsert, stage_remove_not_in, group_ids_for_nav
from navauth.services.sync import transaction

logger = logging.getLogger('navauth.navigation')

GROUP_KEYS = ('permitted_groups', 'permittedGroups', 'groups')


def _optional_id(data: Dict[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        if key in data and data[key] is not None:
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f'{keys[0]} must be an integer or null')
            return value
    return None


def _position(value) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return 0


def _status(value) -> int:
    if isinstance(value, bool):
        return STATUS_ENABLED if value else STATUS_DISABLED
    if isinstance(value, int) and value in (STATUS_ENABLED, STATUS_DISABLED):
        return value
    raise ValidationError('status must be 0/1 or a boolean')


def normalize_navigation_payload(data: Any) -> Dict[str, Any]:
    """Validate a create/update body and return column values.

    title, type and status are required; position falls back to 0 when missing or not
    numeric; path, parent_nav_id and section_id default to None. camelCase aliases
    (parentNavId, sectionId) are accepted.
    """
    if not isinstance(data, dict):
        raise ValidationError('navigation payload must be an object')
    title = data.get('title')
    nav_type = data.get('type')
    if not isinstance(title, str) or not title.strip():
        raise ValidationError('title required')
    if not isinstance(nav_type, str) or not nav_type.strip():
        raise ValidationError('type required')
    if data.get('status') is None:
        raise ValidationError('status required')
    path = data.get('path')
    if path is not None and not isinstance(path, str):
        raise ValidationError('path must be a string or null')
    return {
        'title': title.strip(),
        'type': nav_type.strip(),
        'position': _position(data.get('position')),
        'status': _status(data.get('status')),
        'path': path,
        'parent_nav_id': _optional_id(data, 'parent_nav_id', 'parentNavId'),
        'section_id': _optional_id(data, 'section_id', 'sectionId'),
    }


def permitted_groups(data: Dict[str, Any]) -> Optional[List[int]]:
    """Group ids from permitted_groups/permittedGroups/groups; None when the body has none.

    Numeric strings are converted and anything else is dropped, as the admin UI sends mixed lists.
    """
    for key in GROUP_KEYS:
        raw = data.get(key) if isinstance(data, dict) else None
        if isinstance(raw, list):
            out: List[int] = []
            for g in raw:
                if isinstance(g, bool):
                    continue
                if isinstance(g, int):
                    out.append(g)
                elif isinstance(g, str) and g.strip().isdigit():
                    out.append(int(g))
            return list(dict.fromkeys(out))
    return None


def list_navigation(session=None, only_enabled: bool = False) -> List[Navigation]:
    if session is None:
        session = get_db()
    q = select(Navigation)
    if only_enabled:
        q = q.where(Navigation.status == STATUS_ENABLED)
    return list(session.execute(q.order_by(Navigation.id.asc())).scalars())


def get_navigation(nav_id: int, session=None) -> Navigation:
    if session is None:
        session = get_db()
    nav = session.get(Navigation, nav_id)
    if nav is None:
        raise NotFoundError('Navigation', nav_id)
    return nav


def create_navigation(data: Dict[str, Any], session=None) -> Tuple[Navigation, Optional[AccessChanged]]:
    values = normalize_navigation_payload(data)
    groups = permitted_groups(data) or []
    if session is None:
        session = get_db()
    with transaction(session, 'navigation create'):
        nav = Navigation(**values)
        session.add(nav)
        session.flush()  # to get id
        granted = stage_upsert(session, [(nav.id, g) for g in groups])
    logger.info('navigation %s created (%s, parent=%s)', nav.id, nav.title, nav.parent_nav_id)
    event = AccessChanged.of('NAV.CREATE', group_ids=[g for _, g in granted], nav_ids=[nav.id]) if granted else None
    return nav, event


def update_navigation(nav_id: int, data: Dict[str, Any], session=None) -> Tuple[Navigation, Optional[AccessChanged]]:
    """Overwrite every column of ``nav_id``; reconcile grants when the body lists groups."""
    values = normalize_navigation_payload(data)
    groups = permitted_groups(data)
    if values['parent_nav_id'] == nav_id:
        logger.warning('navigation %s set as its own parent; it will not appear in built trees', nav_id)
    if session is None:
        session = get_db()
    added: List[Tuple[int, int]] = []
    removed: Tuple[int, ...] = ()
    with transaction(session, f'navigation update {nav_id}'):
        result = session.execute(update(Navigation).where(Navigation.id == nav_id).values(**values))
        if result.rowcount == 0:
            raise NotFoundError('Navigation', nav_id)
        if groups is not None:
            removed = stage_remove_not_in(session, nav_id, groups)
            added = stage_upsert(session, [(nav_id, g) for g in groups])
    nav = get_navigation(nav_id, session)
    touched = list(removed) + [g for _, g in added]
    return nav, AccessChanged.of('NAV.UPDATE', group_ids=touched or group_ids_for_nav(nav_id, session), nav_ids=[nav_id])


def toggle_status(nav_id: int, enabled: bool, session=None) -> AccessChanged:
    """Flip only the status column; descendants keep their own status."""
    status = STATUS_ENABLED if enabled else STATUS_DISABLED
    if session is None:
        session = get_db()
    with transaction(session, f'navigation toggle {nav_id}'):
        result = session.execute(update(Navigation).where(Navigation.id == nav_id).values(status=status))
        if result.rowcount == 0:
            raise NotFoundError('Navigation', nav_id)
    logger.info('navigation %s %s', nav_id, 'enabled' if enabled else 'disabled')
    return AccessChanged.of('NAV.STATUS', group_ids=group_ids_for_nav(nav_id, session), nav_ids=[nav_id])


def delete_navigation(nav_id: int, session=None) -> Tuple[int, AccessChanged]:
    """Remove the item's grants, then the item. Returns navigation rows removed (always 1)."""
    if session is None:
        session = get_db()
    with transaction(session, f'navigation delete {nav_id}'):
        group_ids = list(session.execute(select(GroupNav.group_id).where(GroupNav.nav_id == nav_id)).scalars())
        session.execute(delete(GroupNav).where(GroupNav.nav_id == nav_id))
        result = session.execute(delete(Navigation).where(Navigation.id == nav_id))
        if result.rowcount == 0:
            raise NotFoundError('Navigation', nav_id)
    logger.info('navigation %s deleted with %d grant(s)', nav_id, len(group_ids))
    return result.rowcount, AccessChanged.of('NAV.DELETE', group_ids=group_ids, nav_ids=[nav_id])


def reorder_navigation(nodes: Iterable[Dict[str, Any]], session=None) -> Tuple[List[int], List[Any], Optional[AccessChanged]]:
    """Batch update of position/parent/section. Items typed 'section' are pinned to the root.

    Nodes with a non-integer id or position, or an id that does not exist, are skipped.
    Returns (updated ids, skipped ids, event).
    """
    if not isinstance(nodes, list) or not nodes:
        raise ValidationError('nodes must be a non-empty array')
    if session is None:
        session = get_db()
    updated: List[int] = []
    skipped: List[Any] = []
    with transaction(session, 'navigation reorder'):
        for node in nodes:
            if not isinstance(node, dict):
                skipped.append(None)
                continue
            nav_id = node.get('navId', node.get('id'))
            position = node.get('position')
            if isinstance(nav_id, bool) or not isinstance(nav_id, int) or isinstance(position, bool) or not isinstance(position, int):
                skipped.append(nav_id)
                continue
            nav = session.get(Navigation, nav_id)
            if nav is None:
                skipped.append(nav_id)
                continue
            nav.position = position
            if nav.type in ROOT_ONLY_TYPES:
                nav.parent_nav_id = None
                nav.section_id = None
            else:
                nav.parent_nav_id = _optional_id(node, 'parent_nav_id', 'parentNavId')
                nav.section_id = _optional_id(node, 'section_id', 'sectionId')
            updated.append(nav_id)
        session.flush()
    if skipped:
        logger.info('reorder skipped %d node(s): %s', len(skipped), skipped)
    event = AccessChanged.of('NAV.REORDER', nav_ids=updated) if updated else None
    return updated, skipped, event


__all__ = [
    'normalize_navigation_payload', 'permitted_groups', 'list_navigation', 'get_navigation',
    'create_navigation', 'update_navigation', 'toggle_status', 'delete_navigation', 'reorder_navigation',
]
