from __future__ import annotations
"""Permission registry: which groups may see which navigation items (table group_nav).

Two reconciliation entry points with different shapes:
  remove_grants_not_in(nav_id, keep)   nav-centric; only prunes, leaves kept rows alone
  replace_group_grants(group_id, navs) group-centric; the group ends up with exactly ``navs``
"""
import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import select, delete

from navauth import get_db
from navauth.errors import ValidationError
from navauth.events import AccessChanged, SyncResult
from navauth.models.authz import GroupNav
from navauth.services.sync import transaction, coerce_ids, sync_association

logger = logging.getLogger('navauth.permissions')

Pair = Tuple[int, int]  # (nav_id, group_id)

# keeps IN lists under the bound-parameter limits of SQLite and friends
IN_CHUNK = 500


def normalize_pairs(pairs: Iterable) -> List[Pair]:
    """Accept [{'nav_id': .., 'group_id': ..}] or [(nav_id, group_id)]; dedupe, keep order."""
    if pairs is None or isinstance(pairs, (str, bytes, dict)):
        raise ValidationError('permissions must be a list of {nav_id, group_id}')
    out: List[Pair] = []
    seen: Set[Pair] = set()
    for p in pairs:
        if isinstance(p, dict):
            nav_id, group_id = p.get('nav_id'), p.get('group_id')
        elif isinstance(p, (list, tuple)) and len(p) == 2:
            nav_id, group_id = p
        else:
            raise ValidationError('permissions must be a list of {nav_id, group_id}')
        for v in (nav_id, group_id):
            if isinstance(v, bool) or not isinstance(v, int):
                raise ValidationError('nav_id and group_id must be integers')
        pair = (nav_id, group_id)
        if pair not in seen:
            seen.add(pair)
            out.append(pair)
    return out


def _chunks(values: List[int]):
    for i in range(0, len(values), IN_CHUNK):
        yield values[i:i + IN_CHUNK]


def _stored_pairs(session, pairs: List[Pair]) -> Dict[Pair, int]:
    """Map each given pair that is stored to its group_nav row id.

    Selects the nav_id x group_id rectangle with flat IN lists and filters in Python, so the
    SQL stays the same size however many pairs are asked for.
    """
    wanted = set(pairs)
    nav_ids = sorted({n for n, _ in wanted})
    group_ids = sorted({g for _, g in wanted})
    found: Dict[Pair, int] = {}
    for nav_chunk in _chunks(nav_ids):
        for group_chunk in _chunks(group_ids):
            rows = session.execute(
                select(GroupNav.id, GroupNav.nav_id, GroupNav.group_id)
                .where(GroupNav.nav_id.in_(nav_chunk), GroupNav.group_id.in_(group_chunk))
            ).all()
            for r in rows:
                if (r.nav_id, r.group_id) in wanted:
                    found[(r.nav_id, r.group_id)] = r.id
    return found


def list_grants(session=None) -> List[Pair]:
    if session is None:
        session = get_db()
    rows = session.execute(
        select(GroupNav.nav_id, GroupNav.group_id).order_by(GroupNav.nav_id.asc(), GroupNav.group_id.asc())
    ).all()
    return [(r.nav_id, r.group_id) for r in rows]


def grants_by_navigation(session=None) -> List[Dict[str, object]]:
    grouped: Dict[int, List[int]] = {}
    for nav_id, group_id in list_grants(session):
        grouped.setdefault(nav_id, []).append(group_id)
    return [{'nav_id': nav_id, 'groups': groups} for nav_id, groups in grouped.items()]


def nav_ids_for_group(group_id: int, session=None) -> List[int]:
    if session is None:
        session = get_db()
    return list(session.execute(
        select(GroupNav.nav_id).where(GroupNav.group_id == group_id).order_by(GroupNav.nav_id.asc())
    ).scalars())


def group_ids_for_nav(nav_id: int, session=None) -> List[int]:
    if session is None:
        session = get_db()
    return list(session.execute(
        select(GroupNav.group_id).where(GroupNav.nav_id == nav_id).order_by(GroupNav.group_id.asc())
    ).scalars())


def stage_upsert(session, pairs: List[Pair]) -> List[Pair]:
    """Insert the pairs that are not stored yet, without committing. Returns the inserted pairs."""
    if not pairs:
        return []
    existing = _stored_pairs(session, pairs)
    fresh = [p for p in pairs if p not in existing]
    if fresh:
        session.add_all([GroupNav(nav_id=n, group_id=g) for n, g in fresh])
        session.flush()
    return fresh


def upsert_grants(pairs: Iterable, session=None) -> Tuple[int, Optional[AccessChanged]]:
    """Idempotent batch grant. Returns (rows inserted, event or None when nothing changed)."""
    pairs = normalize_pairs(pairs)
    if session is None:
        session = get_db()
    with transaction(session, 'group_nav upsert'):
        fresh = stage_upsert(session, pairs)
    if not fresh:
        return 0, None
    return len(fresh), AccessChanged.of(
        'NAV.PERM.ASSIGN', group_ids=[g for _, g in fresh], nav_ids=[n for n, _ in fresh]
    )


def remove_grants(pairs: Iterable, session=None) -> Tuple[int, Optional[AccessChanged]]:
    """Delete exactly the given pairs; absent pairs are ignored."""
    pairs = normalize_pairs(pairs)
    if not pairs:
        return 0, None
    if session is None:
        session = get_db()
    with transaction(session, 'group_nav remove'):
        found = _stored_pairs(session, pairs)
        stored = [p for p in pairs if p in found]
        row_ids = sorted(found.values())
        for chunk in _chunks(row_ids):
            session.execute(delete(GroupNav).where(GroupNav.id.in_(chunk)))
    if not stored:
        return 0, None
    return len(stored), AccessChanged.of(
        'NAV.PERM.REMOVE', group_ids=[g for _, g in stored], nav_ids=[n for n, _ in stored]
    )


def stage_remove_not_in(session, nav_id: int, keep_group_ids: Iterable[int]) -> Tuple[int, ...]:
    _, removed = sync_association(session, GroupNav, 'nav_id', nav_id, 'group_id', keep_group_ids, insert=False)
    return removed


def remove_grants_not_in(nav_id: int, keep_group_ids: Iterable[int], session=None) -> SyncResult:
    """Drop every grant of ``nav_id`` whose group is outside ``keep_group_ids`` (all of them if empty)."""
    keep = coerce_ids(keep_group_ids, 'keep_group_ids')
    if session is None:
        session = get_db()
    with transaction(session, f'group_nav prune nav {nav_id}'):
        removed = stage_remove_not_in(session, nav_id, keep)
    event = AccessChanged.of('NAV.PERM.PRUNE', group_ids=removed, nav_ids=[nav_id]) if removed else None
    return SyncResult(nav_id, (), removed, event)


def stage_replace_group_grants(session, group_id: int, nav_ids: Iterable[int]) -> SyncResult:
    added, removed = sync_association(session, GroupNav, 'group_id', group_id, 'nav_id', nav_ids)
    event = None
    if added or removed:
        event = AccessChanged.of('GROUP.NAV.REPLACE', group_ids=[group_id], nav_ids=list(added) + list(removed))
    return SyncResult(group_id, added, removed, event)


def replace_group_grants(group_id: int, nav_ids: Iterable[int], session=None) -> SyncResult:
    """Make the navigation items granted to ``group_id`` exactly ``nav_ids``."""
    wanted = coerce_ids(nav_ids, 'nav_ids')
    if session is None:
        session = get_db()
    with transaction(session, f'group_nav replace group {group_id}'):
        result = stage_replace_group_grants(session, group_id, wanted)
    return result


__all__ = [
    'normalize_pairs', 'list_grants', 'grants_by_navigation', 'nav_ids_for_group', 'group_ids_for_nav',
    'upsert_grants', 'remove_grants', 'remove_grants_not_in', 'replace_group_grants',
]
