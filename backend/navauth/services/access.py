from __future__ import annotations
"""Access resolver: the navigation a user (or a set of groups) may see.

Access is the union of every grant held by any of the caller's groups. There is no deny:
a group can only add items. Results are distinct and ordered by (position, id), which is
also the sibling order of the trees built from them.
"""
import logging
from typing import Iterable, List

from sqlalchemy import select

from navauth import get_db
from navauth.constants.permissions import STATUS_ENABLED
from navauth.models.authz import Navigation, GroupNav, UserGroup
from navauth.services.navigation import list_navigation
from navauth.services.sync import coerce_ids
from navauth.utils.tree import NavForest, build_tree

logger = logging.getLogger('navauth.access')


def resolve_for_groups(group_ids: Iterable[int], session=None, only_enabled: bool = False) -> List[Navigation]:
    ids = coerce_ids(group_ids, 'group_ids')
    if not ids:
        return []
    if session is None:
        session = get_db()
    granted = select(GroupNav.nav_id).where(GroupNav.group_id.in_(sorted(ids)))
    q = select(Navigation).where(Navigation.id.in_(granted))
    if only_enabled:
        q = q.where(Navigation.status == STATUS_ENABLED)
    return list(session.execute(q.order_by(Navigation.position.asc(), Navigation.id.asc())).scalars())


def resolve_for_user(user_id: int, session=None, only_enabled: bool = False) -> List[Navigation]:
    if session is None:
        session = get_db()
    memberships = select(UserGroup.group_id).where(UserGroup.user_id == user_id)
    granted = select(GroupNav.nav_id).where(GroupNav.group_id.in_(memberships))
    q = select(Navigation).where(Navigation.id.in_(granted))
    if only_enabled:
        q = q.where(Navigation.status == STATUS_ENABLED)
    return list(session.execute(q.order_by(Navigation.position.asc(), Navigation.id.asc())).scalars())


def _forest(rows, label: str) -> NavForest:
    forest = build_tree(rows)
    stranded = forest.unreachable_ids()
    if stranded:
        logger.warning('%s: navigation ids %s form a parent cycle and are not reachable', label, sorted(stranded))
    return forest


def navigation_tree_for_user(user_id: int, session=None, only_enabled: bool = False) -> NavForest:
    return _forest(resolve_for_user(user_id, session, only_enabled), f'user {user_id}')


def navigation_tree_for_groups(group_ids: Iterable[int], session=None, only_enabled: bool = False) -> NavForest:
    return _forest(resolve_for_groups(group_ids, session, only_enabled), 'groups')


def navigation_tree(session=None, only_enabled: bool = False) -> NavForest:
    return _forest(list_navigation(session, only_enabled), 'all navigation')


__all__ = [
    'resolve_for_groups', 'resolve_for_user',
    'navigation_tree_for_user', 'navigation_tree_for_groups', 'navigation_tree',
]
