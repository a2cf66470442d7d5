from __future__ import annotations
"""Membership registry (table user_groups)."""
import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select

from navauth import get_db
from navauth.errors import ValidationError
from navauth.events import AccessChanged, SyncResult
from navauth.models.authz import UserGroup
from navauth.services.sync import transaction, coerce_ids, sync_association

logger = logging.getLogger('navauth.membership')


def group_ids_for_user(user_id: int, session=None) -> List[int]:
    if session is None:
        session = get_db()
    return list(session.execute(
        select(UserGroup.group_id).where(UserGroup.user_id == user_id).order_by(UserGroup.group_id.asc())
    ).scalars())


def user_ids_for_group(group_id: int, session=None) -> List[int]:
    if session is None:
        session = get_db()
    return list(session.execute(
        select(UserGroup.user_id).where(UserGroup.group_id == group_id).order_by(UserGroup.user_id.asc())
    ).scalars())


def stage_replace_members(session, group_id: int, user_ids: Iterable[int]) -> SyncResult:
    added, removed = sync_association(session, UserGroup, 'group_id', group_id, 'user_id', user_ids)
    event = None
    if added or removed:
        event = AccessChanged.of('GROUP.MEMBERS.SET', group_ids=[group_id], user_ids=list(added) + list(removed))
    return SyncResult(group_id, added, removed, event)


def replace_group_members(group_id: int, user_ids: Iterable[int], session=None) -> SyncResult:
    """Make the members of ``group_id`` exactly ``user_ids``."""
    wanted = coerce_ids(user_ids, 'user_ids')
    if session is None:
        session = get_db()
    with transaction(session, f'user_groups replace group {group_id}'):
        result = stage_replace_members(session, group_id, wanted)
    return result


def add_member(user_id: int, group_id: int, session=None) -> Tuple[bool, Optional[AccessChanged]]:
    """Add one membership. Idempotent: returns (False, None) when the pair already exists."""
    for v in (user_id, group_id):
        if isinstance(v, bool) or not isinstance(v, int):
            raise ValidationError('user_id and group_id must be integers')
    if session is None:
        session = get_db()
    with transaction(session, f'user_groups add {user_id}->{group_id}'):
        exists = session.execute(
            select(UserGroup.id).where(UserGroup.user_id == user_id, UserGroup.group_id == group_id)
        ).first()
        if not exists:
            session.add(UserGroup(user_id=user_id, group_id=group_id))
            session.flush()
    if exists:
        logger.debug('user %s already in group %s', user_id, group_id)
        return False, None
    return True, AccessChanged.of('GROUP.MEMBER.ADD', group_ids=[group_id], user_ids=[user_id])


__all__ = ['group_ids_for_user', 'user_ids_for_group', 'replace_group_members', 'add_member']
