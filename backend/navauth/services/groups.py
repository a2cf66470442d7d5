from __future__ import annotations
"""Group maintenance used by the admin screens.

Group rows belong to the account module; this service keeps name/description/status
editable and lets one update replace the group's members and granted navigation together.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from navauth import get_db
from navauth.constants.permissions import STATUS_ENABLED
from navauth.errors import ValidationError, NotFoundError
from navauth.events import AccessChanged
from navauth.models.authz import Group, GroupNav, Navigation, UserGroup
from navauth.services.membership import stage_replace_members
from navauth.services.permissions import stage_replace_group_grants
from navauth.services.sync import transaction, coerce_ids

logger = logging.getLogger('navauth.groups')


def group_to_dict(grp: Group) -> Dict[str, Any]:
    return {'id': grp.id, 'name': grp.name, 'description': grp.description, 'status': grp.status}


def get_group(group_id: int, session=None) -> Group:
    if session is None:
        session = get_db()
    grp = session.get(Group, group_id)
    if grp is None:
        raise NotFoundError('Group', group_id)
    return grp


def list_groups(session=None) -> List[Group]:
    if session is None:
        session = get_db()
    return list(session.execute(select(Group).order_by(Group.id.asc())).scalars())


def groups_overview(session=None) -> List[Dict[str, Any]]:
    """Every group with its member ids and a flat summary of the items it grants."""
    if session is None:
        session = get_db()
    members: Dict[int, List[int]] = {}
    for ug in session.execute(select(UserGroup.group_id, UserGroup.user_id).order_by(UserGroup.user_id.asc())):
        members.setdefault(ug.group_id, []).append(ug.user_id)
    granted: Dict[int, List[Dict[str, Any]]] = {}
    rows = session.execute(
        select(GroupNav.group_id, Navigation.id, Navigation.title, Navigation.path)
        .join(Navigation, Navigation.id == GroupNav.nav_id)
        .order_by(Navigation.position.asc(), Navigation.id.asc())
    )
    for r in rows:
        granted.setdefault(r.group_id, []).append({'navId': r.id, 'title': r.title, 'path': r.path})
    out = []
    for grp in list_groups(session):
        item = group_to_dict(grp)
        item['userIds'] = members.get(grp.id, [])
        item['navTree'] = granted.get(grp.id, [])
        out.append(item)
    return out


def _group_fields(data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if 'name' in data or not partial:
        name = data.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('name required')
        fields['name'] = name.strip()
    for key in ('description', 'desc'):
        if key in data:
            if data[key] is not None and not isinstance(data[key], str):
                raise ValidationError('description must be a string')
            fields['description'] = data[key]
            break
    if 'status' in data:
        status = data['status']
        if isinstance(status, bool):
            status = int(status)
        if status not in (0, 1):
            raise ValidationError('status must be 0/1 or a boolean')
        fields['status'] = status
    return fields


def create_group(data: Dict[str, Any], session=None) -> Group:
    if not isinstance(data, dict):
        raise ValidationError('group payload must be an object')
    fields = _group_fields(data, partial=False)
    fields.setdefault('status', STATUS_ENABLED)
    if session is None:
        session = get_db()
    with transaction(session, 'group create'):
        if session.execute(select(Group).where(Group.name == fields['name'])).scalar_one_or_none():
            raise ValidationError('group exists')
        grp = Group(**fields)
        session.add(grp)
        session.flush()
    return grp


def update_group(group_id: int, data: Dict[str, Any], session=None) -> Dict[str, Any]:
    """Update group columns; ``userIds`` / ``navIds`` lists replace members / grants exactly.

    Everything happens in one transaction. Returns
    {'group': Group, 'members': SyncResult | None, 'grants': SyncResult | None, 'events': [...]}.
    """
    if not isinstance(data, dict):
        raise ValidationError('group payload must be an object')
    fields = _group_fields(data, partial=True)
    user_ids: Optional[set] = None
    nav_ids: Optional[set] = None
    if data.get('userIds') is not None:
        user_ids = coerce_ids(data['userIds'], 'userIds')
    if data.get('navIds') is not None:
        nav_ids = coerce_ids(data['navIds'], 'navIds')
    if session is None:
        session = get_db()
    members = grants = None
    with transaction(session, f'group update {group_id}'):
        grp = get_group(group_id, session)
        if 'name' in fields and fields['name'] != grp.name:
            clash = session.execute(
                select(Group).where(Group.name == fields['name'], Group.id != group_id)
            ).scalar_one_or_none()
            if clash:
                raise ValidationError('group name in use')
        for key, value in fields.items():
            setattr(grp, key, value)
        if user_ids is not None:
            members = stage_replace_members(session, group_id, user_ids)
        if nav_ids is not None:
            grants = stage_replace_group_grants(session, group_id, nav_ids)
    events: List[AccessChanged] = [r.event for r in (members, grants) if r is not None and r.event is not None]
    if 'status' in fields:
        events.append(AccessChanged.of('GROUP.STATUS', group_ids=[group_id]))
    return {'group': grp, 'members': members, 'grants': grants, 'events': events}


__all__ = ['group_to_dict', 'get_group', 'list_groups', 'groups_overview', 'create_group', 'update_group']
