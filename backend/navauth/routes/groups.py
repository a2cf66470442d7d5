from flask import Blueprint, request, current_app
from navauth.constants.permissions import GROUP_MANAGE
from navauth.decorators.audit import audit_log
from navauth.decorators.auth import require_permissions
from navauth.errors import ValidationError
from navauth.services import groups as group_service
from navauth.services import membership
from navauth.services.access import navigation_tree_for_groups

groups_bp = Blueprint('groups', __name__)


def _publish(*events):
    dispatcher = current_app.extensions['navauth.events']
    for event in events:
        dispatcher.publish(event)


@groups_bp.get('/')
@require_permissions(GROUP_MANAGE)
def list_groups_handler():
    return {'data': group_service.groups_overview(), 'status': 'success'}


@groups_bp.get('/<int:group_id>')
@require_permissions(GROUP_MANAGE)
def get_group_handler(group_id: int):
    grp = group_service.get_group(group_id)
    payload = group_service.group_to_dict(grp)
    payload['userIds'] = membership.user_ids_for_group(group_id)
    return payload


@groups_bp.post('/')
@require_permissions(GROUP_MANAGE)
@audit_log('GROUP.CREATE', entity='Group', entity_id_key='id', meta_keys=['name'])
def create_group_handler():
    grp = group_service.create_group(request.get_json(silent=True) or {})
    return group_service.group_to_dict(grp), 201


@groups_bp.put('/<int:group_id>')
@require_permissions(GROUP_MANAGE)
@audit_log(
    'GROUP.UPDATE',
    entity='Group',
    entity_id_key='id',
    meta_builder=lambda data, rv, a, kw: {'members': data.get('members'), 'grants': data.get('grants')},
)
def update_group_handler(group_id: int):
    out = group_service.update_group(group_id, request.get_json(silent=True) or {})
    _publish(*out['events'])
    payload = group_service.group_to_dict(out['group'])
    for key in ('members', 'grants'):
        result = out[key]
        payload[key] = None if result is None else {'added': list(result.added), 'removed': list(result.removed)}
    payload['message'] = 'Group updated successfully'
    return payload


@groups_bp.get('/<int:group_id>/navigation')
@require_permissions(GROUP_MANAGE)
def group_navigation_handler(group_id: int):
    group_service.get_group(group_id)
    forest = navigation_tree_for_groups([group_id])
    return {'groupId': group_id, 'navTree': forest.to_dicts(), 'status': 'success'}


@groups_bp.post('/navigation')
@require_permissions(GROUP_MANAGE)
def groups_navigation_handler():
    data = request.get_json(silent=True) or {}
    group_ids = data.get('group_ids', data.get('groupIds'))
    if not isinstance(group_ids, list):
        raise ValidationError('group_ids must be a list')
    forest = navigation_tree_for_groups(group_ids)
    return {'groupIds': sorted(set(group_ids)), 'navTree': forest.to_dicts(), 'status': 'success'}


@groups_bp.post('/<int:group_id>/members')
@require_permissions(GROUP_MANAGE)
@audit_log('GROUP.MEMBER.ADD', entity='Group', entity_id_arg='group_id', meta_keys=['userId', 'added'])
def add_member_handler(group_id: int):
    group_service.get_group(group_id)
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId', data.get('user_id'))
    added, event = membership.add_member(user_id, group_id)
    _publish(event)
    return {'groupId': group_id, 'userId': user_id, 'added': added}, (201 if added else 200)


@groups_bp.get('/users/<int:user_id>')
@require_permissions(GROUP_MANAGE)
def user_groups_handler(user_id: int):
    return {'userId': user_id, 'groupIds': membership.group_ids_for_user(user_id)}
