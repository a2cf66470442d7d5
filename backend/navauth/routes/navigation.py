from flask import Blueprint, request, abort, current_app
from flask_jwt_extended import jwt_required
from navauth.constants.permissions import NAV_MANAGE, NAV_READ
from navauth.decorators.audit import audit_log
from navauth.decorators.auth import require_permissions
from navauth.errors import ValidationError
from navauth.services import navigation as nav_store
from navauth.services import permissions as perm_registry
from navauth.services.access import navigation_tree, navigation_tree_for_user
from navauth.services.policy import current_user_id
from navauth.services.tracking import record_visited_route

nav_bp = Blueprint('navigation', __name__)


def _publish(event):
    current_app.extensions['navauth.events'].publish(event)


def _flag(name: str) -> bool:
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')


@nav_bp.get('/')
@require_permissions(NAV_MANAGE)
def list_navigation_tree():
    forest = navigation_tree(only_enabled=_flag('enabled'))
    return {'navTree': forest.to_dicts(), 'status': 'success'}


@nav_bp.post('/')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.CREATE', entity='Navigation', entity_id_key='id', meta_keys=['title', 'groups'])
def create_navigation_handler():
    data = request.get_json(silent=True) or {}
    nav, event = nav_store.create_navigation(data)
    _publish(event)
    return {'id': nav.id, 'title': nav.title, 'groups': list(event.group_ids) if event else []}, 201


@nav_bp.put('/<int:nav_id>')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.UPDATE', entity='Navigation', entity_id_key='id', meta_keys=['title'])
def update_navigation_handler(nav_id: int):
    data = request.get_json(silent=True) or {}
    nav, event = nav_store.update_navigation(nav_id, data)
    _publish(event)
    return {'id': nav.id, 'title': nav.title, 'data': nav.to_dict(), 'status': 'success'}


@nav_bp.put('/<int:nav_id>/status')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.STATUS', entity='Navigation', entity_id_arg='nav_id', meta_keys=['enabled'])
def toggle_status_handler(nav_id: int):
    data = request.get_json(silent=True) or {}
    if 'status' not in data:
        abort(400, description='status required')
    enabled = bool(data.get('status'))
    _publish(nav_store.toggle_status(nav_id, enabled))
    return {'id': nav_id, 'enabled': enabled, 'status': 'success'}


@nav_bp.delete('/<int:nav_id>')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.DELETE', entity='Navigation', entity_id_arg='nav_id', meta_keys=['groups'])
def delete_navigation_handler(nav_id: int):
    count, event = nav_store.delete_navigation(nav_id)
    _publish(event)
    return {'affectedRows': count, 'groups': list(event.group_ids), 'status': 'success'}


@nav_bp.put('/reorder')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.REORDER', entity='Navigation', meta_keys=['updated', 'skipped'])
def reorder_navigation_handler():
    data = request.get_json(silent=True) or {}
    updated, skipped, event = nav_store.reorder_navigation(data.get('nodes'))
    _publish(event)
    return {'updated': updated, 'skipped': skipped, 'status': 'success'}


# --- Grants ---

@nav_bp.get('/access')
@require_permissions(NAV_MANAGE)
def list_grants_handler():
    return {'data': perm_registry.grants_by_navigation(), 'status': 'success'}


@nav_bp.get('/access/<int:user_id>')
@require_permissions(NAV_MANAGE)
def user_navigation_handler(user_id: int):
    forest = navigation_tree_for_user(user_id, only_enabled=_flag('enabled'))
    return {'userId': user_id, 'navTree': forest.to_dicts(), 'status': 'success'}


@nav_bp.get('/me')
@require_permissions(NAV_READ)
def my_navigation_handler():
    user_id = current_user_id()
    forest = navigation_tree_for_user(user_id, only_enabled=True)
    return {'userId': user_id, 'navTree': forest.to_dicts(), 'status': 'success'}


@nav_bp.put('/permissions/assign')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.PERM.ASSIGN', entity='Navigation', meta_keys=['inserted'])
def assign_permissions_handler():
    data = request.get_json(silent=True) or {}
    pairs = data.get('permissions')
    if not pairs:
        raise ValidationError('permissions required')
    inserted, event = perm_registry.upsert_grants(pairs)
    _publish(event)
    return {'inserted': inserted, 'status': 'success'}


@nav_bp.delete('/permissions/remove')
@require_permissions(NAV_MANAGE)
@audit_log('NAV.PERM.REMOVE', entity='Navigation', meta_keys=['removed'])
def remove_permissions_handler():
    data = request.get_json(silent=True) or {}
    pairs = data.get('permissions')
    if not pairs:
        raise ValidationError('permissions required')
    removed, event = perm_registry.remove_grants(pairs)
    _publish(event)
    return {'removed': removed, 'status': 'success'}


@nav_bp.put('/track-route')
@jwt_required()
def track_route_handler():
    data = request.get_json(silent=True) or {}
    user_id = current_user_id()
    if data.get('userId') not in (None, user_id):
        abort(403, description='Cannot track routes for another user')
    # Not awaited: the caller gets its answer before the write lands
    record_visited_route(
        data.get('path'),
        user_id,
        timeout=current_app.config.get('ROUTE_TRACK_TIMEOUT_SECONDS'),
    )
    return {'message': 'Route tracked', 'status': 'success'}
