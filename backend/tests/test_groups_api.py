from sqlalchemy import select
from navauth import get_db
from navauth.constants.permissions import NAV_MANAGE
from navauth.models.audit import AuditLog
from tests.test_utils_seed import ensure_user, ensure_group, add_nav, grant, join, grants_for_group


def test_requires_group_permission(client, make_headers):
    assert client.get('/groups/', headers=make_headers(1, [NAV_MANAGE])).status_code == 403


def test_create_and_get(client, admin_headers):
    resp = client.post('/groups/', json={'name': 'Support', 'desc': 'Help desk'}, headers=admin_headers)
    assert resp.status_code == 201
    grp = resp.get_json()
    assert grp['description'] == 'Help desk'
    assert grp['status'] == 1
    resp = client.post('/groups/', json={'name': 'Support'}, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'group exists'
    resp = client.get(f"/groups/{grp['id']}", headers=admin_headers)
    assert resp.get_json()['userIds'] == []
    assert client.get('/groups/4040', headers=admin_headers).status_code == 404


def test_update_replaces_members_and_grants(client, admin_headers, events):
    g = ensure_group('Ops')
    u1, u2 = ensure_user('u1@test.local'), ensure_user('u2@test.local')
    a, b = add_nav('A'), add_nav('B')
    join(u1, g)
    grant(g, [a])
    resp = client.put(f'/groups/{g.id}', json={'description': 'Operations', 'userIds': [u2.id], 'navIds': [b.id]},
                      headers=admin_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['description'] == 'Operations'
    assert body['members'] == {'added': [u2.id], 'removed': [u1.id]}
    assert body['grants'] == {'added': [b.id], 'removed': [a.id]}
    assert grants_for_group(g.id) == [b.id]
    assert [e.action for e in events] == ['GROUP.MEMBERS.SET', 'GROUP.NAV.REPLACE']
    audit = get_db().execute(select(AuditLog).where(AuditLog.action == 'GROUP.UPDATE')).scalar_one()
    assert audit.entity_id == str(g.id)


def test_update_empty_lists_clear_group(client, admin_headers):
    g = ensure_group('Ops')
    u = ensure_user('u1@test.local')
    nav = add_nav('A')
    join(u, g)
    grant(g, [nav])
    body = client.put(f'/groups/{g.id}', json={'userIds': [], 'navIds': []}, headers=admin_headers).get_json()
    assert body['members']['removed'] == [u.id]
    assert grants_for_group(g.id) == []


def test_update_without_lists_leaves_associations(client, admin_headers, events):
    g = ensure_group('Ops')
    nav = add_nav('A')
    grant(g, [nav])
    body = client.put(f'/groups/{g.id}', json={'status': 0}, headers=admin_headers).get_json()
    assert body['members'] is None and body['grants'] is None
    assert body['status'] == 0
    assert grants_for_group(g.id) == [nav.id]
    assert [e.action for e in events] == ['GROUP.STATUS']


def test_update_rejects_bad_input(client, admin_headers):
    g, other = ensure_group('Ops'), ensure_group('Other')
    assert client.put(f'/groups/{g.id}', json={'name': 'Other'}, headers=admin_headers).status_code == 400
    assert client.put(f'/groups/{g.id}', json={'userIds': ['1']}, headers=admin_headers).status_code == 400
    assert client.put('/groups/4040', json={'status': 1}, headers=admin_headers).status_code == 404
    assert other.name == 'Other'


def test_overview(client, admin_headers):
    g = ensure_group('Ops')
    u = ensure_user('u1@test.local')
    nav = add_nav('Dashboard', path='/dashboard')
    join(u, g)
    grant(g, [nav])
    data = client.get('/groups/', headers=admin_headers).get_json()['data']
    assert data == [{
        'id': g.id, 'name': 'Ops', 'description': 'Ops', 'status': 1,
        'userIds': [u.id], 'navTree': [{'navId': nav.id, 'title': 'Dashboard', 'path': '/dashboard'}],
    }]


def test_group_navigation_trees(client, admin_headers):
    g1, g2 = ensure_group('G1'), ensure_group('G2')
    root = add_nav('Root')
    child = add_nav('Child', parent_nav_id=root.id)
    grant(g1, [root]); grant(g2, [child])
    tree = client.get(f'/groups/{g2.id}/navigation', headers=admin_headers).get_json()['navTree']
    assert [n['id'] for n in tree] == [child.id]
    tree = client.post('/groups/navigation', json={'groupIds': [g2.id, g1.id]}, headers=admin_headers).get_json()['navTree']
    assert [n['id'] for n in tree] == [root.id]
    assert tree[0]['children'][0]['id'] == child.id
    assert client.post('/groups/navigation', json={'group_ids': 'x'}, headers=admin_headers).status_code == 400


def test_add_member(client, admin_headers, events):
    g = ensure_group('Ops')
    u = ensure_user('u1@test.local')
    resp = client.post(f'/groups/{g.id}/members', json={'userId': u.id}, headers=admin_headers)
    assert resp.status_code == 201
    resp = client.post(f'/groups/{g.id}/members', json={'userId': u.id}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()['added'] is False
    assert [e.action for e in events] == ['GROUP.MEMBER.ADD']
    assert client.get(f'/groups/users/{u.id}', headers=admin_headers).get_json()['groupIds'] == [g.id]
    assert client.post(f'/groups/{g.id}/members', json={}, headers=admin_headers).status_code == 400
