from navauth.services import access
from navauth.services.navigation import delete_navigation
from tests.test_utils_seed import ensure_user, ensure_group, add_nav, grant, join


def _ids(rows):
    return [r.id for r in rows]


def test_union_across_groups_is_distinct():
    u = ensure_user('reader@test.local')
    ga, gb = ensure_group('A'), ensure_group('B')
    n1, n2, n3 = add_nav('One'), add_nav('Two'), add_nav('Three')
    grant(ga, [n1, n2]); grant(gb, [n2, n3])
    join(u, ga, gb)
    assert _ids(access.resolve_for_user(u.id)) == [n1.id, n2.id, n3.id]
    assert _ids(access.resolve_for_groups([ga.id, gb.id])) == [n1.id, n2.id, n3.id]
    assert _ids(access.resolve_for_groups([gb.id])) == [n2.id, n3.id]


def test_no_groups_means_no_navigation():
    u = ensure_user('nobody@test.local')
    add_nav('One')
    assert access.resolve_for_user(u.id) == []
    assert access.resolve_for_groups([]) == []
    assert access.navigation_tree_for_user(u.id).to_dicts() == []


def test_ordered_by_position_then_id():
    g = ensure_group('A')
    late, early, tie = add_nav('Late', position=5), add_nav('Early', position=1), add_nav('Tie', position=1)
    grant(g, [late, early, tie])
    assert _ids(access.resolve_for_groups([g.id])) == [early.id, tie.id, late.id]


def test_only_enabled_filter():
    g = ensure_group('A')
    on, off = add_nav('On'), add_nav('Off', status=0)
    grant(g, [on, off])
    assert _ids(access.resolve_for_groups([g.id])) == [on.id, off.id]
    assert _ids(access.resolve_for_groups([g.id], only_enabled=True)) == [on.id]


def test_user_tree_builds_parents_and_orphans():
    u = ensure_user('tree@test.local')
    g = ensure_group('A')
    home = add_nav('Home')
    settings = add_nav('Settings', parent_nav_id=home.id)
    hidden_parent = add_nav('Hidden')
    stranded = add_nav('Stranded', parent_nav_id=hidden_parent.id)
    grant(g, [home, settings, stranded])
    join(u, g)
    tree = access.navigation_tree_for_user(u.id).to_dicts()
    assert [n['id'] for n in tree] == [home.id, stranded.id]
    assert [c['id'] for c in tree[0]['children']] == [settings.id]
    assert tree[1]['children'] is None


def test_cycle_logged(caplog):
    g = ensure_group('A')
    a = add_nav('A')
    b = add_nav('B', parent_nav_id=a.id)
    a.parent_nav_id = b.id
    from navauth import get_db
    get_db().commit()
    grant(g, [a, b])
    with caplog.at_level('WARNING', logger='navauth.access'):
        forest = access.navigation_tree_for_groups([g.id])
    assert forest.to_dicts() == []
    assert 'cycle' in caplog.text


def test_delete_removes_item_from_every_group():
    u = ensure_user('del@test.local')
    ga, gb = ensure_group('A'), ensure_group('B')
    gone, kept = add_nav('Gone'), add_nav('Kept')
    grant(ga, [gone, kept]); grant(gb, [gone])
    join(u, ga, gb)
    delete_navigation(gone.id)
    assert _ids(access.resolve_for_user(u.id)) == [kept.id]
    assert _ids(access.resolve_for_groups([gb.id])) == []


def test_global_tree():
    root = add_nav('Root')
    add_nav('Child', parent_nav_id=root.id)
    add_nav('Off', status=0)
    assert access.navigation_tree().count_nodes() == 3
    assert access.navigation_tree(only_enabled=True).count_nodes() == 2
