import pytest
from sqlalchemy.exc import OperationalError
from navauth import get_db
from navauth.errors import StorageError, PartialReconciliationError, ValidationError, NotFoundError
from navauth.models.authz import GroupNav
from navauth.services import permissions as registry
from navauth.services.sync import transaction, coerce_ids, sync_association
from tests.test_utils_seed import ensure_group, add_nav, grant, grants_for_group


def _boom(*a, **k):
    raise OperationalError('INSERT INTO group_nav', {}, Exception('disk I/O error'))


def test_insert_failure_after_delete_rolls_back(monkeypatch):
    g = ensure_group('G')
    keep, drop, new = add_nav('Keep'), add_nav('Drop'), add_nav('New')
    grant(g, [keep, drop])
    session = get_db()
    monkeypatch.setattr(session, 'flush', _boom)
    with pytest.raises(PartialReconciliationError) as exc:
        registry.replace_group_grants(g.id, [keep.id, new.id])
    monkeypatch.undo()
    assert exc.value.phase == 'insert'
    assert exc.value.owner_id == g.id
    assert isinstance(exc.value.__cause__, OperationalError)
    # the delete of 'Drop' was rolled back with the failed insert
    assert grants_for_group(g.id) == sorted([keep.id, drop.id])


def test_insert_failure_without_deletes_is_plain_storage_error(monkeypatch):
    g = ensure_group('G')
    nav = add_nav('New')
    session = get_db()
    monkeypatch.setattr(session, 'flush', _boom)
    with pytest.raises(StorageError) as exc:
        registry.replace_group_grants(g.id, [nav.id])
    monkeypatch.undo()
    assert not isinstance(exc.value, PartialReconciliationError)
    assert grants_for_group(g.id) == []


def test_transaction_translates_storage_errors():
    session = get_db()
    with pytest.raises(StorageError) as exc:
        with transaction(session, 'unit test'):
            _boom()
    assert exc.value.context == 'unit test'
    assert exc.value.status == 500


def test_transaction_rolls_back_domain_errors():
    g = ensure_group('G')
    session = get_db()
    with pytest.raises(NotFoundError):
        with transaction(session, 'unit test'):
            session.add(GroupNav(nav_id=1, group_id=g.id))
            session.flush()
            raise NotFoundError('Navigation', 1)
    assert grants_for_group(g.id) == []


def test_sync_flags():
    g = ensure_group('G')
    a, b, c = add_nav('A'), add_nav('B'), add_nav('C')
    grant(g, [a, b])
    session = get_db()
    with transaction(session, 'flags'):
        added, removed = sync_association(session, GroupNav, 'group_id', g.id, 'nav_id', [b.id, c.id], prune=False)
    assert (added, removed) == ((c.id,), ())
    assert grants_for_group(g.id) == sorted([a.id, b.id, c.id])
    with transaction(session, 'flags'):
        added, removed = sync_association(session, GroupNav, 'group_id', g.id, 'nav_id', [c.id], insert=False)
    assert (added, removed) == ((), tuple(sorted([a.id, b.id])))
    assert grants_for_group(g.id) == [c.id]


def test_coerce_ids():
    assert coerce_ids(None, 'ids') == set()
    assert coerce_ids([3, 1, 3], 'ids') == {1, 3}
    for bad in ('12', {'a': 1}, [1, '2'], [True], [1.0]):
        with pytest.raises(ValidationError):
            coerce_ids(bad, 'ids')
