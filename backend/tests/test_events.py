import logging
from navauth.events import AccessChanged, EventDispatcher, SyncResult, log_access_change


def test_event_ids_sorted_and_unique():
    ev = AccessChanged.of('X', group_ids=[3, 1, 3], nav_ids=None, user_ids=(2,))
    assert ev.group_ids == (1, 3)
    assert ev.nav_ids == ()
    assert ev.as_dict() == {'action': 'X', 'group_ids': [1, 3], 'nav_ids': [], 'user_ids': [2]}


def test_dispatcher_delivers_and_survives_failing_handler(caplog):
    dispatcher = EventDispatcher()
    got = []

    def broken(event):
        raise RuntimeError('transport down')

    dispatcher.subscribe(broken)
    dispatcher.subscribe(got.append)
    ev = AccessChanged.of('NAV.DELETE', nav_ids=[1])
    with caplog.at_level(logging.ERROR, logger='navauth.events'):
        assert dispatcher.publish(ev) == 1
    assert got == [ev]
    assert 'subscriber' in caplog.text


def test_publish_none_is_noop():
    dispatcher = EventDispatcher()
    got = []
    dispatcher.subscribe(got.append)
    assert dispatcher.publish(None) == 0
    assert got == []


def test_unsubscribe():
    dispatcher = EventDispatcher()
    got = []
    handler = dispatcher.subscribe(got.append)
    dispatcher.unsubscribe(handler)
    dispatcher.unsubscribe(handler)
    dispatcher.publish(AccessChanged.of('X'))
    assert got == []


def test_sync_result_changed():
    assert not SyncResult(1).changed
    assert SyncResult(1, added=(2,)).changed


def test_log_access_change(caplog):
    with caplog.at_level(logging.INFO, logger='navauth.events'):
        log_access_change(AccessChanged.of('GROUP.MEMBER.ADD', group_ids=[4], user_ids=[9]))
    assert 'GROUP.MEMBER.ADD' in caplog.text
