from __future__ import annotations
"""Access-change events and the dispatcher that carries them out of the core.

Registry mutations never talk to a push transport. They return an ``AccessChanged``
value describing which groups, navigation items and users were touched; the route
layer publishes it on the application's dispatcher and whatever transport is wired
in (socket push, webhook, cache buster) subscribes there.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

logger = logging.getLogger('navauth.events')


def _ids(values: Optional[Iterable[int]]) -> Tuple[int, ...]:
    return tuple(sorted(set(values or ())))


@dataclass(frozen=True)
class AccessChanged:
    action: str
    group_ids: Tuple[int, ...] = ()
    nav_ids: Tuple[int, ...] = ()
    user_ids: Tuple[int, ...] = ()

    @classmethod
    def of(cls, action: str, group_ids=None, nav_ids=None, user_ids=None) -> 'AccessChanged':
        return cls(action, _ids(group_ids), _ids(nav_ids), _ids(user_ids))

    def as_dict(self):
        return {
            'action': self.action,
            'group_ids': list(self.group_ids),
            'nav_ids': list(self.nav_ids),
            'user_ids': list(self.user_ids),
        }


@dataclass(frozen=True)
class SyncResult:
    """Outcome of synchronising one owner's association set."""
    owner_id: int
    added: Tuple[int, ...] = ()
    removed: Tuple[int, ...] = ()
    event: Optional[AccessChanged] = None

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


Handler = Callable[[AccessChanged], None]


@dataclass
class EventDispatcher:
    handlers: List[Handler] = field(default_factory=list)

    def subscribe(self, handler: Handler) -> Handler:
        self.handlers.append(handler)
        return handler

    def unsubscribe(self, handler: Handler):
        if handler in self.handlers:
            self.handlers.remove(handler)

    def publish(self, event: Optional[AccessChanged]) -> int:
        """Deliver ``event`` to every subscriber; returns how many handled it without error.

        Delivery is best effort: a failing subscriber is logged and the rest still run.
        """
        if event is None:
            return 0
        delivered = 0
        for handler in list(self.handlers):
            try:
                handler(event)
                delivered += 1
            except Exception:
                logger.exception('access-change subscriber %r failed for %s', handler, event.action)
        return delivered


def log_access_change(event: AccessChanged):
    logger.info(
        'access changed: %s groups=%s nav=%s users=%s',
        event.action, list(event.group_ids), list(event.nav_ids), list(event.user_ids),
    )


__all__ = ['AccessChanged', 'SyncResult', 'EventDispatcher', 'log_access_change']
