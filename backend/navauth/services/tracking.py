from __future__ import annotations
"""Last-visited-route tracking (users.last_nav).

Best effort and fire-and-forget: ``record_visited_route`` hands the update to a small
thread pool and returns the Future straight away. At most ``MAX_PENDING`` writes may be
queued or running; further calls are dropped with a warning and return None. A write that
finishes more than ``timeout`` seconds after it was submitted logs a warning; it is never
cancelled. Errors are logged and never raised to the caller.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from sqlalchemy import update

from navauth.errors import ValidationError
from navauth.models.authz import User

logger = logging.getLogger('navauth.tracking')

DEFAULT_TIMEOUT_SECONDS = 5.0
MAX_WORKERS = 4
MAX_PENDING = 100

_executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix='route-track')
_slots = threading.BoundedSemaphore(MAX_PENDING)


def _default_session_factory():
    # resolved lazily so the executor thread gets its own scoped session
    import navauth
    return navauth.SessionLocal


def _write_last_nav(path: str, user_id: int, session_factory: Callable) -> int:
    session = session_factory()
    try:
        result = session.execute(update(User).where(User.id == user_id).values(last_nav=path))
        session.commit()
        if result.rowcount == 0:
            logger.warning('route tracking: no user found with id %s', user_id)
        return result.rowcount
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _run(path: str, user_id: int, session_factory: Callable, timeout: float,
         submitted: float, slots: threading.BoundedSemaphore) -> int:
    try:
        return _write_last_nav(path, user_id, session_factory)
    finally:
        elapsed = time.monotonic() - submitted
        if elapsed > timeout:
            logger.warning('route tracking for user %s path %s took %.1fs (timeout %.1fs)',
                           user_id, path, elapsed, timeout)
        slots.release()


def _log_failure(path: str, user_id: int):
    def done(future: Future):
        exc = future.exception()
        if exc is not None:
            logger.error('route tracking failed for user %s path %s: %s', user_id, path, exc)
    return done


def record_visited_route(path: str, user_id: int, timeout: Optional[float] = None,
                         session_factory: Optional[Callable] = None) -> Optional[Future]:
    if not isinstance(path, str) or not path.strip():
        raise ValidationError('path required')
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise ValidationError('userId required')
    timeout = DEFAULT_TIMEOUT_SECONDS if timeout is None else float(timeout)
    factory = session_factory or _default_session_factory()

    slots = _slots
    if not slots.acquire(blocking=False):
        logger.warning('route tracking backlog full; dropped user %s path %s', user_id, path)
        return None
    try:
        future = _executor.submit(_run, path, user_id, factory, timeout, time.monotonic(), slots)
    except RuntimeError as exc:
        # executor already shut down (interpreter exit)
        slots.release()
        logger.error('route tracking unavailable for user %s path %s: %s', user_id, path, exc)
        return None
    future.add_done_callback(_log_failure(path, user_id))
    return future


__all__ = ['record_visited_route', 'DEFAULT_TIMEOUT_SECONDS', 'MAX_PENDING']
