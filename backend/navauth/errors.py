from __future__ import annotations
"""Domain error types for the navigation & access core.

Services raise these instead of calling flask.abort so they stay usable outside a
request (scripts, background tracking). create_app() maps them to the standard
``{'error': {status, title, detail}}`` payload.
"""
from typing import Optional


class NavAuthError(Exception):
    status = 500
    title = 'Internal Server Error'

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(NavAuthError):
    status = 400
    title = 'Bad Request'


class NotFoundError(NavAuthError):
    status = 404
    title = 'Not Found'

    def __init__(self, entity: str, entity_id):
        super().__init__(f'{entity} {entity_id} not found')
        self.entity = entity
        self.entity_id = entity_id


class StorageError(NavAuthError):
    def __init__(self, detail: str, context: Optional[str] = None):
        super().__init__(detail)
        self.context = context


class PartialReconciliationError(StorageError):
    """Sync failed after rows were already deleted; the transaction was rolled back."""

    def __init__(self, table: str, owner_id, phase: str, cause: Exception):
        super().__init__(
            f'{table} sync for owner {owner_id} failed during {phase}; changes rolled back',
            context=table,
        )
        self.owner_id = owner_id
        self.phase = phase
        self.__cause__ = cause


__all__ = ['NavAuthError', 'ValidationError', 'NotFoundError', 'StorageError', 'PartialReconciliationError']
