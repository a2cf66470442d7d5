from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity
from navauth import get_db
from navauth.models.audit import AuditLog


def current_actor_id() -> int:
    """Numeric id of the authenticated caller, 0 when there is no JWT context."""
    try:
        ident = get_jwt_identity()
    except RuntimeError:
        # outside a request / verify_jwt_in_request() never ran
        return 0
    try:
        return int(ident) if ident is not None else 0
    except (TypeError, ValueError):
        return 0


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit log entry within the current DB session.

    Parameters:
      action: short action code e.g. NAV.CREATE, GROUP.NAV.REPLACE, GROUP.MEMBERS.SET
      entity: optional entity name (Navigation, Group, User)
      entity_id: optional primary key string
      meta: additional JSON-safe dictionary (will be shallow copied)
    """
    session = get_db()
    log = AuditLog(
        actor_user_id=current_actor_id(),
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
