from __future__ import annotations
from typing import Set
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def current_user_id() -> int:
    # JWT identity is issued as a string by the auth module
    ident = get_jwt_identity()
    try:
        return int(ident)
    except (TypeError, ValueError):
        abort(401, description='Token identity is not a user id')
