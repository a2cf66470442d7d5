import logging
from functools import wraps
from flask import abort, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity
from navauth.services.policy import current_permissions

logger = logging.getLogger('navauth.auth')


def require_permissions(*codes: str):
    """Reject the request with 403 unless the token's ``perms`` claim holds every one of ``codes``."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            perms = current_permissions()
            if not all(c in perms for c in codes):
                logger.info('denied %s %s for user %s (needs %s)', request.method, request.path, get_jwt_identity(), codes)
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer
