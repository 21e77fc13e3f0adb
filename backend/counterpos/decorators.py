# Overview: Request and access-level decorators for API routes.

from functools import wraps

from flask import current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require an unlocked counter session (operator PIN).

    Sets:
    - g.session_token: the validated SessionToken row
    - g.raw_token: the plaintext bearer token (for lock/logout)

    Returns 401 if the Authorization header is missing, or the token is
    unknown, expired, idle too long or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        session = session_service.validate_session(token)
        if session is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.session_token = session
        g.raw_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require a session elevated by the admin login. Use after @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        session = getattr(g, "session_token", None)
        if session is None:
            return jsonify({"error": "Authentication required"}), 401
        if not session.is_admin:
            current_app.logger.warning(
                "Admin access denied path=%s ip=%s", request.path, request.remote_addr
            )
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function


def degrade_on_db_error(default_factory):
    """
    Read endpoints: a database failure is logged and the screen gets an
    empty payload (200) instead of an error.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except SQLAlchemyError:
                db.session.rollback()
                current_app.logger.exception("Read failed on %s, serving empty result", request.path)
                return jsonify(default_factory()), 200

        return decorated_function
    return decorator
