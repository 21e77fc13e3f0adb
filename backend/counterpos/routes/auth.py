# Overview: Flask API routes for counter unlock, admin login and session lifecycle.

# backend/counterpos/routes/auth.py
"""
Access API Routes

Two levels, both checked on the server:

- POST /api/auth/unlock        operator PIN -> new OPERATOR session token
- POST /api/auth/admin/login   admin username/password -> session becomes ADMIN
- POST /api/auth/admin/logout  ADMIN -> OPERATOR (billing stays unlocked)
- POST /api/auth/lock          revoke the session (counter locked)
- GET  /api/auth/session       current role and expiry

Unlock and admin login are throttled: too many failures lock the PIN (or
the admin username) for 15 minutes and return 429.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, login_throttle_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _locked_response(seconds_remaining: int | None):
    minutes_remaining = (seconds_remaining // 60) + 1 if seconds_remaining else 15
    return jsonify({
        "error": "Temporarily locked due to too many failed attempts",
        "locked": True,
        "retry_after_seconds": seconds_remaining,
        "retry_after_minutes": minutes_remaining,
    }), 429


def _failed_response(identifier: str, error: str):
    failed_count = login_throttle_service.record_failed_attempt(
        identifier,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
        reason=error,
    )
    remaining = login_throttle_service.MAX_FAILED_ATTEMPTS - failed_count
    if remaining <= 0:
        current_app.logger.warning("Locked %s after %d failures", identifier, failed_count)
        return _locked_response(int(login_throttle_service.LOCKOUT_DURATION.total_seconds()))
    if remaining <= 3:
        return jsonify({
            "error": error,
            "warning": f"{remaining} attempts remaining before lockout",
        }), 401
    return jsonify({"error": error}), 401


@auth_bp.post("/unlock")
def unlock_route():
    """
    Request body:
    {
        "pin": "1234"
    }

    Returns:
        200: {"token": "...", "session": {...}}
        400: PIN missing
        401: Wrong PIN (or no PIN configured yet)
        429: Too many wrong PINs
    """
    data = request.get_json(silent=True) or {}
    pin = str(data.get("pin") or "").strip()
    if not pin:
        return jsonify({"error": "pin required"}), 400

    identifier = login_throttle_service.OPERATOR_PIN_IDENTIFIER
    locked, seconds_remaining = login_throttle_service.is_locked(identifier)
    if locked:
        return _locked_response(seconds_remaining)

    if not auth_service.verify_operator_pin(pin):
        current_app.logger.warning("Failed unlock attempt ip=%s", request.remote_addr)
        return _failed_response(identifier, "Invalid PIN")

    login_throttle_service.record_successful_login(
        identifier,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    session, token = session_service.create_session(
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    current_app.logger.info("Counter unlocked session=%s", session.id)
    return jsonify({"token": token, "session": session.to_dict()}), 200


@auth_bp.post("/admin/login")
@require_auth
def admin_login_route():
    """
    Request body:
    {
        "username": "admin",
        "password": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    if not username or not password:
        return jsonify({"error": "username and password required"}), 400

    locked, seconds_remaining = login_throttle_service.is_locked(username)
    if locked:
        return _locked_response(seconds_remaining)

    if not auth_service.verify_admin(username, password):
        current_app.logger.warning("Failed admin login ip=%s", request.remote_addr)
        return _failed_response(username, "Invalid credentials")

    login_throttle_service.record_successful_login(
        username,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
    session = session_service.elevate_session(g.session_token)
    current_app.logger.info("Admin login session=%s", session.id)
    return jsonify({"session": session.to_dict()}), 200


@auth_bp.post("/admin/logout")
@require_auth
def admin_logout_route():
    session = session_service.drop_elevation(g.session_token)
    return jsonify({"session": session.to_dict()}), 200


@auth_bp.post("/lock")
@require_auth
def lock_route():
    session_service.revoke_session(g.raw_token, reason="Counter locked")
    return jsonify({"ok": True}), 200


@auth_bp.get("/session")
@require_auth
def session_route():
    return jsonify({"session": g.session_token.to_dict()}), 200
