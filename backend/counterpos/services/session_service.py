# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

A session starts when the counter is unlocked with the operator PIN and may
be elevated to ADMIN by the admin login. The plaintext token is returned once
and sent back as a Bearer token; only its SHA-256 digest is stored.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 12-hour idle timeout (SESSION_IDLE_TIMEOUT), long enough for a shop day
- Revocable on lock or admin logout
"""

import hashlib
import secrets
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken
from ..models.auth import ROLE_ADMIN, ROLE_OPERATOR
from counterpos.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=12)


def generate_token() -> str:
    """Returns 64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast digest is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new OPERATOR session.

    Returns (session_record, plaintext_token).
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        token_hash=hash_token(plaintext_token),
        role=ROLE_OPERATOR,
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionToken | None:
    """
    Validate session token and return the SessionToken if valid.

    Returns None if the token is unknown, expired, revoked or idle too long.
    Updates last_used_at on successful validation.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    now = utcnow()

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    session.last_used_at = now
    db.session.commit()
    return session


def elevate_session(session: SessionToken) -> SessionToken:
    session.role = ROLE_ADMIN
    session.elevated_at = utcnow()
    db.session.commit()
    return session


def drop_elevation(session: SessionToken) -> SessionToken:
    session.role = ROLE_OPERATOR
    session.elevated_at = None
    db.session.commit()
    return session


def revoke_session(token: str, reason: str = "Counter locked") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def cleanup_expired_sessions(*, retention_days: int = 30) -> int:
    """
    Delete expired and revoked sessions older than retention_days.

    Returns count of sessions deleted.
    """
    cutoff = utcnow() - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
