"""
Login Throttling Service

Limits guessing of the 4-digit counter PIN and the admin password.
After MAX_FAILED_ATTEMPTS failures within LOCKOUT_WINDOW the identifier is
locked for LOCKOUT_DURATION, even for the correct secret.

Identifiers:
- "operator-pin" for /api/auth/unlock (one shared PIN, one counter)
- the submitted username for /api/auth/admin/login
"""

from datetime import timedelta

from ..extensions import db
from ..models import SecurityEvent
from ..models.auth import EVENT_LOGIN_FAILED, EVENT_LOGIN_SUCCESS
from counterpos.time_utils import utcnow


OPERATOR_PIN_IDENTIFIER = "operator-pin"

MAX_FAILED_ATTEMPTS = 10
LOCKOUT_WINDOW = timedelta(minutes=15)
LOCKOUT_DURATION = timedelta(minutes=15)


def _failures_since(identifier: str, cutoff):
    return db.session.query(SecurityEvent).filter(
        SecurityEvent.event_type == EVENT_LOGIN_FAILED,
        SecurityEvent.identifier == identifier,
        SecurityEvent.occurred_at >= cutoff,
    )


def get_recent_failed_attempts(identifier: str) -> int:
    """Failed attempts since the last success, within LOCKOUT_WINDOW."""
    cutoff = utcnow() - LOCKOUT_WINDOW

    last_success = (
        db.session.query(SecurityEvent.occurred_at)
        .filter(
            SecurityEvent.event_type == EVENT_LOGIN_SUCCESS,
            SecurityEvent.identifier == identifier,
        )
        .order_by(SecurityEvent.occurred_at.desc())
        .first()
    )
    if last_success and last_success[0] > cutoff:
        cutoff = last_success[0]

    return _failures_since(identifier, cutoff).count()


def is_locked(identifier: str) -> tuple[bool, int | None]:
    """
    Returns:
    - (True, seconds_remaining) while locked
    - (False, None) otherwise
    """
    if get_recent_failed_attempts(identifier) < MAX_FAILED_ATTEMPTS:
        return False, None

    most_recent = (
        db.session.query(SecurityEvent)
        .filter(
            SecurityEvent.event_type == EVENT_LOGIN_FAILED,
            SecurityEvent.identifier == identifier,
        )
        .order_by(SecurityEvent.occurred_at.desc())
        .first()
    )
    if most_recent is None:
        return False, None

    now = utcnow()
    lockout_end = most_recent.occurred_at + LOCKOUT_DURATION
    if now < lockout_end:
        return True, int((lockout_end - now).total_seconds())
    return False, None


def _record(event_type: str, identifier: str, *, reason=None, ip_address=None, user_agent=None) -> None:
    db.session.add(SecurityEvent(
        event_type=event_type,
        identifier=identifier,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:255] or None,
        occurred_at=utcnow(),
    ))
    db.session.commit()


def record_failed_attempt(
    identifier: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
    reason: str = "Invalid credentials",
) -> int:
    """Record a failure and return the number of recent failures."""
    _record(EVENT_LOGIN_FAILED, identifier, reason=reason, ip_address=ip_address, user_agent=user_agent)
    return get_recent_failed_attempts(identifier)


def record_successful_login(identifier: str, ip_address: str | None = None, user_agent: str | None = None) -> None:
    _record(EVENT_LOGIN_SUCCESS, identifier, ip_address=ip_address, user_agent=user_agent)
