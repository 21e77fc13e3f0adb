from __future__ import annotations

from ..extensions import db
from counterpos.time_utils import to_utc_z


ROLE_OPERATOR = "OPERATOR"
ROLE_ADMIN = "ADMIN"


class AccessCredential(db.Model):
    """
    Shared secret for one access level.

    OPERATOR: a counter PIN that unlocks billing (no username).
    ADMIN: username + password that elevates a session to the admin screens.

    Only bcrypt hashes are stored. Secrets are set through the CLI
    (`flask access set-pin`, `flask access set-admin`).
    """
    __tablename__ = "access_credentials"
    __table_args__ = (
        db.UniqueConstraint("role", name="uq_access_credentials_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    role = db.Column(db.String(16), nullable=False)
    username = db.Column(db.String(128), nullable=True)
    secret_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "username": self.username,
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Counter session.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 12-hour idle timeout
    - role starts at OPERATOR and is raised to ADMIN by admin login
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_active", "is_revoked", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)
    role = db.Column(db.String(16), nullable=False, default=ROLE_OPERATOR)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    elevated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "is_admin": self.is_admin,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }


EVENT_LOGIN_FAILED = "LOGIN_FAILED"
EVENT_LOGIN_SUCCESS = "LOGIN_SUCCESS"


class SecurityEvent(db.Model):
    """
    Unlock and admin login attempts, used for throttling.

    identifier is "operator-pin" for counter unlocks and the username for
    admin logins.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_lookup", "event_type", "identifier", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(32), nullable=False)
    identifier = db.Column(db.String(128), nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
