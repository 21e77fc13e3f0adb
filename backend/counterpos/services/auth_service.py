# Overview: Service-layer operations for counter access secrets.

"""
Access Secret Service

Two access levels guard the counter:
- OPERATOR: a numeric PIN that unlocks billing.
- ADMIN: a username + password that unlocks dashboard, inventory, reports,
  returns and exports.

Secrets live in the access_credentials table as bcrypt hashes and are
verified server-side; nothing comparable ever ships to the client.

SECURITY NOTES:
- bcrypt with configurable cost (BCRYPT_ROUNDS, default 12)
- PIN: 4-8 digits
- Admin password: min 8 chars with upper, lower, digit and special char
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import AccessCredential
from ..models.auth import ROLE_ADMIN, ROLE_OPERATOR


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class PinValidationError(Exception):
    """Raised when a PIN is not 4-8 digits."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def validate_pin(pin: str) -> None:
    if not re.fullmatch(r"\d{4,8}", pin or ""):
        raise PinValidationError("PIN must be 4-8 digits")


def _hash_secret(secret: str) -> str:
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secret.encode('utf-8'), salt).decode('utf-8')


def verify_secret(secret: str, secret_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(secret.encode('utf-8'), secret_hash.encode('utf-8'))
    except ValueError:
        return False


def _upsert_credential(role: str, secret_hash: str, username: str | None = None) -> AccessCredential:
    credential = db.session.query(AccessCredential).filter_by(role=role).first()
    if credential is None:
        credential = AccessCredential(role=role)
        db.session.add(credential)
    credential.username = username
    credential.secret_hash = secret_hash
    db.session.commit()
    return credential


def set_operator_pin(pin: str) -> AccessCredential:
    """Create or replace the billing PIN."""
    validate_pin(pin)
    return _upsert_credential(ROLE_OPERATOR, _hash_secret(pin))


def set_admin_credentials(username: str, password: str) -> AccessCredential:
    """Create or replace the admin username/password pair."""
    username = (username or "").strip()
    if not username:
        raise ValueError("username is required")
    validate_password_strength(password)
    return _upsert_credential(ROLE_ADMIN, _hash_secret(password), username=username)


def has_credential(role: str) -> bool:
    return db.session.query(AccessCredential).filter_by(role=role).first() is not None


def verify_operator_pin(pin: str) -> bool:
    credential = db.session.query(AccessCredential).filter_by(role=ROLE_OPERATOR).first()
    if credential is None or not pin:
        return False
    return verify_secret(pin, credential.secret_hash)


def verify_admin(username: str, password: str) -> bool:
    credential = db.session.query(AccessCredential).filter_by(role=ROLE_ADMIN).first()
    if credential is None or not username or not password:
        return False
    # Always run bcrypt so a wrong username costs the same as a wrong password
    password_ok = verify_secret(password, credential.secret_hash)
    return password_ok and username == credential.username
