"""
Password hashing and opaque token helpers.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    return generate_password_hash(password, method="pbkdf2:sha256")


def verify_password(password_hash: str, password: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def generate_session_token() -> str:
    return secrets.token_urlsafe(48)


def generate_reset_token() -> str:
    """64 hex characters (32 random bytes)."""
    return secrets.token_hex(32)


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(32)


def generate_otp_code(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


def otp_code_matches(code_hash: str, code: str) -> bool:
    return hmac.compare_digest(code_hash, hash_otp_code(code.strip()))
