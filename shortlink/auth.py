"""Pluggable admin credential verification.

The admin surface asks a ``CredentialVerifier`` whether a presented password is
valid; which secret it compares against is a deployment choice.

Classes:
    CredentialVerifier:  Protocol used by the login route.
    PlainPasswordVerifier:  Constant-time comparison with a configured secret.
    BcryptPasswordVerifier:  Check against a bcrypt hash.

Functions:
    verifier_from_settings():  Prefer the bcrypt hash when one is configured.
"""

import hmac
from typing import Protocol

import bcrypt

from shortlink.config import Settings

__all__ = ["BcryptPasswordVerifier", "CredentialVerifier", "PlainPasswordVerifier", "verifier_from_settings"]


class CredentialVerifier(Protocol):
    def verify(self, password: str) -> bool: ...


class PlainPasswordVerifier:
    def __init__(self, secret: str):
        self._secret = secret.encode()

    def verify(self, password: str) -> bool:
        return bool(self._secret) and hmac.compare_digest(password.encode(), self._secret)


class BcryptPasswordVerifier:
    def __init__(self, password_hash: str):
        self._hash = password_hash.encode()

    def verify(self, password: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), self._hash)
        except ValueError:
            # malformed hash
            return False


def verifier_from_settings(settings: Settings) -> CredentialVerifier:
    if settings.ADMIN_PASSWORD_BCRYPT:
        return BcryptPasswordVerifier(settings.ADMIN_PASSWORD_BCRYPT)
    return PlainPasswordVerifier(settings.ADMIN_PASSWORD)
