"""Request signing and stored-secret helpers for partner logins."""
from __future__ import annotations

import hashlib

from cryptography.fernet import Fernet, InvalidToken

from affiliate_orders import config
from affiliate_orders.exceptions import AuthenticationFailure


def generate_sign(data: str, key: str | None = None) -> str:
    """MD5 hex digest of ``data`` followed by the signing key."""
    sign_key = config.LH_SIGN_KEY if key is None else key
    return hashlib.md5(f"{data}{sign_key}".encode("utf-8")).hexdigest()


def decrypt_password(stored: str | None, key: str | None = None) -> str:
    """Decrypt a Fernet-encrypted account password.

    With no encryption key configured the stored value is taken as plain text.
    """
    if not stored:
        raise AuthenticationFailure("Account has no login password configured")
    fernet_key = config.ACCOUNT_ENCRYPTION_KEY if key is None else key
    if not fernet_key:
        return stored
    try:
        return Fernet(fernet_key.encode("utf-8")).decrypt(stored.encode("utf-8")).decode("utf-8")
    except (InvalidToken, ValueError) as exc:
        raise AuthenticationFailure("Stored account password could not be decrypted", details={"error": str(exc)}) from exc


def encrypt_password(plain: str, key: str) -> str:
    return Fernet(key.encode("utf-8")).encrypt(plain.encode("utf-8")).decode("utf-8")


__all__ = ["generate_sign", "decrypt_password", "encrypt_password"]
