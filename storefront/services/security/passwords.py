"""Salted password hashing for the storefront and admin gates."""

from __future__ import annotations

import bcrypt

from storefront.config import BCRYPT_MAX_PASSWORD_BYTES, settings


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(
        password.encode("utf-8"), bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    )
    return hashed.decode("utf-8")


def verify_password(password: str | None, stored_hash: str | None) -> bool:
    """Return True when ``password`` matches ``stored_hash``.

    A missing hash never matches, so an unconfigured gate stays closed.
    """
    if not password or not stored_hash:
        return False
    if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        return False
