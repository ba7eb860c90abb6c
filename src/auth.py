"""Password hashing for the blog owner account.

Hashes are PBKDF2-HMAC-SHA1 with 1000 iterations and a 32-byte key,
base64-encoded, so existing ``[user]`` entries stay valid.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Callable

from miniblog.config import UserSectionConfig

ITERATIONS = 1000
KEY_LENGTH = 32


def hash_password(password: str, salt: str) -> str:
    derived = hashlib.pbkdf2_hmac(
        "sha1",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        ITERATIONS,
        dklen=KEY_LENGTH,
    )
    return base64.b64encode(derived).decode("ascii")


def verify_password(password: str, hashed: str, salt: str) -> bool:
    if not hashed:
        return False
    return hmac.compare_digest(hash_password(password, salt), hashed)


def credential_checker(user: UserSectionConfig) -> Callable[[str, str], bool]:
    """Build a ``(username, password) -> bool`` check for the configured owner."""

    def check(username: str, password: str) -> bool:
        if username != user.username:
            return False
        return verify_password(password, user.password, user.salt)

    return check
