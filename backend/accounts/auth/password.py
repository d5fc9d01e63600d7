"""Password hashing: protocol, bcrypt (production), and simple SHA-256 (tests).

BcryptHasher is CPU-bound (~100ms per call at the default cost) and runs off
the event loop using anyio.to_thread.run_sync() to avoid blocking under
concurrent requests.

bcrypt only reads the first 72 bytes of its input while accounts accept
passwords up to 255 characters, so the plaintext is first reduced to a
base64-encoded SHA-256 digest (44 bytes) and that digest is what bcrypt sees.

SimpleHasher uses SHA-256 with a "simple$" prefix for instant hashing.
It is intended for tests only.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

from accounts.auth.errors import CorruptPasswordHash

DEFAULT_BCRYPT_ROUNDS = 12


@runtime_checkable
class PasswordHasher(Protocol):
    """Hash and verify passwords.

    ``verify`` returns False for a wrong password and raises
    CorruptPasswordHash when the stored hash itself is malformed.
    """

    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


def _prehash(plain: str) -> bytes:
    return base64.b64encode(hashlib.sha256(plain.encode("utf-8")).digest())


class BcryptHasher:
    """Production hasher using bcrypt (async, off-thread)."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        self._rounds = rounds

    async def hash(self, plain: str) -> str:
        digest = _prehash(plain)
        rounds = self._rounds
        return await to_thread.run_sync(lambda: bcrypt.hashpw(digest, bcrypt.gensalt(rounds)).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        digest = _prehash(plain)
        try:
            encoded_hash = hashed.encode("ascii")
        except UnicodeEncodeError as exc:
            raise CorruptPasswordHash("Stored password hash is not a bcrypt hash") from exc
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(digest, encoded_hash))
        except ValueError as exc:
            raise CorruptPasswordHash("Stored password hash is not a bcrypt hash") from exc


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            raise CorruptPasswordHash("Stored password hash is not a simple hash")
        expected = _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()
        return hashed == expected


def get_hasher(name: str = "bcrypt", *, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS) -> PasswordHasher:
    """Return a PasswordHasher by name ("bcrypt" or "simple")."""
    if name == "bcrypt":
        return BcryptHasher(rounds=bcrypt_rounds)
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
