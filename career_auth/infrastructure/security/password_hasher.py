from __future__ import annotations

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from career_auth.application.ports.password_hasher_port import PasswordHasherPort


# first scheme hashes new passwords; the rest only verify older accounts
PASSWORD_SCHEMES = ("argon2", "bcrypt")


class PasslibPasswordHasher(PasswordHasherPort):
    def __init__(self, schemes: tuple[str, ...] = PASSWORD_SCHEMES):
        self._ctx = CryptContext(schemes=list(schemes), deprecated="auto")

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        try:
            return self._ctx.verify(plain_password, password_hash)
        except (UnknownHashError, ValueError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        try:
            return self._ctx.needs_update(password_hash)
        except (UnknownHashError, ValueError):
            return False

    def dummy_verify(self) -> None:
        self._ctx.dummy_verify()
