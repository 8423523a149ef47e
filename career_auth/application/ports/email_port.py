from __future__ import annotations

from typing import Protocol


class EmailPort(Protocol):
    def send_verification_email(self, *, to: str, name: str, verify_url: str) -> None:
        ...

    def send_password_reset_email(self, *, to: str, name: str, reset_url: str) -> None:
        ...
