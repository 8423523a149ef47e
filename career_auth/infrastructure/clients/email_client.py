from __future__ import annotations

import logging

from career_auth.application.ports.email_port import EmailPort


logger = logging.getLogger(__name__)


class LoggingEmailSender(EmailPort):
    """Stands in for real delivery: records the message instead of sending it.

    Links carry single-use tokens, so only the recipient and the link path are
    written to the log.
    """

    def send_verification_email(self, *, to: str, name: str, verify_url: str) -> None:
        logger.info(
            "email_client: verification_email to=%s name=%s path=%s",
            to,
            name,
            verify_url.split("?", 1)[0],
        )

    def send_password_reset_email(self, *, to: str, name: str, reset_url: str) -> None:
        logger.info(
            "email_client: password_reset_email to=%s name=%s path=%s",
            to,
            name,
            reset_url.split("?", 1)[0],
        )
