from __future__ import annotations

import structlog

from eventease.mail.base import Mailer

logger = structlog.get_logger(__name__)


class LogMailer(Mailer):
    """Local-development mailer: records the email in the log instead of sending it."""

    def send(self, to: str, subject: str, html_body: str) -> bool:
        logger.info("email_logged", to=to, subject=subject, body_length=len(html_body))
        return True
