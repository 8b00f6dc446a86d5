from __future__ import annotations

import asyncio
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib
import structlog

from eventease.mail.base import Mailer

logger = structlog.get_logger(__name__)


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        sender_name: str | None = None,
        username: str | None = None,
        password: str | None = None,
        start_tls: bool = True,
        timeout: float = 20,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._sender_name = sender_name
        self._username = username
        self._password = password
        self._start_tls = start_tls
        self._timeout = timeout

    def _build(self, to: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self._sender_name, self._sender)) if self._sender_name else self._sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    async def _send(self, message: EmailMessage) -> None:
        await aiosmtplib.send(
            message,
            hostname=self._host,
            port=self._port,
            start_tls=self._start_tls,
            username=self._username,
            password=self._password,
            timeout=self._timeout,
        )

    def send(self, to: str, subject: str, html_body: str) -> bool:
        # Called from sync request handlers and worker threads, never from a running loop.
        try:
            asyncio.run(self._send(self._build(to, subject, html_body)))
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("smtp_send_failed", to=to, subject=subject, error=str(exc))
            return False
        return True
