from __future__ import annotations

from functools import lru_cache

from eventease.core.config import settings
from eventease.mail.base import Mailer
from eventease.mail.log import LogMailer
from eventease.mail.smtp import SmtpMailer


def create_mailer(backend: str | None = None) -> Mailer:
    selected_backend = (backend or settings.mail_backend).strip().lower()
    if selected_backend == "log":
        return LogMailer()
    if selected_backend == "smtp":
        return SmtpMailer(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.mail_from,
            sender_name=settings.mail_from_name,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    raise ValueError(f"unsupported mail backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_mailer() -> Mailer:
    return create_mailer()
