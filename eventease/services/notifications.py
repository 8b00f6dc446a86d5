from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import structlog

from eventease.core.retry import retry
from eventease.mail.base import Mailer, OutgoingEmail

logger = structlog.get_logger(__name__)


def send_with_retry(mailer: Mailer, email: OutgoingEmail, attempts: int) -> bool:
    return retry(lambda: mailer.deliver(email), attempts, label=f"email:{email.subject}")


def notify_best_effort(mailer: Mailer, email: OutgoingEmail) -> bool:
    """Single attempt; a failure is logged and never propagated."""
    try:
        sent = mailer.deliver(email)
    except Exception:
        logger.exception("notification_failed", to=email.to, subject=email.subject)
        return False
    if not sent:
        logger.warning("notification_not_sent", to=email.to, subject=email.subject)
    return sent


def deliver_all(
    mailer: Mailer,
    emails: Sequence[OutgoingEmail],
    *,
    attempts: int = 1,
    max_workers: int = 8,
) -> list[bool]:
    """Send ``emails`` concurrently with at most ``max_workers`` in flight.

    Results are returned in input order.
    """
    if not emails:
        return []
    if attempts > 1:
        def _send(email: OutgoingEmail) -> bool:
            return send_with_retry(mailer, email, attempts)
    else:
        def _send(email: OutgoingEmail) -> bool:
            return notify_best_effort(mailer, email)

    workers = max(1, min(max_workers, len(emails)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify") as pool:
        return list(pool.map(_send, emails))
