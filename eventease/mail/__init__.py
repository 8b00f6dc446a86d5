from __future__ import annotations

from eventease.mail.base import Mailer, OutgoingEmail
from eventease.mail.log import LogMailer


def create_mailer(*args, **kwargs):
    from eventease.mail.factory import create_mailer as _create_mailer

    return _create_mailer(*args, **kwargs)


def get_mailer():
    from eventease.mail.factory import get_mailer as _get_mailer

    return _get_mailer()


__all__ = ["Mailer", "OutgoingEmail", "LogMailer", "create_mailer", "get_mailer"]
