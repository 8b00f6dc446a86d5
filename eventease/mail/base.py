from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html_body: str


class Mailer(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, html_body: str) -> bool:
        """Deliver one HTML email; return whether the transport accepted it.

        Implementations may raise on transport errors; callers treat a raise
        the same as a False return.
        """

    def deliver(self, email: OutgoingEmail) -> bool:
        return self.send(email.to, email.subject, email.html_body)
