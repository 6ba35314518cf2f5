"""In-memory MailSender for testing."""

from dataclasses import dataclass

from domain.model.errors import DeliveryError


@dataclass(frozen=True)
class SentMail:
    to: str
    subject: str
    body: str


class FakeMailSender:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.outbox: list[SentMail] = []

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryError("Fake mail delivery failure")
        self.outbox.append(SentMail(to=to, subject=subject, body=body))
