from typing import Protocol


class MailSender(Protocol):
    """Protocol for outbound email delivery."""
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver a plain-text email. Raises DeliveryError on failure."""
        ...
