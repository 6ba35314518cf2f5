"""SMTP implementation of MailSender."""

import logging
import smtplib
from email.message import EmailMessage

from domain.model.errors import DeliveryError
from utils import config

logger = logging.getLogger(__name__)


class SmtpMailSender:
    def __init__(
        self,
        host: str = config.EMAIL_HOST,
        port: int = config.EMAIL_PORT,
        username: str | None = config.EMAIL_USERNAME,
        password: str | None = config.EMAIL_PASSWORD,
        sender: str = config.EMAIL_FROM,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender

    def send(self, to: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message['From'] = self.sender
        message['To'] = to
        message['Subject'] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=config.EMAIL_TIMEOUT_SECONDS) as smtp:
                if self.username and self.password:
                    smtp.starttls()
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email", extra={"to": to, "subject": subject, "error": str(e)})
            raise DeliveryError("Failed to send email") from e

        logger.info("Email sent", extra={"to": to, "subject": subject})
