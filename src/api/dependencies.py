from fastapi import HTTPException

from adapter.email.smtp_sender import SmtpMailSender
from adapter.mongodb.connection import get_mongodb_client, DATABASE_NAME
from adapter.mongodb.tour_repository import MongoTourRepository
from adapter.mongodb.user_repository import MongoUserRepository
from port.mail_sender import MailSender
from port.tour_repository import TourRepository
from port.user_repository import UserRepository


def _get_db():
    """Get MongoDB database, raising 503 if unavailable."""
    client = get_mongodb_client()
    if client is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return client[DATABASE_NAME]


def get_tour_repo() -> TourRepository:
    return MongoTourRepository(_get_db())


def get_user_repo() -> UserRepository:
    return MongoUserRepository(_get_db())


def get_mail_sender() -> MailSender:
    return SmtpMailSender()
