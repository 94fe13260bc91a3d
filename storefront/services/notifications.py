"""
Fire-and-log wrapper for transactional emails
"""
import logging
import smtplib
from typing import Callable

logger = logging.getLogger(__name__)


def notify(send: Callable[..., bool], *args) -> bool:
    """
    Call a Mailer method, logging SMTP failures instead of failing the request

    Returns:
        True if the email went out
    """
    try:
        return bool(send(*args))
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Email {getattr(send, '__name__', send)} failed: {e}")
        return False
