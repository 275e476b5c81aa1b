"""
Email Sending
=============

``send_email`` validates the message, hands it to the configured Django
email backend (django-anymail / Resend in production) and retries
transient failures with exponential backoff.

Retry policy:
- Retried: network errors, timeouts, provider responses 429 and 5xx
- Not retried: invalid input, any other 4xx response
- Delay before retry ``n`` (0-based): ``EMAIL_RETRY_BASE_DELAY_SECONDS * 2**n``

Author: DSP Development Team
Date: 2025-09-03
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

import requests
from anymail.exceptions import AnymailError
from anymail.message import AnymailMessage
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email as django_validate_email
from django.utils.html import strip_tags

from core.exceptions import ValidationException

logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 254


@dataclass
class EmailSendResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None
    retries: int = 0
    preview_html: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data = {
            "success": self.success,
            "id": self.id,
            "error": self.error,
            "retries": self.retries,
        }
        if self.preview_html is not None:
            data["preview_html"] = self.preview_html
        return data


def validate_email(email: Optional[str], field: str = "to") -> str:
    """
    Normalize and validate an email address.

    Raises:
        ValidationException: If the address is missing or malformed
    """
    if not email or not isinstance(email, str):
        raise ValidationException(f"{field} email address is required", field=field)
    email = email.strip().lower()
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationException(f"{field} email address is too long", field=field)
    try:
        django_validate_email(email)
    except ValidationError:
        raise ValidationException(f"Invalid {field} email address: {email}", field=field)
    return email


def is_retryable_error(exc: BaseException) -> bool:
    """True for failures that may succeed when tried again."""
    if isinstance(exc, (ConnectionError, TimeoutError, requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, AnymailError):
        status_code = getattr(exc, "status_code", None)
        if status_code is None:
            # No response at all: network level failure
            return True
        return status_code == 429 or 500 <= status_code < 600
    return False


def _backoff_delay(attempt: int) -> float:
    base = getattr(settings, "EMAIL_RETRY_BASE_DELAY_SECONDS", 1.0)
    return base * (2 ** attempt)


def send_email(
    *,
    to: str,
    subject: str,
    html: str,
    text: Optional[str] = None,
    from_email: Optional[str] = None,
    reply_to: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    metadata: Optional[Dict[str, str]] = None,
    max_retries: Optional[int] = None,
) -> EmailSendResult:
    """
    Send one HTML email.

    Never raises: validation problems and delivery failures are reported
    through the returned ``EmailSendResult``.
    """
    try:
        recipient = validate_email(to, "to")
        sender = from_email or settings.DEFAULT_FROM_EMAIL
        if not subject or not subject.strip():
            raise ValidationException("Email subject is required", field="subject")
        if not html:
            raise ValidationException("Email body is required", field="html")
        reply = validate_email(reply_to, "reply_to") if reply_to else None
    except ValidationException as exc:
        logger.warning("Email not sent, invalid input: %s", exc.message)
        return EmailSendResult(success=False, error=exc.message)

    if max_retries is None:
        max_retries = getattr(settings, "EMAIL_MAX_RETRIES", 3)

    attempt = 0
    while True:
        message = AnymailMessage(
            subject=subject.strip(),
            body=text or strip_tags(html),
            from_email=sender,
            to=[recipient],
            reply_to=[reply] if reply else None,
        )
        message.attach_alternative(html, "text/html")
        if tags:
            message.tags = list(tags)
        if metadata:
            message.metadata = {key: str(value) for key, value in metadata.items()}

        try:
            message.send()
        except Exception as exc:
            if attempt < max_retries and is_retryable_error(exc):
                delay = _backoff_delay(attempt)
                logger.warning(
                    "Email to %s failed (attempt %s), retrying in %.1fs: %s",
                    recipient,
                    attempt + 1,
                    delay,
                    exc,
                )
                time.sleep(delay)
                attempt += 1
                continue
            logger.error("Email to %s failed after %s retries: %s", recipient, attempt, exc)
            return EmailSendResult(success=False, error=str(exc), retries=attempt)

        status = getattr(message, "anymail_status", None)
        message_id = getattr(status, "message_id", None)
        logger.info("Email '%s' sent to %s (id=%s)", subject, recipient, message_id)
        return EmailSendResult(success=True, id=message_id, retries=attempt)
