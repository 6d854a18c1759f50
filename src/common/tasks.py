"""Common tasks."""

import structlog
from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives

from common.models import EmailLog

logger = structlog.get_logger(__name__)


@shared_task
def send_email(*, to: str | list[str], subject: str, body: str, html_body: str | None = None) -> None:
    """Send an email and keep a compressed copy in the email log.

    Args:
        to (str | list[str]): The recipient address or addresses.
        subject (str): The email subject.
        body (str): The plain text body.
        html_body (str | None): The HTML body.

    Returns:
        None
    """
    recipients = [to] if isinstance(to, str) else to
    recipients = [to_safe_email_address(email) for email in recipients]
    email_msg = EmailMultiAlternatives(
        subject=subject,
        body=body,
        from_email=settings.DEFAULT_FROM_EMAIL,
        bcc=recipients,
    )
    if html_body:  # pragma: no branch
        email_msg.attach_alternative(html_body, "text/html")
    email_msg.send(fail_silently=False)
    email_logs: list[EmailLog] = []
    for recipient in recipients:
        el = EmailLog(to=recipient, subject=subject)
        el.set_body(body=body)
        if html_body:  # pragma: no branch
            el.set_html(html_body=html_body)
        email_logs.append(el)
    EmailLog.objects.bulk_create(email_logs)
    logger.info("email_sent", recipients=len(recipients), subject=subject)


def to_safe_email_address(email: str) -> str:
    """Convert an email address to a safe format for sending.

    When live emails are disabled the address is rewritten to a plus-address of
    the internal catch-all mailbox, e.g. ``jane@x.org`` becomes
    ``internal+jane_at_x_dot_org@example.com``.

    Args:
        email (str): The email address.

    Returns:
        str: The safe email address.
    """
    if settings.LIVE_EMAILS:
        return email
    safe_email = email.replace("@", "_at_").replace(".", "_dot_")
    user, domain = settings.INTERNAL_CATCHALL_EMAIL.split("@", 1)
    return f"{user}+{safe_email}@{domain}"
