"""Celery tasks delivering registration emails.

Delivery problems are logged and swallowed here: a registration is complete
whether or not its confirmation mail went out.
"""

import smtplib
import typing as t

import structlog
from celery import shared_task
from kombu.exceptions import OperationalError

from common.tasks import send_email

from .exceptions import NotificationDeliveryError
from .models import Attendee, TicketForm
from .service import email_service

logger = structlog.get_logger(__name__)


def _deliver(form: TicketForm, recipient: Attendee, tickets: t.Sequence[Attendee], referral_link: str | None) -> None:
    subject, text, html = email_service.render_ticket_email(form, recipient, tickets, referral_link=referral_link)
    try:
        send_email(to=recipient.email, subject=subject, body=text, html_body=html)
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationDeliveryError(f"Could not deliver ticket email to attendee {recipient.id}") from e


def guest_recipients(primary: Attendee, guests: t.Iterable[Attendee]) -> list[Attendee]:
    """Named guests that get their own email: not placeholders, not sharing the purchaser's address."""
    purchaser_email = primary.email.casefold()
    return [guest for guest in guests if not guest.is_placeholder and guest.email.casefold() != purchaser_email]


@shared_task
def send_registration_notifications(primary_id: str) -> None:
    """Mail the purchaser all tickets of the purchase, and each named guest their own ticket."""
    primary = Attendee.objects.select_related("form").get(pk=primary_id)
    form = primary.form
    guests = list(Attendee.objects.guests_of(primary))
    referral_link = form.get_referral_link(primary.id) if guests else None

    try:
        _deliver(form, primary, [primary, *guests], referral_link)
    except NotificationDeliveryError:
        logger.exception("registration_notification_failed", attendee_id=primary_id, recipient="purchaser")

    for guest in guest_recipients(primary, guests):
        try:
            _deliver(form, guest, [guest], None)
        except NotificationDeliveryError:
            logger.exception("registration_notification_failed", attendee_id=str(guest.id), recipient="guest")

    logger.info("registration_notifications_sent", attendee_id=primary_id, guests=len(guests))


@shared_task
def send_guest_confirmation(guest_id: str) -> None:
    """Mail a guest who registered through a referral link."""
    guest = Attendee.objects.select_related("form").get(pk=guest_id)
    try:
        _deliver(guest.form, guest, [guest], None)
    except NotificationDeliveryError:
        logger.exception("guest_confirmation_failed", attendee_id=guest_id)


@shared_task
def send_invitation(form_id: str, emails: list[str]) -> None:
    """Invite people to register for a form."""
    form = TicketForm.objects.get(pk=form_id)
    subject, text, html = email_service.render_invitation_email(form)
    for email in emails:
        try:
            send_email(to=email, subject=subject, body=text, html_body=html)
        except (smtplib.SMTPException, OSError):
            logger.exception("invitation_delivery_failed", form_id=form_id)
    logger.info("invitations_sent", form_id=form_id, count=len(emails))


def dispatch(task: t.Any, *args: t.Any) -> None:
    """Queue a notification task, logging instead of failing when the broker is unavailable."""
    try:
        task.delay(*args)
    except OperationalError:
        logger.exception("notification_dispatch_failed", task=task.name)
