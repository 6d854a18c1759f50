"""Door check-in, manual ticket issuance and attendee listings."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

import orjson
import structlog
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from registrations import schema
from registrations.models import Attendee, TicketForm
from registrations.tasks import dispatch, send_registration_notifications

from .referral_service import summary_seats
from .registration_service import build_qr_payload, generate_invoice_id

logger = structlog.get_logger(__name__)


class CheckInStatus(StrEnum):
    SUCCESS = "success"
    ALREADY_CHECKED_IN = "already_checked_in"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CheckInResult:
    status: CheckInStatus
    attendee: Attendee | None = None


def _attendee_id_from_payload(qr_payload: str) -> UUID | None:
    try:
        data = orjson.loads(qr_payload)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, dict) or not data.get("id"):
        return None
    try:
        return UUID(str(data["id"]))
    except ValueError:
        return None


@transaction.atomic
def check_in(form: TicketForm, qr_payload: str) -> CheckInResult:
    """Check an attendee in by the content of their QR code.

    A second scan of the same ticket reports ``already_checked_in`` and keeps
    the first check-in time.
    """
    attendee_id = _attendee_id_from_payload(qr_payload)
    if attendee_id is None:
        return CheckInResult(status=CheckInStatus.NOT_FOUND)
    attendee = Attendee.objects.select_for_update().filter(pk=attendee_id, form=form).first()
    if attendee is None:
        return CheckInResult(status=CheckInStatus.NOT_FOUND)
    if attendee.checked_in_at is not None:
        return CheckInResult(status=CheckInStatus.ALREADY_CHECKED_IN, attendee=attendee)
    attendee.checked_in_at = timezone.now()
    attendee.save(update_fields=["checked_in_at", "updated_at"])
    logger.info("attendee_checked_in", attendee_id=str(attendee.id), form_id=str(form.id))
    return CheckInResult(status=CheckInStatus.SUCCESS, attendee=attendee)


@transaction.atomic
def issue_manual_ticket(form: TicketForm, payload: schema.ManualTicketSchema) -> Attendee:
    """Create a primary attendee by hand, e.g. for comps or payments taken at the door."""
    invoice_id = generate_invoice_id()
    attendee = Attendee(
        form=form,
        name=payload.name,
        email=str(payload.email),
        ticket_type_summary=payload.ticket_type_summary,
        payment_status=payload.payment_status,
        amount_paid=payload.amount_paid,
        invoice_id=invoice_id,
        is_primary=True,
    )
    attendee.total_seats = max(1, summary_seats(attendee))
    attendee.qr_payload = build_qr_payload(attendee.id, invoice_id, form.id)
    attendee.save()
    logger.info("manual_ticket_issued", attendee_id=str(attendee.id), form_id=str(form.id))
    if payload.send_email:
        attendee_id = str(attendee.id)
        transaction.on_commit(lambda: dispatch(send_registration_notifications, attendee_id))
    return attendee


def list_attendees(form: TicketForm, filters: schema.AttendeeFilterSchema) -> QuerySet[Attendee]:
    qs = Attendee.objects.filter(form=form)
    if not filters.include_test:
        qs = qs.filter(is_test=False)
    if filters.checked_in is not None:
        qs = qs.filter(checked_in_at__isnull=not filters.checked_in)
    if filters.search:
        qs = qs.filter(
            Q(name__icontains=filters.search)
            | Q(email__icontains=filters.search)
            | Q(invoice_id__icontains=filters.search)
        )
    return qs.order_by("registered_at", "created_at")


def attendee_summary(form: TicketForm) -> schema.AttendeeSummarySchema:
    attendees = list(
        Attendee.objects.live().filter(form=form).only("name", "is_primary", "checked_in_at", "registered_at")
    )
    return schema.AttendeeSummarySchema(
        total=len(attendees),
        checked_in=sum(1 for a in attendees if a.checked_in_at is not None),
        primaries=sum(1 for a in attendees if a.is_primary),
        placeholders=sum(1 for a in attendees if a.is_placeholder),
        last_registration=max((a.registered_at for a in attendees), default=None),
    )
