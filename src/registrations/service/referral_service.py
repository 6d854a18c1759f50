"""Guest self-registration through a purchaser's shared link.

A link carries one attendee id (``?ref=<id>``). It may name the purchaser
directly or one of the placeholder tickets the purchase created. Either way it
leads to the purchaser's primary record in at most one hop.
"""

import typing as t
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse
from uuid import UUID

import structlog
from django.db import transaction

from registrations import schema
from registrations.engine import GuestSlot, parse_ticket_summary
from registrations.engine.seats import seats_for_summary
from registrations.exceptions import BrokenReferral, InvalidReferral, TableFull
from registrations.models import Attendee, TicketForm
from registrations.tasks import dispatch, send_guest_confirmation

from .registration_service import RegistrationService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PrimaryTarget:
    """The link names the purchaser (or a guest who already has a name)."""

    primary: Attendee


@dataclass(frozen=True)
class PlaceholderTarget:
    """The link names an unclaimed placeholder ticket of the purchaser."""

    placeholder: Attendee
    primary: Attendee


RefTarget = PrimaryTarget | PlaceholderTarget


@dataclass(frozen=True)
class ReferralStatus:
    target: RefTarget
    total_seats: int
    filled_seats: int

    @property
    def primary(self) -> Attendee:
        return self.target.primary

    @property
    def remaining_seats(self) -> int:
        return self.total_seats - self.filled_seats

    @property
    def is_full(self) -> bool:
        return self.remaining_seats <= 0

    @property
    def via_placeholder(self) -> bool:
        return isinstance(self.target, PlaceholderTarget)


def parse_referral_token(token: str) -> UUID:
    """Extract the attendee id from a bare id or a ``...?ref=<id>`` link.

    Raises:
        InvalidReferral: when no id can be read.
    """
    raw = token.strip()
    if "ref=" in raw:
        values = parse_qs(urlparse(raw).query).get("ref") or parse_qs(raw.split("?", 1)[-1]).get("ref")
        raw = values[0] if values else ""
    try:
        return UUID(raw)
    except ValueError as e:
        raise InvalidReferral("Malformed referral token.") from e


def resolve_ref_target(form: TicketForm, token: str, *, lock: bool = False) -> RefTarget:
    """Find the primary behind a referral token.

    Args:
        form: The form the guest is registering for.
        token: The referral id or link.
        lock: Take a row lock on the primary for the rest of the transaction.

    Raises:
        InvalidReferral: unknown attendee, or a primary of another form.
        BrokenReferral: a guest pointing at another guest.
    """
    attendee_id = parse_referral_token(token)
    attendee = Attendee.objects.select_related("primary_attendee").filter(pk=attendee_id).first()
    if attendee is None:
        raise InvalidReferral("Referral does not match any registration.")

    if attendee.is_primary:
        primary = attendee
    else:
        primary = attendee.primary_attendee  # type: ignore[assignment]
        if primary is None or not primary.is_primary:
            raise BrokenReferral("Referral points at a guest that is not linked to a purchaser.")

    if primary.form_id != form.id:
        raise InvalidReferral("Referral belongs to a different form.")

    if lock:
        primary = Attendee.objects.select_for_update().get(pk=primary.pk)

    if not attendee.is_primary and attendee.is_placeholder:
        return PlaceholderTarget(placeholder=attendee, primary=primary)
    return PrimaryTarget(primary=primary)


def summary_seats(primary: Attendee) -> int:
    """Seats described by the primary's ticket summary, matched to the form's current items."""
    return seats_for_summary(parse_ticket_summary(primary.ticket_type_summary), primary.form.ticket_items.all())


def seat_capacity(primary: Attendee) -> int:
    """Seats the purchase holds after donation, floor one."""
    return primary.effective_seats


def filled_seats(primary: Attendee) -> int:
    """The purchaser plus every guest who is no longer a placeholder."""
    guests = Attendee.objects.guests_of(primary).only("name", "is_primary")
    return 1 + sum(1 for guest in guests if not guest.is_placeholder)


def referral_status_for(target: RefTarget) -> ReferralStatus:
    primary = target.primary
    return ReferralStatus(target=target, total_seats=seat_capacity(primary), filled_seats=filled_seats(primary))


def resolve_referral(form: TicketForm, token: str) -> ReferralStatus:
    """Resolve a referral token and report how many seats are still open."""
    return referral_status_for(resolve_ref_target(form, token))


@transaction.atomic
def submit_guest_registration(form: TicketForm, token: str, details: schema.GuestDetailsSchema) -> Attendee:
    """Register a guest through a referral link.

    A placeholder token is claimed in place, keeping its id, QR payload and
    invoice, so a ticket that was already handed out stays valid. A primary
    token adds a new guest row. The primary row stays locked until commit.

    Raises:
        InvalidReferral: the token does not belong to this form.
        BrokenReferral: the placeholder chain is longer than one hop.
        TableFull: every seat of the purchase is already taken.
    """
    target = resolve_ref_target(form, token, lock=True)
    status = referral_status_for(target)
    if status.is_full:
        logger.info("referral_rejected_full", primary_id=str(status.primary.id), total_seats=status.total_seats)
        raise TableFull("All seats of this registration are already taken.")

    slot = GuestSlot(name=details.name, email=str(details.email), dietary=details.dietary)
    guest = _claim_placeholder(target, slot, details.answers) if isinstance(target, PlaceholderTarget) else None
    if guest is None:
        next_index = Attendee.objects.guests_of(target.primary).count() + 1
        guest = RegistrationService(form).create_guest(target.primary, slot, next_index, answers=details.answers)

    logger.info(
        "referral_guest_registered",
        primary_id=str(target.primary.id),
        attendee_id=str(guest.id),
        via_placeholder=status.via_placeholder,
        remaining_seats=status.remaining_seats - 1,
    )
    guest_id = str(guest.id)
    transaction.on_commit(lambda: dispatch(send_guest_confirmation, guest_id))
    return guest


def _claim_placeholder(target: PlaceholderTarget, slot: GuestSlot, answers: dict[str, t.Any]) -> Attendee | None:
    """Fill a placeholder in place. ``None`` if it was claimed by someone else first."""
    placeholder = Attendee.objects.select_for_update().get(pk=target.placeholder.pk)
    if not placeholder.is_placeholder:
        return None
    placeholder.name = slot.name.strip()
    placeholder.email = slot.email.strip()
    placeholder.dietary_preference = slot.dietary_preference
    placeholder.answers = answers
    placeholder.save(update_fields=["name", "email", "dietary_preference", "answers", "updated_at"])
    return placeholder
