"""Turning a submitted cart into a primary attendee and its guest tickets."""

import secrets
import typing as t
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

import orjson
import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction

from registrations import engine, schema
from registrations.engine import Cart, CartPrice, DonationChoice, DonationKind, GuestSlot
from registrations.exceptions import RegistrationValidationError
from registrations.models import NAME_MAX_LENGTH, PLACEHOLDER_NAME_TEMPLATE, Attendee, TicketForm
from registrations.tasks import dispatch, send_registration_notifications

from . import form_service

logger = structlog.get_logger(__name__)


def generate_invoice_id() -> str:
    """A fresh ``INV-######`` id not yet used by another purchase."""
    while True:
        invoice_id = f"INV-{secrets.randbelow(1_000_000):06d}"
        if not Attendee.objects.primaries().filter(invoice_id=invoice_id).exists():
            return invoice_id


def build_qr_payload(attendee_id: UUID, invoice_id: str, form_id: UUID) -> str:
    """The check-in token printed as a QR code. Issued once per attendee."""
    return orjson.dumps(
        {"id": str(attendee_id), "invoiceId": invoice_id, "formId": str(form_id), "action": "checkin"}
    ).decode()


def payment_status_for(total: Decimal, payment: schema.PaymentResultSchema | None) -> Attendee.PaymentStatus:
    if total <= 0:
        return Attendee.PaymentStatus.FREE
    if payment is not None and payment.succeeded:
        return Attendee.PaymentStatus.PAID
    return Attendee.PaymentStatus.PENDING


def placeholder_name(purchaser_name: str, slot_index: int) -> str:
    return PLACEHOLDER_NAME_TEMPLATE.format(purchaser=purchaser_name, number=slot_index + 1)


@dataclass(frozen=True)
class PreparedRegistration:
    """Everything finalize needs, computed and validated before any write."""

    cart: Cart
    price: CartPrice
    purchaser_name: str
    purchaser_email: str
    total_seats: int
    donated_seats: int
    effective_slots: int
    has_tables: bool
    guest_slots: list[GuestSlot] = field(default_factory=list)


@dataclass(frozen=True)
class RegistrationResult:
    primary: Attendee
    guests: list[Attendee]


class RegistrationService:
    """Validate and persist public registrations for one form."""

    def __init__(self, form: TicketForm) -> None:
        """Load the form's fields once; carts are built per request."""
        self.form = form
        self.fields = form_service.field_specs(form)

    def build_cart(self, payload: schema.CartSchema) -> Cart:
        """Raises PromoNotFound for an unknown code."""
        return form_service.build_cart(self.form, payload.quantities, payload.promo_code)

    def donation_choice(self, donation: schema.DonationSchema) -> DonationChoice:
        """The submitted donation, or none when the form does not offer donations."""
        choice = donation.to_choice()
        if choice.kind != DonationKind.NONE and not self.form.enable_donations:
            return DonationChoice.none()
        return choice

    def slot_errors(self, purchaser_name: str, slots: list[GuestSlot], effective: int) -> dict[str, str]:
        """Errors for guest rows that could not be saved as submitted.

        Covers guest emails on named slots and purchaser names too long to
        build placeholder guest names from.
        """
        errors: dict[str, str] = {}
        if effective > 1 and len(placeholder_name(purchaser_name, effective - 1)) > NAME_MAX_LENGTH:
            errors["name"] = "Your name is too long."
        if not self.form.collect_guest_details:
            return errors
        for index, slot in enumerate(slots[1:effective], start=1):
            if not slot.is_complete:
                continue
            if len(slot.name.strip()) > NAME_MAX_LENGTH:
                errors[f"guest_slots.{index}"] = "Guest name is too long."
                continue
            try:
                validate_email(slot.email.strip())
            except DjangoValidationError:
                errors[f"guest_slots.{index}"] = "Please enter a valid email address."
        return errors

    def preview_slots(self, payload: schema.SeatPreviewRequestSchema) -> tuple[Cart, list[GuestSlot], int, int]:
        """Resize the caller's guest slots to the cart and mirror the purchaser into slot 0.

        Returns:
            The cart, the synced slots, total seats and donated seats.
        """
        cart = self.build_cart(payload)
        total_seats = engine.expand_seats(cart)
        donated = 0
        if engine.has_table_items(cart):
            donated = engine.validate_donation(cart, self.donation_choice(payload.donation))
        effective = engine.apply_donation(total_seats, donated)
        slots = engine.sync_guest_slots([s.to_slot() for s in payload.guest_slots], effective)
        if payload.detach_purchaser:
            slots = engine.detach_purchaser_slot(slots)
        slots = engine.sync_purchaser_slot(slots, self.fields, payload.answers)
        return cart, slots, total_seats, donated

    def prepare(self, payload: schema.RegistrationSchema) -> PreparedRegistration:
        """Validate a submission without touching the database.

        Raises:
            RegistrationValidationError: missing answers, tickets or purchaser identity,
                or guest rows that cannot be saved.
            PromoNotFound: unknown promo code.
            DonationNotOffered: donation chosen without a table in the cart.
            InvalidDonation: the donation exceeds what was bought.
        """
        cart = Cart(items=form_service.ticket_item_specs(self.form), quantities=dict(payload.quantities))
        errors = engine.missing_answers(self.fields, payload.answers)
        errors.update(engine.quantity_errors(cart, self.form.ticket_required))
        name, email = engine.purchaser_identity(self.fields, payload.answers)
        if not name:
            errors.setdefault("name", "Please enter your name.")
        elif len(name) > NAME_MAX_LENGTH:
            errors.setdefault("name", "Your name is too long.")
        if not email:
            errors.setdefault("email", "Please enter your email address.")
        else:
            try:
                validate_email(email)
            except DjangoValidationError:
                errors.setdefault("email", "Please enter a valid email address.")
        if errors:
            raise RegistrationValidationError(errors)

        if payload.promo_code:
            cart = engine.apply_promo(cart, payload.promo_code, form_service.promo_specs(self.form))

        has_tables = engine.has_table_items(cart)
        donated = engine.validate_donation(cart, self.donation_choice(payload.donation))
        total_seats = engine.expand_seats(cart)
        effective = engine.apply_donation(total_seats, donated)

        slots = engine.sync_guest_slots([s.to_slot() for s in payload.guest_slots], effective)
        slots = engine.sync_purchaser_slot(slots, self.fields, payload.answers)
        if has_tables:
            errors = self.slot_errors(name, slots, effective)
            if errors:
                raise RegistrationValidationError(errors)
        return PreparedRegistration(
            cart=cart,
            price=engine.price_cart(cart),
            purchaser_name=name,
            purchaser_email=email,
            total_seats=total_seats,
            donated_seats=donated,
            effective_slots=effective,
            has_tables=has_tables,
            guest_slots=slots,
        )

    @transaction.atomic
    def finalize(
        self, payload: schema.RegistrationSchema, payment: schema.PaymentResultSchema | None = None
    ) -> RegistrationResult:
        """Create the primary attendee and, for table purchases, one guest per remaining seat.

        All rows are written in one transaction. Notifications are queued after
        commit and never affect the outcome.
        The payment result is only taken from the trusted caller; submissions
        never carry one, so public orders with a price stay pending.
        """
        prepared = self.prepare(payload)
        invoice_id = generate_invoice_id()
        choice = self.donation_choice(payload.donation) if prepared.donated_seats else DonationChoice.none()

        primary = Attendee(
            form=self.form,
            name=prepared.purchaser_name,
            email=prepared.purchaser_email,
            ticket_type_summary=engine.ticket_type_summary(prepared.cart),
            payment_status=payment_status_for(prepared.price.total, payment),
            amount_paid=payment.amount if payment is not None and payment.succeeded else Decimal("0"),
            transaction_id=payment.transaction_id if payment is not None else "",
            invoice_id=invoice_id,
            is_primary=True,
            total_seats=prepared.total_seats,
            donation_type=choice.kind.value,
            donated_seats=prepared.donated_seats,
            donated_tables=choice.count if choice.kind == DonationKind.WHOLE_TABLES else 0,
            dietary_preference=payload.dietary_preference,
            answers=payload.answers,
            is_test=payload.is_test,
        )
        primary.qr_payload = build_qr_payload(primary.id, invoice_id, self.form.id)
        primary.save()

        guests = self._create_guests(primary, prepared) if prepared.has_tables else []

        logger.info(
            "registration_finalized",
            form_id=str(self.form.id),
            attendee_id=str(primary.id),
            invoice_id=invoice_id,
            total_seats=prepared.total_seats,
            donated_seats=prepared.donated_seats,
            guests=len(guests),
            payment_status=primary.payment_status,
            is_test=payload.is_test,
        )
        primary_id = str(primary.id)
        transaction.on_commit(lambda: dispatch(send_registration_notifications, primary_id))
        return RegistrationResult(primary=primary, guests=guests)

    def _create_guests(self, primary: Attendee, prepared: PreparedRegistration) -> list[Attendee]:
        guests: list[Attendee] = []
        for index in range(1, prepared.effective_slots):
            slot = GuestSlot()
            if self.form.collect_guest_details and index < len(prepared.guest_slots):
                slot = prepared.guest_slots[index]
            guests.append(self.create_guest(primary, slot, index))
        return guests

    def create_guest(
        self, primary: Attendee, slot: GuestSlot, index: int, answers: dict[str, t.Any] | None = None
    ) -> Attendee:
        """A guest row: named when the slot has a name and email, otherwise a placeholder."""
        if slot.is_complete:
            name, email = slot.name.strip(), slot.email.strip()
        else:
            name, email = placeholder_name(primary.name, index), primary.email
        guest = Attendee(
            form=primary.form,
            name=name,
            email=email,
            ticket_type_summary=primary.ticket_type_summary,
            payment_status=primary.payment_status,
            invoice_id=primary.invoice_id,
            is_primary=False,
            primary_attendee=primary,
            dietary_preference=slot.dietary_preference if slot.is_complete else "",
            answers=answers or {},
            is_test=primary.is_test,
        )
        guest.qr_payload = build_qr_payload(guest.id, primary.invoice_id, primary.form_id)
        guest.save()
        return guest


def finalize_registration(
    form: TicketForm, payload: schema.RegistrationSchema, payment: schema.PaymentResultSchema | None = None
) -> RegistrationResult:
    """Shortcut for ``RegistrationService(form).finalize(payload, payment)``."""
    return RegistrationService(form).finalize(payload, payment)
