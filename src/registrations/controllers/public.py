from uuid import UUID

from django.shortcuts import get_object_or_404
from django.utils.translation import gettext_lazy as _
from ninja.errors import HttpError
from ninja_extra import api_controller, route

from common.controllers import UserAwareController
from common.schema import ValidationErrorResponse
from common.throttling import AnonDefaultThrottle, RegistrationThrottle
from registrations import engine, schema
from registrations.models import Attendee, TicketForm
from registrations.service import referral_service
from registrations.service.form_service import promo_specs
from registrations.service.registration_service import RegistrationService


@api_controller("/forms/{form_id}", tags=["Registration"], throttle=AnonDefaultThrottle())
class PublicRegistrationController(UserAwareController):
    """Public registration flow: pricing, seat preview, checkout and guest referrals."""

    def get_form(self, form_id: UUID) -> TicketForm:
        return get_object_or_404(TicketForm.objects.public(), pk=form_id)

    def get_open_form(self, form_id: UUID) -> TicketForm:
        form = get_object_or_404(TicketForm.objects.exclude(status=TicketForm.Status.DRAFT), pk=form_id)
        if form.status == TicketForm.Status.CLOSED:
            raise HttpError(400, str(_("Registration for this event is closed.")))
        return form

    @route.get("", url_name="get_public_form", response=schema.PublicTicketFormSchema)
    def get_public_form(self, form_id: UUID) -> TicketForm:
        """Retrieve a form with its fields and ticket items for rendering the registration page."""
        return self.get_form(form_id)

    @route.post("/quote", url_name="quote_cart", response=schema.CartPriceSchema)
    def quote_cart(self, form_id: UUID, payload: schema.CartSchema) -> schema.CartPriceSchema:
        """Price a cart. An unknown promo code answers 404 and nothing is applied."""
        form = self.get_form(form_id)
        cart = RegistrationService(form).build_cart(payload)
        return _price_response(form, cart)

    @route.post("/promo", url_name="apply_promo", response=schema.CartPriceSchema)
    def apply_promo(self, form_id: UUID, payload: schema.PromoApplySchema) -> schema.CartPriceSchema:
        """Apply a promo code to a cart, replacing any code applied before."""
        form = self.get_form(form_id)
        cart = RegistrationService(form).build_cart(payload.model_copy(update={"promo_code": None}))
        return _price_response(form, engine.apply_promo(cart, payload.code, promo_specs(form)))

    @route.post("/seats", url_name="preview_seats", response=schema.SeatPreviewSchema)
    def preview_seats(self, form_id: UUID, payload: schema.SeatPreviewRequestSchema) -> schema.SeatPreviewSchema:
        """Resize the guest slots to the cart.

        Slots are kept by position. Slot 0 mirrors the purchaser's name and email
        while it is flagged ``is_purchaser``.
        """
        form = self.get_form(form_id)
        cart, slots, total_seats, donated = RegistrationService(form).preview_slots(payload)
        has_tables = engine.has_table_items(cart)
        return schema.SeatPreviewSchema(
            total_seats=total_seats,
            donated_seats=donated,
            effective_guest_slots=engine.apply_donation(total_seats, donated),
            donation_offered=form.enable_donations and has_tables,
            guest_slots=[schema.GuestSlotSchema.from_slot(slot) for slot in slots] if has_tables else [],
        )

    @route.post(
        "/register",
        url_name="register",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
        throttle=RegistrationThrottle(),
    )
    def register(self, form_id: UUID, payload: schema.RegistrationSchema) -> schema.RegistrationResultSchema:
        """Finalize a registration.

        Creates the purchaser's ticket and, for table purchases, one ticket per
        remaining seat: named when guest details were given, a placeholder
        otherwise. Placeholders are claimed later through the referral link.
        """
        form = self.get_open_form(form_id)
        result = RegistrationService(form).finalize(payload.model_copy(update={"is_test": False}))
        return _registration_response(form, result.primary, result.guests)

    @route.get("/referral", url_name="referral_status", response=schema.ReferralStatusSchema)
    def referral_status(self, form_id: UUID, ref: str) -> schema.ReferralStatusSchema:
        """Show whose table a referral link belongs to and how many seats are still free."""
        form = self.get_form(form_id)
        return _referral_response(referral_service.resolve_referral(form, ref))

    @route.post(
        "/referral",
        url_name="referral_register",
        response=schema.AttendeeSchema,
        throttle=RegistrationThrottle(),
    )
    def referral_register(self, form_id: UUID, ref: str, payload: schema.GuestDetailsSchema) -> Attendee:
        """Register as a guest on someone else's purchase."""
        form = self.get_open_form(form_id)
        return referral_service.submit_guest_registration(form, ref, payload)


def _price_response(form: TicketForm, cart: engine.Cart) -> schema.CartPriceSchema:
    price = engine.price_cart(cart)
    return schema.CartPriceSchema(
        subtotal=price.subtotal,
        discount=price.discount,
        total=price.total,
        promo_code=cart.promo.code if cart.promo else None,
        currency=form.currency,
    )


def _registration_response(
    form: TicketForm, primary: Attendee, guests: list[Attendee]
) -> schema.RegistrationResultSchema:
    return schema.RegistrationResultSchema(
        primary=schema.AttendeeSchema.from_orm(primary),
        guests=[schema.AttendeeSchema.from_orm(guest) for guest in guests],
        referral_link=form.get_referral_link(primary.pk) if guests else None,
    )


def _referral_response(status: referral_service.ReferralStatus) -> schema.ReferralStatusSchema:
    return schema.ReferralStatusSchema(
        primary_id=status.primary.id,
        primary_name=status.primary.name,
        invoice_id=status.primary.invoice_id,
        total_seats=status.total_seats,
        filled_seats=status.filled_seats,
        remaining_seats=max(0, status.remaining_seats),
        is_full=status.is_full,
        via_placeholder=status.via_placeholder,
    )
