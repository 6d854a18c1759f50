import typing as t
from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate

from common.authentication import I18nJWTAuth
from common.controllers import UserAwareController
from common.schema import ValidationErrorResponse
from common.throttling import CheckInThrottle, UserDefaultThrottle, WriteThrottle
from registrations import schema
from registrations.models import Attendee, FormField, PromoCode, TicketForm, TicketItem
from registrations.service import attendee_service, form_service
from registrations.service.registration_service import RegistrationService
from registrations.tasks import dispatch, send_invitation

from .public import _registration_response


class FormAdminBaseController(UserAwareController):
    """Helpers shared by the form administration endpoints."""

    def get_queryset(self) -> QuerySet[TicketForm]:
        return TicketForm.objects.for_user(self.user())

    def get_one(self, form_id: UUID) -> TicketForm:
        return t.cast(TicketForm, self.get_object_or_exception(self.get_queryset(), pk=form_id))


@api_controller("/form-admin", auth=I18nJWTAuth(), tags=["Form Admin"], throttle=WriteThrottle())
class FormAdminController(FormAdminBaseController):
    """Forms, ticket items, promo codes and attendees of the forms a user owns."""

    # ---- Forms ----

    @route.get(
        "/forms",
        url_name="list_forms",
        response=PaginatedResponseSchema[schema.TicketFormListSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_forms(self) -> QuerySet[TicketForm]:
        """List the forms the current user administers."""
        return self.get_queryset()

    @route.post("/forms", url_name="create_form", response=schema.AdminTicketFormSchema)
    def create_form(self, payload: schema.TicketFormCreateSchema) -> TicketForm:
        """Create a new registration form. New forms start as drafts unless a status is given."""
        return form_service.create_form(self.user(), payload)

    @route.get("/{form_id}", url_name="get_form", response=schema.AdminTicketFormSchema, throttle=UserDefaultThrottle())
    def get_form(self, form_id: UUID) -> TicketForm:
        return self.get_one(form_id)

    @route.patch("/{form_id}", url_name="update_form", response=schema.AdminTicketFormSchema)
    def update_form(self, form_id: UUID, payload: schema.TicketFormUpdateSchema) -> TicketForm:
        return form_service.update_form(self.get_one(form_id), payload)

    @route.delete("/{form_id}", url_name="delete_form", response={204: None})
    def delete_form(self, form_id: UUID) -> tuple[int, None]:
        """Delete a form together with its attendees and seating layouts."""
        self.get_one(form_id).delete()
        return 204, None

    @route.put("/{form_id}/fields", url_name="replace_fields", response=list[schema.FormFieldSchema])
    def replace_fields(self, form_id: UUID, payload: schema.FormFieldsReplaceSchema) -> list[FormField]:
        """Replace the whole field list of a form."""
        return form_service.replace_fields(self.get_one(form_id), payload)

    # ---- Ticket items ----

    @route.post("/{form_id}/ticket-items", url_name="create_ticket_item", response=schema.TicketItemSchema)
    def create_ticket_item(self, form_id: UUID, payload: schema.TicketItemCreateSchema) -> TicketItem:
        """Add a ticket item. ``seats_per_unit`` above 1 makes it a table."""
        return form_service.create_ticket_item(self.get_one(form_id), payload)

    @route.patch("/{form_id}/ticket-items/{item_id}", url_name="update_ticket_item", response=schema.TicketItemSchema)
    def update_ticket_item(self, form_id: UUID, item_id: UUID, payload: schema.TicketItemUpdateSchema) -> TicketItem:
        """Update a ticket item. Name, price and seat count are frozen once the item has been sold."""
        item = get_object_or_404(TicketItem, pk=item_id, form=self.get_one(form_id))
        return form_service.update_ticket_item(item, payload)

    @route.delete("/{form_id}/ticket-items/{item_id}", url_name="delete_ticket_item", response={204: None})
    def delete_ticket_item(self, form_id: UUID, item_id: UUID) -> tuple[int, None]:
        item = get_object_or_404(TicketItem, pk=item_id, form=self.get_one(form_id))
        form_service.delete_ticket_item(item)
        return 204, None

    # ---- Promo codes ----

    @route.post("/{form_id}/promo-codes", url_name="create_promo_code", response=schema.PromoCodeSchema)
    def create_promo_code(self, form_id: UUID, payload: schema.PromoCodeCreateSchema) -> PromoCode:
        return form_service.create_promo_code(self.get_one(form_id), payload)

    @route.delete("/{form_id}/promo-codes/{promo_id}", url_name="delete_promo_code", response={204: None})
    def delete_promo_code(self, form_id: UUID, promo_id: UUID) -> tuple[int, None]:
        get_object_or_404(PromoCode, pk=promo_id, form=self.get_one(form_id)).delete()
        return 204, None

    # ---- Attendees ----

    @route.get(
        "/{form_id}/attendees",
        url_name="list_attendees",
        response=PaginatedResponseSchema[schema.AttendeeSchema],
        throttle=UserDefaultThrottle(),
    )
    @paginate(PageNumberPaginationExtra, page_size=50)
    def list_attendees(
        self,
        form_id: UUID,
        filters: schema.AttendeeFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[Attendee]:
        """List attendees of a form. Preview submissions are hidden unless ``include_test`` is set."""
        return attendee_service.list_attendees(self.get_one(form_id), filters)

    @route.get(
        "/{form_id}/attendees/summary",
        url_name="attendee_summary",
        response=schema.AttendeeSummarySchema,
        throttle=UserDefaultThrottle(),
    )
    def attendee_summary(self, form_id: UUID) -> schema.AttendeeSummarySchema:
        return attendee_service.attendee_summary(self.get_one(form_id))

    @route.post("/{form_id}/attendees/manual", url_name="issue_manual_ticket", response=schema.AttendeeSchema)
    def issue_manual_ticket(self, form_id: UUID, payload: schema.ManualTicketSchema) -> Attendee:
        """Issue a ticket by hand, bypassing cart and payment."""
        return attendee_service.issue_manual_ticket(self.get_one(form_id), payload)

    @route.post(
        "/{form_id}/check-in",
        url_name="check_in",
        response=schema.CheckInResultSchema,
        throttle=CheckInThrottle(),
    )
    def check_in(self, form_id: UUID, payload: schema.CheckInSchema) -> schema.CheckInResultSchema:
        """Check in the attendee whose QR code was scanned.

        ``status`` is ``success``, ``already_checked_in`` or ``not_found``.
        """
        result = attendee_service.check_in(self.get_one(form_id), payload.qr_payload)
        return schema.CheckInResultSchema(
            status=result.status.value,
            attendee=schema.AttendeeSchema.from_orm(result.attendee) if result.attendee else None,
        )

    @route.post(
        "/{form_id}/preview-registration",
        url_name="preview_registration",
        response={200: schema.RegistrationResultSchema, 400: ValidationErrorResponse},
    )
    def preview_registration(
        self, form_id: UUID, payload: schema.RegistrationSchema
    ) -> schema.RegistrationResultSchema:
        """Submit a test registration, regardless of the form's status.

        Records are flagged ``is_test`` and left out of attendee listings by default.
        """
        form = self.get_one(form_id)
        result = RegistrationService(form).finalize(payload.model_copy(update={"is_test": True}))
        return _registration_response(form, result.primary, result.guests)

    @route.post("/{form_id}/invitations", url_name="send_invitations", response={202: None})
    def send_invitations(self, form_id: UUID, payload: schema.SendInvitationsSchema) -> tuple[int, None]:
        """Email an invitation to register to each address."""
        form = self.get_one(form_id)
        dispatch(send_invitation, str(form.id), [str(email) for email in payload.emails])
        return 202, None
