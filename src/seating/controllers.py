import typing as t
from uuid import UUID

from django.shortcuts import get_object_or_404
from ninja_extra import api_controller, route

from common.authentication import I18nJWTAuth
from common.controllers import UserAwareController
from common.throttling import UserDefaultThrottle, WriteThrottle
from registrations.models import TicketForm
from seating import schema
from seating.models import SeatingConfiguration, SeatingTable
from seating.service import seating_service


@api_controller("/seating/{form_id}", auth=I18nJWTAuth(), tags=["Seating"], throttle=WriteThrottle())
class SeatingController(UserAwareController):
    """Table layouts and seat assignments of a form."""

    def get_form(self, form_id: UUID) -> TicketForm:
        return t.cast(
            TicketForm, self.get_object_or_exception(TicketForm.objects.for_user(self.user()), pk=form_id)
        )

    def get_configuration(self, form_id: UUID, configuration_id: UUID) -> SeatingConfiguration:
        form = self.get_form(form_id)
        return get_object_or_404(SeatingConfiguration.objects.select_related("form"), pk=configuration_id, form=form)

    @route.get(
        "/configurations",
        url_name="list_seating_configurations",
        response=list[schema.SeatingConfigurationSchema],
        throttle=UserDefaultThrottle(),
    )
    def list_configurations(self, form_id: UUID) -> list[SeatingConfiguration]:
        """List the layouts of a form. The first call creates an empty "Initial Layout"."""
        return seating_service.list_configurations(self.get_form(form_id))

    @route.post(
        "/configurations", url_name="create_seating_configuration", response=schema.SeatingConfigurationSchema
    )
    def create_configuration(
        self, form_id: UUID, payload: schema.SeatingConfigurationCreateSchema
    ) -> SeatingConfiguration:
        return seating_service.create_configuration(self.get_form(form_id), payload.name)

    @route.patch(
        "/configurations/{configuration_id}",
        url_name="rename_seating_configuration",
        response=schema.SeatingConfigurationSchema,
    )
    def rename_configuration(
        self, form_id: UUID, configuration_id: UUID, payload: schema.SeatingConfigurationCreateSchema
    ) -> SeatingConfiguration:
        configuration = self.get_configuration(form_id, configuration_id)
        return seating_service.rename_configuration(configuration, payload.name)

    @route.delete(
        "/configurations/{configuration_id}", url_name="delete_seating_configuration", response={204: None}
    )
    def delete_configuration(self, form_id: UUID, configuration_id: UUID) -> tuple[int, None]:
        """Delete a layout together with its tables and assignments."""
        seating_service.delete_configuration(self.get_configuration(form_id, configuration_id))
        return 204, None

    @route.get(
        "/configurations/{configuration_id}/layout",
        url_name="get_seating_layout",
        response=schema.SeatingLayoutSchema,
        throttle=UserDefaultThrottle(),
    )
    def get_layout(self, form_id: UUID, configuration_id: UUID) -> schema.SeatingLayoutSchema:
        """Tables, assignments and the attendees without a seat."""
        return seating_service.layout(self.get_configuration(form_id, configuration_id))

    @route.put(
        "/configurations/{configuration_id}/layout",
        url_name="save_seating_layout",
        response=schema.SeatingLayoutSchema,
    )
    def save_layout(
        self, form_id: UUID, configuration_id: UUID, payload: schema.SeatingLayoutInputSchema
    ) -> schema.SeatingLayoutSchema:
        """Replace tables and assignments of a layout.

        Tables left out are deleted along with their assignments. The last save wins.
        """
        configuration = self.get_configuration(form_id, configuration_id)
        seating_service.save_layout(configuration, payload)
        return seating_service.layout(configuration)

    @route.post(
        "/configurations/{configuration_id}/generate-tables",
        url_name="generate_seating_tables",
        response=list[schema.SeatingTableSchema],
    )
    def generate_tables(
        self, form_id: UUID, configuration_id: UUID, payload: schema.GenerateTablesSchema
    ) -> list[SeatingTable]:
        """Create a grid of tables with the same capacity and shape."""
        configuration = self.get_configuration(form_id, configuration_id)
        return seating_service.generate_tables(configuration, payload)

    @route.post(
        "/configurations/{configuration_id}/assign",
        url_name="assign_seats",
        response=schema.SeatingLayoutSchema,
    )
    def assign(
        self, form_id: UUID, configuration_id: UUID, payload: schema.AssignGuestsSchema
    ) -> schema.SeatingLayoutSchema:
        """Seat attendees at a table. Attendees beyond the free seats are not seated."""
        configuration = self.get_configuration(form_id, configuration_id)
        seating_service.assign_guests(configuration, payload.attendee_ids, payload.table_id)
        return seating_service.layout(configuration)

    @route.post(
        "/configurations/{configuration_id}/unassign",
        url_name="unassign_seat",
        response=schema.SeatingLayoutSchema,
    )
    def unassign(
        self, form_id: UUID, configuration_id: UUID, payload: schema.UnassignGuestSchema
    ) -> schema.SeatingLayoutSchema:
        configuration = self.get_configuration(form_id, configuration_id)
        seating_service.unassign_guest(configuration, payload.attendee_id)
        return seating_service.layout(configuration)

    @route.post(
        "/configurations/{configuration_id}/auto-assign",
        url_name="auto_assign_seats",
        response=schema.SeatingLayoutSchema,
    )
    def auto_assign(self, form_id: UUID, configuration_id: UUID) -> schema.SeatingLayoutSchema:
        """Seat everyone without a seat, filling tables in order."""
        configuration = self.get_configuration(form_id, configuration_id)
        seating_service.auto_assign(configuration)
        return seating_service.layout(configuration)
