import typing as t
from datetime import timedelta
from uuid import uuid4

import pytest
from django.utils import timezone

from registrations.models import Attendee, TicketForm
from seating.models import SeatingConfiguration, SeatingTable

AttendeeFactory = t.Callable[..., Attendee]


@pytest.fixture
def attendee_factory() -> AttendeeFactory:
    """Create a bare primary attendee without going through checkout."""

    def make(form: TicketForm, name: str, **kwargs: t.Any) -> Attendee:
        attendee_id = uuid4()
        return Attendee.objects.create(
            id=attendee_id,
            form=form,
            name=name,
            email=f"{name.lower().replace(' ', '.')}@example.com",
            invoice_id=f"INV-{attendee_id.hex[:6]}",
            qr_payload=str(attendee_id),
            **kwargs,
        )

    return make


@pytest.fixture
def configuration(ticket_form: TicketForm) -> SeatingConfiguration:
    return SeatingConfiguration.objects.create(form=ticket_form, name="Ballroom")


@pytest.fixture
def tables(configuration: SeatingConfiguration) -> list[SeatingTable]:
    """Two tables: one for four, one for two."""
    return [
        SeatingTable.objects.create(form=configuration.form, configuration=configuration, name="Table 1", capacity=4),
        SeatingTable.objects.create(form=configuration.form, configuration=configuration, name="Table 2", capacity=2),
    ]


@pytest.fixture
def attendees(ticket_form: TicketForm, attendee_factory: AttendeeFactory) -> list[Attendee]:
    """Five live attendees in registration order."""
    start = timezone.now()
    return [
        attendee_factory(ticket_form, f"Guest {i}", registered_at=start + timedelta(minutes=i)) for i in range(1, 6)
    ]
