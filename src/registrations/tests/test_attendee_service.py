"""Tests for check-in, manual tickets and attendee listings."""

import typing as t

import orjson
import pytest

from registrations import schema
from registrations.models import Attendee, TicketForm, TicketItem
from registrations.service import attendee_service
from registrations.service.attendee_service import CheckInStatus
from registrations.service.registration_service import RegistrationResult, RegistrationService

pytestmark = pytest.mark.django_db


@pytest.fixture
def table_purchase(
    ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
) -> RegistrationResult:
    payload = schema.RegistrationSchema(answers=purchaser_answers, quantities={table_item.id: 1})
    return RegistrationService(ticket_form).finalize(payload)


class TestCheckIn:
    def test_first_scan_checks_in(self, table_purchase: RegistrationResult) -> None:
        guest = table_purchase.guests[0]

        result = attendee_service.check_in(guest.form, guest.qr_payload)

        assert result.status == CheckInStatus.SUCCESS
        assert result.attendee == guest
        guest.refresh_from_db()
        assert guest.checked_in_at is not None

    def test_second_scan_keeps_first_time(self, table_purchase: RegistrationResult) -> None:
        primary = table_purchase.primary
        attendee_service.check_in(primary.form, primary.qr_payload)
        primary.refresh_from_db()
        first_time = primary.checked_in_at

        result = attendee_service.check_in(primary.form, primary.qr_payload)

        assert result.status == CheckInStatus.ALREADY_CHECKED_IN
        assert result.attendee is not None
        assert result.attendee.checked_in_at == first_time

    @pytest.mark.parametrize("payload", ["", "not json", "[]", '{"invoiceId": "INV-1"}', '{"id": "nope"}'])
    def test_unreadable_payload(self, ticket_form: TicketForm, payload: str) -> None:
        assert attendee_service.check_in(ticket_form, payload).status == CheckInStatus.NOT_FOUND

    def test_ticket_of_another_form(self, table_purchase: RegistrationResult, organizer: t.Any) -> None:
        other_form = TicketForm.objects.create(owner=organizer, title="Other")

        result = attendee_service.check_in(other_form, table_purchase.primary.qr_payload)

        assert result.status == CheckInStatus.NOT_FOUND


class TestManualTicket:
    def test_issues_primary_with_invoice_and_qr(self, ticket_form: TicketForm, table_item: TicketItem) -> None:
        payload = schema.ManualTicketSchema(
            name="Door Sale", email="door@example.com", ticket_type_summary="Table x1", send_email=False
        )

        attendee = attendee_service.issue_manual_ticket(ticket_form, payload)

        assert attendee.is_primary
        assert attendee.total_seats == 8
        assert attendee.payment_status == Attendee.PaymentStatus.PAID
        assert orjson.loads(attendee.qr_payload)["id"] == str(attendee.id)
        assert attendee.invoice_id.startswith("INV-")


class TestListing:
    def test_test_submissions_hidden_by_default(
        self, ticket_form: TicketForm, table_purchase: RegistrationResult, purchaser_answers: dict[str, str]
    ) -> None:
        RegistrationService(ticket_form).finalize(schema.RegistrationSchema(answers=purchaser_answers, is_test=True))

        default = attendee_service.list_attendees(ticket_form, schema.AttendeeFilterSchema())
        everything = attendee_service.list_attendees(ticket_form, schema.AttendeeFilterSchema(include_test=True))

        assert default.count() == 8
        assert everything.count() == 9

    def test_search_and_checked_in_filters(self, table_purchase: RegistrationResult) -> None:
        primary = table_purchase.primary
        attendee_service.check_in(primary.form, primary.qr_payload)

        checked_in = attendee_service.list_attendees(primary.form, schema.AttendeeFilterSchema(checked_in=True))
        searched = attendee_service.list_attendees(primary.form, schema.AttendeeFilterSchema(search="Guest Ticket #8"))

        assert list(checked_in) == [primary]
        assert [a.name for a in searched] == ["Jane Doe - Guest Ticket #8"]

    def test_summary(self, table_purchase: RegistrationResult) -> None:
        primary = table_purchase.primary
        attendee_service.check_in(primary.form, primary.qr_payload)

        summary = attendee_service.attendee_summary(primary.form)

        assert summary.total == 8
        assert summary.primaries == 1
        assert summary.placeholders == 7
        assert summary.checked_in == 1
        assert summary.last_registration is not None
