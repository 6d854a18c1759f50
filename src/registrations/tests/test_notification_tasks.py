"""Tests for ticket emails, invitations and their delivery tasks."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest
from django.core import mail
from kombu.exceptions import OperationalError

from common.models import EmailLog
from registrations import schema
from registrations.models import TicketForm, TicketItem
from registrations.service import email_service
from registrations.service.registration_service import RegistrationResult, RegistrationService
from registrations.tasks import (
    dispatch,
    guest_recipients,
    send_guest_confirmation,
    send_invitation,
    send_registration_notifications,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def table_purchase(
    ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
) -> RegistrationResult:
    """A table with two named guests: one with their own address, one sharing the purchaser's."""
    slots = [
        {"is_purchaser": True},
        {"name": "Ann Guest", "email": "ann@example.com"},
        {"name": "Partner", "email": "JANE@example.com"},
    ]
    payload = schema.RegistrationSchema(answers=purchaser_answers, quantities={table_item.id: 1}, guest_slots=slots)
    return RegistrationService(ticket_form).finalize(payload)


class TestRendering:
    def test_placeholders_are_filled(self, table_purchase: RegistrationResult) -> None:
        primary = table_purchase.primary
        form = primary.form
        form.email_subject = "Ticket for {{event}} ({{invoiceId}})"
        form.email_body_template = "<p>Hi {{name}}, id {{id}}, paid {{amount}}, {{unknown}}</p>"

        subject, text, html = email_service.render_ticket_email(form, primary, [primary])

        assert subject == f"Ticket for Spring Gala ({primary.invoice_id})"
        assert f"Hi Jane Doe, id {primary.id}, paid {primary.amount_paid} USD, {{{{unknown}}}}" in text
        assert str(primary.id) in html

    def test_defaults_without_attendee(self, ticket_form: TicketForm) -> None:
        context = email_service.placeholder_context(ticket_form, None)

        assert context["name"] == "Valued Guest"
        assert context["invoiceId"] == "N/A"
        assert context["link"] == "https://tickets.example.com/gala"

    def test_invitation_links_to_registration_page(self, ticket_form: TicketForm) -> None:
        subject, text, html = email_service.render_invitation_email(ticket_form)

        assert subject == "You are invited!"
        assert "Spring Gala" in text
        assert 'href="https://tickets.example.com/gala"' in html


class TestRegistrationNotifications:
    def test_purchaser_gets_all_tickets_and_guests_their_own(self, table_purchase: RegistrationResult) -> None:
        send_registration_notifications(str(table_purchase.primary.id))

        recipients = [m.bcc for m in mail.outbox]
        assert recipients == [["jane@example.com"], ["ann@example.com"]]
        purchaser_mail = mail.outbox[0]
        assert purchaser_mail.body.count("Guest Ticket #") == 5
        assert f"ref={table_purchase.primary.id}" in purchaser_mail.body
        assert EmailLog.objects.count() == 2

    def test_guest_recipients_skip_placeholders_and_shared_addresses(
        self, table_purchase: RegistrationResult
    ) -> None:
        recipients = guest_recipients(table_purchase.primary, table_purchase.guests)

        assert [g.name for g in recipients] == ["Ann Guest"]

    @patch("registrations.tasks.send_email", side_effect=smtplib.SMTPException("down"))
    def test_delivery_failure_is_logged_not_raised(
        self, mock_send: MagicMock, table_purchase: RegistrationResult
    ) -> None:
        send_registration_notifications(str(table_purchase.primary.id))

        assert mock_send.call_count == 2

    def test_guest_confirmation(self, table_purchase: RegistrationResult) -> None:
        guest = table_purchase.guests[0]

        send_guest_confirmation(str(guest.id))

        assert len(mail.outbox) == 1
        assert mail.outbox[0].bcc == ["ann@example.com"]
        assert "ref=" not in mail.outbox[0].body


class TestInvitations:
    def test_each_address_gets_a_mail(self, ticket_form: TicketForm) -> None:
        send_invitation(str(ticket_form.id), ["a@example.com", "b@example.com"])

        assert sorted(m.bcc[0] for m in mail.outbox) == ["a@example.com", "b@example.com"]


class TestDispatch:
    def test_broker_outage_is_swallowed(self) -> None:
        task = MagicMock()
        task.delay.side_effect = OperationalError("no broker")

        dispatch(task, "abc")

        task.delay.assert_called_once_with("abc")
