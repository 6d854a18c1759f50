"""Tests for turning a submitted cart into attendee records."""

import typing as t
from decimal import Decimal
from unittest.mock import MagicMock, patch

import orjson
import pytest

from registrations import schema
from registrations.exceptions import InvalidDonation, PromoNotFound, RegistrationValidationError
from registrations.models import Attendee, PromoCode, TicketForm, TicketItem
from registrations.service.registration_service import RegistrationService, build_qr_payload, generate_invoice_id

pytestmark = pytest.mark.django_db


def _payload(answers: dict[str, str], **kwargs: object) -> schema.RegistrationSchema:
    return schema.RegistrationSchema(answers=answers, **kwargs)  # type: ignore[arg-type]


class TestFinalizeScenarios:
    def test_single_seat_tickets_create_only_the_primary(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        """Two GA tickets: two seats, no guest rows."""
        result = RegistrationService(ticket_form).finalize(_payload(purchaser_answers, quantities={ga_item.id: 2}))

        assert result.guests == []
        assert result.primary.total_seats == 2
        assert result.primary.ticket_type_summary == "General Admission x2"
        assert Attendee.objects.filter(form=ticket_form).count() == 1

    def test_table_creates_seven_placeholders_sharing_the_invoice(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        result = RegistrationService(ticket_form).finalize(_payload(purchaser_answers, quantities={table_item.id: 1}))

        primary, guests = result.primary, result.guests
        assert primary.total_seats == 8
        assert len(guests) == 7
        assert {g.invoice_id for g in guests} == {primary.invoice_id}
        assert all(g.primary_attendee_id == primary.id and not g.is_primary for g in guests)
        assert all(g.is_placeholder for g in guests)
        assert [g.name for g in guests][:2] == ["Jane Doe - Guest Ticket #2", "Jane Doe - Guest Ticket #3"]
        qr_payloads = {primary.qr_payload, *(g.qr_payload for g in guests)}
        assert len(qr_payloads) == 8

    def test_whole_table_donation_leaves_primary_only(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        payload = _payload(
            purchaser_answers,
            quantities={table_item.id: 1},
            donation={"kind": "whole_tables", "count": 1},
        )

        result = RegistrationService(ticket_form).finalize(payload)

        assert result.guests == []
        assert result.primary.donated_seats == 8
        assert result.primary.donated_tables == 1
        assert result.primary.donation_type == Attendee.DonationType.WHOLE_TABLES
        assert result.primary.effective_seats == 1

    def test_individual_seat_donation_reduces_guest_rows(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        payload = _payload(
            purchaser_answers,
            quantities={table_item.id: 1},
            donation={"kind": "individual_seats", "count": 3},
        )

        result = RegistrationService(ticket_form).finalize(payload)

        assert len(result.guests) == 4
        assert result.primary.donated_seats == 3
        assert result.primary.donated_tables == 0

    def test_donation_is_ignored_when_form_does_not_offer_it(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.enable_donations = False
        ticket_form.save()
        payload = _payload(
            purchaser_answers, quantities={table_item.id: 1}, donation={"kind": "whole_tables", "count": 1}
        )

        result = RegistrationService(ticket_form).finalize(payload)

        assert result.primary.donated_seats == 0
        assert len(result.guests) == 7

    def test_preview_and_checkout_agree_when_donations_are_off(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.enable_donations = False
        ticket_form.save()
        donation = {"kind": "individual_seats", "count": 5}
        service = RegistrationService(ticket_form)
        preview = schema.SeatPreviewRequestSchema(
            quantities={table_item.id: 1}, answers=purchaser_answers, donation=donation  # type: ignore[arg-type]
        )

        _, slots, total, donated = service.preview_slots(preview)
        result = service.finalize(_payload(purchaser_answers, quantities={table_item.id: 1}, donation=donation))

        assert (total, donated, len(slots)) == (8, 0, 8)
        assert len(result.guests) == len(slots) - 1

    def test_named_guest_slots_become_named_guests(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        slots = [
            {"is_purchaser": True},
            {"name": "Ann Guest", "email": "ann@example.com", "dietary": True},
            {"name": "No Email"},
        ]
        payload = _payload(purchaser_answers, quantities={table_item.id: 1}, guest_slots=slots)

        guests = RegistrationService(ticket_form).finalize(payload).guests

        assert guests[0].name == "Ann Guest"
        assert guests[0].email == "ann@example.com"
        assert guests[0].dietary_preference == "Vegetarian"
        assert guests[1].is_placeholder
        assert guests[1].email == "jane@example.com"

    def test_guest_details_not_collected(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.collect_guest_details = False
        ticket_form.save()
        slots = [{"is_purchaser": True}, {"name": "Ann Guest", "email": "ann@example.com"}]
        payload = _payload(purchaser_answers, quantities={table_item.id: 1}, guest_slots=slots)

        guests = RegistrationService(ticket_form).finalize(payload).guests

        assert all(g.is_placeholder for g in guests)


class TestFinalizeValidation:
    def test_missing_required_answers_write_nothing(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(_payload({}, quantities={ga_item.id: 1}))

        assert set(purchaser_answers) <= set(exc_info.value.errors)
        assert not Attendee.objects.exists()

    def test_ticket_required(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.ticket_required = True
        ticket_form.save()

        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(_payload(purchaser_answers))

        assert "tickets" in exc_info.value.errors

    def test_invalid_email(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        email_key = list(purchaser_answers)[1]
        answers = {**purchaser_answers, email_key: "not-an-email"}

        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(_payload(answers, quantities={ga_item.id: 1}))

        assert exc_info.value.errors["email"] == "Please enter a valid email address."

    def test_unknown_promo(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        with pytest.raises(PromoNotFound):
            RegistrationService(ticket_form).finalize(
                _payload(purchaser_answers, quantities={ga_item.id: 1}, promo_code="WHAT")
            )

        assert not Attendee.objects.exists()

    def test_over_donation(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        payload = _payload(
            purchaser_answers, quantities={table_item.id: 1}, donation={"kind": "individual_seats", "count": 8}
        )

        with pytest.raises(InvalidDonation):
            RegistrationService(ticket_form).finalize(payload)

    def test_invalid_guest_email_writes_nothing(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        slots = [{"is_purchaser": True}, {"name": "Ann Guest", "email": "ann@"}]
        payload = _payload(purchaser_answers, quantities={table_item.id: 1}, guest_slots=slots)

        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(payload)

        assert exc_info.value.errors == {"guest_slots.1": "Please enter a valid email address."}
        assert not Attendee.objects.exists()

    def test_guest_email_is_not_checked_when_details_are_not_collected(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.collect_guest_details = False
        ticket_form.save()
        slots = [{"is_purchaser": True}, {"name": "Ann Guest", "email": "ann@"}]
        payload = _payload(purchaser_answers, quantities={table_item.id: 1}, guest_slots=slots)

        guests = RegistrationService(ticket_form).finalize(payload).guests

        assert len(guests) == 7

    def test_name_too_long_for_guest_placeholders(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        name_key = list(purchaser_answers)[0]
        answers = {**purchaser_answers, name_key: "J" * 240}

        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(_payload(answers, quantities={table_item.id: 1}))

        assert exc_info.value.errors["name"] == "Your name is too long."
        assert not Attendee.objects.exists()

    def test_name_too_long(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        name_key = list(purchaser_answers)[0]
        answers = {**purchaser_answers, name_key: "J" * 256}

        with pytest.raises(RegistrationValidationError) as exc_info:
            RegistrationService(ticket_form).finalize(_payload(answers, quantities={ga_item.id: 1}))

        assert exc_info.value.errors["name"] == "Your name is too long."


class TestPaymentAndRecords:
    def test_paid_with_promo(
        self,
        ticket_form: TicketForm,
        ga_item: TicketItem,
        save10: PromoCode,
        purchaser_answers: dict[str, str],
    ) -> None:
        payment = schema.PaymentResultSchema(succeeded=True, transaction_id="txn_123", amount=Decimal("90.00"))
        payload = _payload(purchaser_answers, quantities={ga_item.id: 2}, promo_code="save10")

        primary = RegistrationService(ticket_form).finalize(payload, payment).primary

        assert primary.payment_status == Attendee.PaymentStatus.PAID
        assert primary.amount_paid == Decimal("90.00")
        assert primary.transaction_id == "txn_123"

    def test_free_order(self, ticket_form: TicketForm, purchaser_answers: dict[str, str]) -> None:
        primary = RegistrationService(ticket_form).finalize(_payload(purchaser_answers)).primary

        assert primary.payment_status == Attendee.PaymentStatus.FREE

    def test_unpaid_order_is_pending(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        payment = schema.PaymentResultSchema(succeeded=False)

        primary = (
            RegistrationService(ticket_form)
            .finalize(_payload(purchaser_answers, quantities={ga_item.id: 1}), payment)
            .primary
        )

        assert primary.payment_status == Attendee.PaymentStatus.PENDING
        assert primary.amount_paid == Decimal("0")

    def test_qr_payload_names_the_attendee(
        self, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        payload = _payload(purchaser_answers, quantities={ga_item.id: 1})

        primary = RegistrationService(ticket_form).finalize(payload).primary

        assert orjson.loads(primary.qr_payload) == {
            "id": str(primary.id),
            "invoiceId": primary.invoice_id,
            "formId": str(ticket_form.id),
            "action": "checkin",
        }
        assert primary.invoice_id.startswith("INV-")

    def test_test_submission_flag_is_inherited_by_guests(
        self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        result = RegistrationService(ticket_form).finalize(
            _payload(purchaser_answers, quantities={table_item.id: 1}, is_test=True)
        )

        assert result.primary.is_test
        assert all(g.is_test for g in result.guests)
        assert not Attendee.objects.live().exists()


class TestNotificationsDispatch:
    @patch("registrations.service.registration_service.dispatch")
    def test_notifications_are_queued_after_commit(
        self,
        mock_dispatch: MagicMock,
        ticket_form: TicketForm,
        ga_item: TicketItem,
        purchaser_answers: dict[str, str],
        django_capture_on_commit_callbacks: t.Any,
    ) -> None:
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            primary = (
                RegistrationService(ticket_form)
                .finalize(_payload(purchaser_answers, quantities={ga_item.id: 1}))
                .primary
            )
            mock_dispatch.assert_not_called()

        assert len(callbacks) == 1
        mock_dispatch.assert_called_once()
        assert mock_dispatch.call_args.args[1] == str(primary.id)


def test_generate_invoice_id_skips_taken_ids(ticket_form: TicketForm) -> None:
    with patch("registrations.service.registration_service.secrets.randbelow", side_effect=[42, 42, 7]):
        first = generate_invoice_id()
        Attendee.objects.create(
            form=ticket_form,
            name="Taken",
            email="taken@example.com",
            invoice_id=first,
            qr_payload=build_qr_payload(ticket_form.id, first, ticket_form.id),
        )
        second = generate_invoice_id()

    assert first == "INV-000042"
    assert second == "INV-000007"
