"""Tests for the form administration endpoints."""

import typing as t
from decimal import Decimal
from unittest.mock import MagicMock, patch

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from registrations import schema
from registrations.models import Attendee, FormField, PromoCode, TicketForm, TicketItem
from registrations.service.registration_service import RegistrationService

pytestmark = pytest.mark.django_db


def _send(client: Client, method: str, url: str, payload: dict[str, t.Any]) -> t.Any:
    return getattr(client, method)(url, data=orjson.dumps(payload), content_type="application/json")


class TestFormCrud:
    def test_list_only_own_forms(
        self, organizer_client: Client, ticket_form: TicketForm, other_organizer: t.Any
    ) -> None:
        TicketForm.objects.create(owner=other_organizer, title="Not mine")

        response = organizer_client.get(reverse("api:list_forms"))

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["results"][0]["id"] == str(ticket_form.id)

    def test_superuser_sees_every_form(self, superuser_client: Client, ticket_form: TicketForm) -> None:
        response = superuser_client.get(reverse("api:get_form", kwargs={"form_id": ticket_form.id}))

        assert response.status_code == 200

    def test_anonymous_is_rejected(self, client: Client) -> None:
        response = client.get(reverse("api:list_forms"))

        assert response.status_code == 401

    def test_create_starts_as_draft(self, organizer_client: Client, organizer: t.Any) -> None:
        response = _send(organizer_client, "post", reverse("api:create_form"), {"title": "Winter Ball"})

        assert response.status_code == 200
        form = TicketForm.objects.get(pk=response.json()["id"])
        assert form.owner == organizer
        assert form.status == TicketForm.Status.DRAFT
        assert response.json()["promo_codes"] == []

    def test_update(self, organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:update_form", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "patch", url, {"status": "closed", "enable_donations": False})

        assert response.status_code == 200
        ticket_form.refresh_from_db()
        assert ticket_form.status == TicketForm.Status.CLOSED
        assert ticket_form.enable_donations is False
        assert ticket_form.title == "Spring Gala"

    def test_other_organizer_gets_404(self, other_organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:update_form", kwargs={"form_id": ticket_form.id})

        response = _send(other_organizer_client, "patch", url, {"title": "Hijacked"})

        assert response.status_code == 404
        ticket_form.refresh_from_db()
        assert ticket_form.title == "Spring Gala"

    def test_delete(self, organizer_client: Client, ticket_form: TicketForm) -> None:
        response = organizer_client.delete(reverse("api:delete_form", kwargs={"form_id": ticket_form.id}))

        assert response.status_code == 204
        assert not TicketForm.objects.filter(pk=ticket_form.pk).exists()


class TestReplaceFields:
    def test_conditions_resolve_by_key(
        self, organizer_client: Client, ticket_form: TicketForm, name_field: FormField
    ) -> None:
        url = reverse("api:replace_fields", kwargs={"form_id": ticket_form.id})
        payload = {
            "fields": [
                {"key": "attending", "field_type": "radio", "label": "Attending?", "options": ["Yes", "No"]},
                {"key": "meal", "label": "Meal", "conditional_on": "attending", "conditional_value": "Yes"},
            ]
        }

        response = _send(organizer_client, "put", url, payload)

        assert response.status_code == 200
        attending, meal = ticket_form.form_fields.order_by("order")
        assert meal.conditional_field == attending
        assert meal.conditional_value == "Yes"
        assert not FormField.objects.filter(pk=name_field.pk).exists()

    def test_unknown_condition_is_rejected(self, organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:replace_fields", kwargs={"form_id": ticket_form.id})
        payload = {"fields": [{"key": "meal", "label": "Meal", "conditional_on": "nope"}]}

        response = _send(organizer_client, "put", url, payload)

        assert response.status_code == 422


class TestTicketItemsAndPromos:
    def test_create_table_item(self, organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:create_ticket_item", kwargs={"form_id": ticket_form.id})

        response = _send(
            organizer_client, "post", url, {"name": "Table of 10", "unit_price": "500.00", "seats_per_unit": 10}
        )

        assert response.status_code == 200
        item = TicketItem.objects.get(pk=response.json()["id"])
        assert item.seats_per_unit == 10
        assert item.unit_price == Decimal("500.00")

    def test_duplicate_item_name(self, organizer_client: Client, ticket_form: TicketForm, ga_item: TicketItem) -> None:
        url = reverse("api:create_ticket_item", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "post", url, {"name": "General Admission"})

        assert response.status_code == 400

    def test_sold_item_price_is_locked(
        self,
        organizer_client: Client,
        ticket_form: TicketForm,
        ga_item: TicketItem,
        purchaser_answers: dict[str, str],
    ) -> None:
        RegistrationService(ticket_form).finalize(
            schema.RegistrationSchema(answers=purchaser_answers, quantities={ga_item.id: 1})
        )
        url = reverse("api:update_ticket_item", kwargs={"form_id": ticket_form.id, "item_id": ga_item.id})

        price_response = _send(organizer_client, "patch", url, {"unit_price": "1.00"})
        inventory_response = _send(organizer_client, "patch", url, {"inventory": 200})

        assert price_response.status_code == 400
        assert inventory_response.status_code == 200
        ga_item.refresh_from_db()
        assert ga_item.unit_price == Decimal("50.00")
        assert ga_item.inventory == 200

    def test_delete_unsold_item(self, organizer_client: Client, ticket_form: TicketForm, ga_item: TicketItem) -> None:
        url = reverse("api:delete_ticket_item", kwargs={"form_id": ticket_form.id, "item_id": ga_item.id})

        response = organizer_client.delete(url)

        assert response.status_code == 204
        assert not TicketItem.objects.filter(pk=ga_item.pk).exists()

    def test_promo_codes_are_unique_ignoring_case(
        self, organizer_client: Client, ticket_form: TicketForm, save10: PromoCode
    ) -> None:
        url = reverse("api:create_promo_code", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "post", url, {"code": "save10", "value": "5"})

        assert response.status_code == 400

    def test_delete_promo_code(self, organizer_client: Client, ticket_form: TicketForm, save10: PromoCode) -> None:
        url = reverse("api:delete_promo_code", kwargs={"form_id": ticket_form.id, "promo_id": save10.id})

        response = organizer_client.delete(url)

        assert response.status_code == 204
        assert not PromoCode.objects.exists()


class TestAttendeeEndpoints:
    @pytest.fixture
    def primary(self, ticket_form: TicketForm, table_item: TicketItem, purchaser_answers: dict[str, str]) -> Attendee:
        payload = schema.RegistrationSchema(answers=purchaser_answers, quantities={table_item.id: 1})
        return RegistrationService(ticket_form).finalize(payload).primary

    def test_list_is_paginated(self, organizer_client: Client, ticket_form: TicketForm, primary: Attendee) -> None:
        url = reverse("api:list_attendees", kwargs={"form_id": ticket_form.id})

        response = organizer_client.get(url, {"search": "Jane Doe"})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 8
        assert data["results"][0]["id"] == str(primary.id)

    def test_summary(self, organizer_client: Client, ticket_form: TicketForm, primary: Attendee) -> None:
        url = reverse("api:attendee_summary", kwargs={"form_id": ticket_form.id})

        response = organizer_client.get(url)

        assert response.status_code == 200
        assert response.json()["total"] == 8
        assert response.json()["placeholders"] == 7

    def test_check_in_twice(self, organizer_client: Client, ticket_form: TicketForm, primary: Attendee) -> None:
        url = reverse("api:check_in", kwargs={"form_id": ticket_form.id})

        first = _send(organizer_client, "post", url, {"qr_payload": primary.qr_payload})
        second = _send(organizer_client, "post", url, {"qr_payload": primary.qr_payload})

        assert first.json()["status"] == "success"
        assert first.json()["attendee"]["id"] == str(primary.id)
        assert second.json()["status"] == "already_checked_in"

    def test_check_in_unknown_code(self, organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:check_in", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "post", url, {"qr_payload": "not json"})

        assert response.status_code == 200
        assert response.json() == {"status": "not_found", "attendee": None}

    @patch("registrations.service.attendee_service.dispatch")
    def test_manual_ticket(self, mock_dispatch: MagicMock, organizer_client: Client, ticket_form: TicketForm) -> None:
        url = reverse("api:issue_manual_ticket", kwargs={"form_id": ticket_form.id})

        response = _send(
            organizer_client, "post", url, {"name": "Comp Guest", "email": "comp@example.com", "send_email": False}
        )

        assert response.status_code == 200
        attendee = Attendee.objects.get(pk=response.json()["id"])
        assert attendee.is_primary
        assert attendee.payment_status == Attendee.PaymentStatus.PAID
        mock_dispatch.assert_not_called()


class TestPreviewAndInvitations:
    def test_preview_on_a_draft_is_flagged_test(
        self, organizer_client: Client, ticket_form: TicketForm, ga_item: TicketItem, purchaser_answers: dict[str, str]
    ) -> None:
        ticket_form.status = TicketForm.Status.DRAFT
        ticket_form.save()
        url = reverse("api:preview_registration", kwargs={"form_id": ticket_form.id})
        payload = {"answers": purchaser_answers, "quantities": {str(ga_item.id): 1}}

        response = _send(organizer_client, "post", url, payload)

        assert response.status_code == 200
        assert response.json()["primary"]["is_test"] is True
        assert not Attendee.objects.live().exists()

    def test_preview_validation_errors(
        self, organizer_client: Client, ticket_form: TicketForm, name_field: FormField
    ) -> None:
        url = reverse("api:preview_registration", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "post", url, {"answers": {}})

        assert response.status_code == 400
        assert str(name_field.id) in response.json()["errors"]

    @patch("registrations.controllers.admin.dispatch")
    def test_invitations_are_queued(
        self, mock_dispatch: MagicMock, organizer_client: Client, ticket_form: TicketForm
    ) -> None:
        url = reverse("api:send_invitations", kwargs={"form_id": ticket_form.id})

        response = _send(organizer_client, "post", url, {"emails": ["a@example.com", "b@example.com"]})

        assert response.status_code == 202
        mock_dispatch.assert_called_once()
        assert mock_dispatch.call_args.args[1:] == (str(ticket_form.id), ["a@example.com", "b@example.com"])
