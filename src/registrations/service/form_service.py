"""Ticket form administration and conversion of forms into engine inputs."""

import typing as t
from uuid import UUID

import structlog
from django.db import transaction
from django.utils.translation import gettext_lazy as _
from ninja.errors import HttpError

from registrations import schema
from registrations.engine import (
    Cart,
    DiscountType,
    FieldSpec,
    PromoSpec,
    TicketItemSpec,
    apply_promo,
    parse_ticket_summary,
)
from registrations.models import Attendee, FormField, PromoCode, TicketForm, TicketItem

logger = structlog.get_logger(__name__)

# Changing these on a sold item would change what past buyers paid for.
LOCKED_ITEM_FIELDS = frozenset({"name", "unit_price", "seats_per_unit"})


# ---- Engine inputs ----


def ticket_item_specs(form: TicketForm) -> tuple[TicketItemSpec, ...]:
    return tuple(
        TicketItemSpec(
            id=item.id,
            name=item.name,
            unit_price=item.unit_price,
            seats_per_unit=item.seats_per_unit,
            max_per_order=item.max_per_order,
            inventory=item.inventory,
        )
        for item in form.ticket_items.all()
    )


def promo_specs(form: TicketForm) -> list[PromoSpec]:
    return [
        PromoSpec(code=promo.code, discount_type=DiscountType(promo.discount_type), value=promo.value)
        for promo in form.promo_codes.all()
    ]


def field_specs(form: TicketForm) -> list[FieldSpec]:
    return [
        FieldSpec(
            id=field.id,
            field_type=field.field_type,
            label=field.label,
            required=field.required,
            conditional_field_id=field.conditional_field_id,
            conditional_value=field.conditional_value,
        )
        for field in form.form_fields.all()
    ]


def build_cart(form: TicketForm, quantities: dict[UUID, int], promo_code: str | None = None) -> Cart:
    """Build a cart for a form, binding the promo code when one is given.

    Raises:
        PromoNotFound: if ``promo_code`` matches none of the form's codes.
    """
    cart = Cart(items=ticket_item_specs(form), quantities=dict(quantities))
    if promo_code:
        cart = apply_promo(cart, promo_code, promo_specs(form))
    return cart


# ---- Inventory ----


def sold_quantity(item: TicketItem) -> int:
    """Units of an item bought so far, read from the live primaries' summaries."""
    summaries = (
        Attendee.objects.live()
        .primaries()
        .filter(form_id=item.form_id, ticket_type_summary__contains=f"{item.name} x")
        .values_list("ticket_type_summary", flat=True)
    )
    return sum(parse_ticket_summary(summary).get(item.name, 0) for summary in summaries)


def remaining_inventory(item: TicketItem) -> int | None:
    """Units left for display. ``None`` for unlimited items.

    Inventory is informational only; registration does not enforce it.
    """
    if item.inventory == 0:
        return None
    return max(0, item.inventory - sold_quantity(item))


def is_item_referenced(item: TicketItem) -> bool:
    return sold_quantity(item) > 0


# ---- Forms ----


def create_form(owner: t.Any, payload: schema.TicketFormCreateSchema) -> TicketForm:
    form = TicketForm.objects.create(owner=owner, **payload.model_dump())
    logger.info("ticket_form_created", form_id=str(form.id), owner_id=str(owner.pk))
    return form


@transaction.atomic
def update_form(form: TicketForm, payload: schema.TicketFormUpdateSchema) -> TicketForm:
    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not update_data:
        return form
    for field, value in update_data.items():
        setattr(form, field, value)
    form.save()
    return form


@transaction.atomic
def replace_fields(form: TicketForm, payload: schema.FormFieldsReplaceSchema) -> list[FormField]:
    """Replace all fields of a form, resolving conditions by client-side key.

    Existing answers keep referencing the old field ids, so stored submissions
    are unaffected.
    """
    form.form_fields.all().delete()
    created: dict[str, FormField] = {}
    for position, field_input in enumerate(payload.fields):
        created[field_input.key] = FormField.objects.create(
            form=form,
            field_type=field_input.field_type,
            label=field_input.label,
            placeholder=field_input.placeholder,
            required=field_input.required,
            options=field_input.options,
            order=position,
        )
    for field_input in payload.fields:
        if field_input.conditional_on is None:
            continue
        field = created[field_input.key]
        field.conditional_field = created[field_input.conditional_on]
        field.conditional_value = field_input.conditional_value
        field.save()
    return list(form.form_fields.all())


# ---- Ticket items ----


def create_ticket_item(form: TicketForm, payload: schema.TicketItemCreateSchema) -> TicketItem:
    if form.ticket_items.filter(name=payload.name).exists():
        raise HttpError(400, str(_("A ticket item with this name already exists.")))
    return TicketItem.objects.create(form=form, **payload.model_dump())


@transaction.atomic
def update_ticket_item(item: TicketItem, payload: schema.TicketItemUpdateSchema) -> TicketItem:
    """Update a ticket item.

    Raises:
        HttpError: if a locked attribute is changed after the item was sold.
    """
    update_data = payload.model_dump(exclude_unset=True, exclude_none=True)
    changed = {key for key, value in update_data.items() if getattr(item, key) != value}
    if changed & LOCKED_ITEM_FIELDS and is_item_referenced(item):
        raise HttpError(400, str(_("This ticket item has already been sold and can no longer be changed.")))
    for field, value in update_data.items():
        setattr(item, field, value)
    item.save()
    return item


def delete_ticket_item(item: TicketItem) -> None:
    if is_item_referenced(item):
        raise HttpError(400, str(_("This ticket item has already been sold and cannot be deleted.")))
    item.delete()


# ---- Promo codes ----


def create_promo_code(form: TicketForm, payload: schema.PromoCodeCreateSchema) -> PromoCode:
    if form.promo_codes.filter(code__iexact=payload.code).exists():
        raise HttpError(400, str(_("A promo code with this code already exists.")))
    return PromoCode.objects.create(form=form, **payload.model_dump())
