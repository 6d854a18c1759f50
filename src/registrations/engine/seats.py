"""Seat counting and guest slot bookkeeping for multi-seat purchases."""

import typing as t

from .types import Answers, Cart, FieldSpec, GuestSlot


def expand_seats(cart: Cart) -> int:
    """Total number of seats a cart buys: sum of quantity times seats per unit."""
    return sum(qty * item.seats_per_unit for item, qty in cart.lines())


def has_table_items(cart: Cart) -> bool:
    """Whether any multi-seat item has a positive quantity."""
    return any(item.is_table for item, _ in cart.lines())


def seats_for_summary(quantities_by_name: dict[str, int], cart_items: t.Iterable[t.Any]) -> int:
    """Seats described by a parsed ticket summary, matched against items by name.

    Names that no longer exist count as single seats.
    """
    seats_by_name = {item.name: item.seats_per_unit for item in cart_items}
    return sum(qty * seats_by_name.get(name, 1) for name, qty in quantities_by_name.items())


def sync_guest_slots(previous: t.Sequence[GuestSlot], total_seats: int) -> list[GuestSlot]:
    """Resize the slot list to ``total_seats`` entries.

    Growing appends empty slots; shrinking drops slots from the tail. Slots are
    kept by position, so shrinking the cart discards the highest-indexed guest
    data.
    """
    size = max(0, total_seats)
    kept = list(previous[:size])
    return kept + [GuestSlot() for _ in range(size - len(kept))]


def _label(field: FieldSpec) -> str:
    return field.label.casefold()


def find_name_field(fields: t.Sequence[FieldSpec]) -> FieldSpec | None:
    """The purchaser's name field: a text field labelled "name", else the first text field."""
    text_fields = [f for f in fields if f.field_type == "text"]
    for field in text_fields:
        if "name" in _label(field):
            return field
    for field in fields:
        if "name" in _label(field) and field.field_type != "email":
            return field
    return text_fields[0] if text_fields else None


def find_email_field(fields: t.Sequence[FieldSpec]) -> FieldSpec | None:
    """The purchaser's email field: the first email field, else one labelled "email"."""
    for field in fields:
        if field.field_type == "email":
            return field
    for field in fields:
        if "email" in _label(field):
            return field
    return None


def purchaser_identity(fields: t.Sequence[FieldSpec], answers: Answers) -> tuple[str, str]:
    """Name and email typed into the main form."""
    name_field = find_name_field(fields)
    email_field = find_email_field(fields)
    name = str(answers.get(str(name_field.id), "")).strip() if name_field else ""
    email = str(answers.get(str(email_field.id), "")).strip() if email_field else ""
    return name, email


def sync_purchaser_slot(
    slots: t.Sequence[GuestSlot], fields: t.Sequence[FieldSpec], answers: Answers
) -> list[GuestSlot]:
    """Copy the purchaser's name and email into slot 0 while it is bound to them."""
    result = list(slots)
    if not result or not result[0].is_purchaser:
        return result
    name, email = purchaser_identity(fields, answers)
    result[0] = result[0].model_copy(update={"name": name, "email": email})
    return result


def detach_purchaser_slot(slots: t.Sequence[GuestSlot]) -> list[GuestSlot]:
    """Stop mirroring the main form into slot 0. Its current contents are kept."""
    result = list(slots)
    if result and result[0].is_purchaser:
        result[0] = result[0].model_copy(update={"is_purchaser": False})
    return result
