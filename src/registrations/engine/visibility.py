"""Conditional visibility and required-answer checks for form fields."""

import typing as t

from .types import Answers, Cart, FieldSpec


def _is_answered(value: t.Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def is_visible(field: FieldSpec, answers: Answers) -> bool:
    """A conditional field is shown only while its trigger field holds the expected value."""
    if field.conditional_field_id is None:
        return True
    return str(answers.get(str(field.conditional_field_id), "")) == field.conditional_value


def missing_answers(fields: t.Sequence[FieldSpec], answers: Answers) -> dict[str, str]:
    """Required, visible fields without an answer, keyed by field id."""
    return {
        str(field.id): f"{field.label} is required."
        for field in fields
        if field.required and is_visible(field, answers) and not _is_answered(answers.get(str(field.id)))
    }


def quantity_errors(cart: Cart, ticket_required: bool) -> dict[str, str]:
    """Per-order limits and the required-ticket rule."""
    errors: dict[str, str] = {}
    known = {item.id for item in cart.items}
    for item_id, qty in cart.quantities.items():
        if item_id not in known:
            errors[str(item_id)] = "Unknown ticket item."
    for item in cart.items:
        qty = cart.quantity(item.id)
        if qty < 0:
            errors[str(item.id)] = f"{item.name}: quantity cannot be negative."
        elif qty > item.max_per_order:
            errors[str(item.id)] = f"{item.name}: at most {item.max_per_order} per order."
    if ticket_required and cart.total_quantity <= 0:
        errors["tickets"] = "Please select at least one ticket."
    return errors
