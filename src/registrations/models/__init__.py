from .attendee import NAME_MAX_LENGTH, PLACEHOLDER_NAME_PATTERN, PLACEHOLDER_NAME_TEMPLATE, Attendee
from .form import FormField, PromoCode, TicketForm, TicketItem

__all__ = [
    "NAME_MAX_LENGTH",
    "PLACEHOLDER_NAME_PATTERN",
    "PLACEHOLDER_NAME_TEMPLATE",
    "Attendee",
    "FormField",
    "PromoCode",
    "TicketForm",
    "TicketItem",
]
