"""Pure admission logic: pricing, seat expansion, donations and field checks."""

from .donation import apply_donation, donated_seats, effective_guest_slot_count, seats_per_table_item, validate_donation
from .pricing import apply_promo, find_promo, parse_ticket_summary, price_cart, ticket_type_summary
from .seats import (
    detach_purchaser_slot,
    expand_seats,
    has_table_items,
    purchaser_identity,
    sync_guest_slots,
    sync_purchaser_slot,
)
from .types import (
    Cart,
    CartPrice,
    DiscountType,
    DonationChoice,
    DonationKind,
    FieldSpec,
    GuestSlot,
    PromoSpec,
    TicketItemSpec,
)
from .visibility import is_visible, missing_answers, quantity_errors

__all__ = [
    "Cart",
    "CartPrice",
    "DiscountType",
    "DonationChoice",
    "DonationKind",
    "FieldSpec",
    "GuestSlot",
    "PromoSpec",
    "TicketItemSpec",
    "apply_donation",
    "apply_promo",
    "detach_purchaser_slot",
    "donated_seats",
    "effective_guest_slot_count",
    "expand_seats",
    "find_promo",
    "has_table_items",
    "is_visible",
    "missing_answers",
    "parse_ticket_summary",
    "price_cart",
    "purchaser_identity",
    "quantity_errors",
    "seats_per_table_item",
    "sync_guest_slots",
    "sync_purchaser_slot",
    "ticket_type_summary",
    "validate_donation",
]
