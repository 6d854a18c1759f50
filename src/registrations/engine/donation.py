"""Donation of purchased seats back to the event."""

from django.conf import settings

from registrations.exceptions import DonationNotOffered, InvalidDonation

from .seats import expand_seats, has_table_items
from .types import Cart, DonationChoice, DonationKind


def seats_per_table_item(cart: Cart) -> int:
    """Seat count of the first table item in the cart.

    Carts that mix table sizes use this first item for every donated table.
    """
    for item, _ in cart.lines():
        if item.is_table:
            return item.seats_per_unit
    return int(settings.DEFAULT_SEATS_PER_TABLE)


def donated_seats(cart: Cart, choice: DonationChoice) -> int:
    """Number of seats a donation choice gives away.

    Raises:
        DonationNotOffered: a donation was chosen for a cart without table items.
    """
    if choice.kind == DonationKind.NONE:
        return 0
    if not has_table_items(cart):
        raise DonationNotOffered("Donations are only available when a table is in the cart.")
    if choice.kind == DonationKind.WHOLE_TABLES:
        return choice.count * seats_per_table_item(cart)
    return choice.count


def validate_donation(cart: Cart, choice: DonationChoice) -> int:
    """Check a donation against the cart and return the donated seat count.

    At least the purchaser's own seat must stay un-donated, with one exception:
    donating exactly the whole tables bought is allowed, which leaves only the
    purchaser's record.

    Raises:
        DonationNotOffered: for carts without table items.
        InvalidDonation: when more seats are donated than were bought.
    """
    if choice.kind == DonationKind.NONE:
        return 0
    seats = donated_seats(cart, choice)
    total = expand_seats(cart)
    if choice.kind == DonationKind.WHOLE_TABLES:
        table_count = sum(qty for item, qty in cart.lines() if item.is_table)
        if choice.count > table_count:
            raise InvalidDonation(f"Cannot donate {choice.count} tables, only {table_count} purchased.")
    elif seats > total - 1:
        raise InvalidDonation(f"Cannot donate {seats} seats out of {total}; keep at least one.")
    return seats


def apply_donation(total_seats: int, donated: int) -> int:
    """Seats that still need a guest record, never fewer than one."""
    return max(1, total_seats - donated)


def effective_guest_slot_count(cart: Cart, choice: DonationChoice) -> int:
    """Guest slots left to fill for a cart after a (validated) donation."""
    return apply_donation(expand_seats(cart), validate_donation(cart, choice))
