"""Cart pricing and promo resolution."""

import typing as t
from decimal import ROUND_HALF_UP, Decimal

from registrations.exceptions import PromoNotFound

from .types import Cart, CartPrice, DiscountType, PromoSpec

CENT = Decimal("0.01")


def subtotal(cart: Cart) -> Decimal:
    """Sum of quantity times unit price over the cart."""
    return sum((item.unit_price * qty for item, qty in cart.lines()), Decimal("0"))


def discount_for(amount: Decimal, promo: PromoSpec | None) -> Decimal:
    """Discount a promo grants on the given amount, rounded to cents."""
    if promo is None:
        return Decimal("0.00")
    if promo.discount_type == DiscountType.PERCENT:
        return (amount * promo.value / Decimal("100")).quantize(CENT, rounding=ROUND_HALF_UP)
    return promo.value.quantize(CENT, rounding=ROUND_HALF_UP)


def price_cart(cart: Cart) -> CartPrice:
    """Compute subtotal, discount and total for a cart.

    The total is clamped at zero, so a fixed promo larger than the subtotal
    makes the order free rather than negative.
    """
    amount = subtotal(cart)
    discount = discount_for(amount, cart.promo)
    total = max(Decimal("0.00"), amount - discount)
    return CartPrice(
        subtotal=amount.quantize(CENT, rounding=ROUND_HALF_UP),
        discount=discount,
        total=total.quantize(CENT, rounding=ROUND_HALF_UP),
    )


def find_promo(code_text: str, promo_codes: t.Iterable[PromoSpec]) -> PromoSpec:
    """Case-insensitive exact match of a code against the available promos.

    Raises:
        PromoNotFound: if nothing matches.
    """
    needle = code_text.strip().casefold()
    for promo in promo_codes:
        if needle and promo.code.strip().casefold() == needle:
            return promo
    raise PromoNotFound(code_text)


def apply_promo(cart: Cart, code_text: str, promo_codes: t.Iterable[PromoSpec]) -> Cart:
    """Return a copy of the cart with the matching promo bound.

    Any previously applied code is replaced. On a miss ``PromoNotFound`` is
    raised and the caller's cart is left as it was.
    """
    return cart.with_promo(find_promo(code_text, promo_codes))


def ticket_type_summary(cart: Cart) -> str:
    """Human summary of the purchase, e.g. ``"Table x1, General Admission x2"``."""
    return ", ".join(f"{item.name} x{qty}" for item, qty in cart.lines())


def parse_ticket_summary(summary: str) -> dict[str, int]:
    """Parse a ticket summary back into quantities by item name.

    Tokens that do not end in ``x<number>`` are ignored.
    """
    quantities: dict[str, int] = {}
    for token in summary.split(","):
        name, sep, qty = token.strip().rpartition(" x")
        if not sep or not qty.isdigit():
            continue
        quantities[name] = quantities.get(name, 0) + int(qty)
    return quantities
