"""Value types the admission engine computes over.

These are plain, immutable pydantic models. They carry no database state so the
engine functions can be called with any cart, from the API or from tests.
"""

import typing as t
from decimal import Decimal
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DiscountType(StrEnum):
    PERCENT = "percent"
    FIXED = "fixed"


class DonationKind(StrEnum):
    NONE = "none"
    WHOLE_TABLES = "whole_tables"
    INDIVIDUAL_SEATS = "individual_seats"


class TicketItemSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    unit_price: Decimal = Decimal("0")
    seats_per_unit: int = Field(default=1, ge=1)
    max_per_order: int = Field(default=10, ge=1)
    inventory: int = Field(default=0, ge=0)

    @property
    def is_table(self) -> bool:
        return self.seats_per_unit > 1


class PromoSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    discount_type: DiscountType
    value: Decimal


class Cart(BaseModel):
    """Requested quantities per ticket item plus at most one promo code."""

    model_config = ConfigDict(frozen=True)

    items: tuple[TicketItemSpec, ...] = ()
    quantities: dict[UUID, int] = Field(default_factory=dict)
    promo: PromoSpec | None = None

    def quantity(self, item_id: UUID) -> int:
        return self.quantities.get(item_id, 0)

    def lines(self) -> list[tuple[TicketItemSpec, int]]:
        """Items with a positive quantity, in item order."""
        return [(item, self.quantity(item.id)) for item in self.items if self.quantity(item.id) > 0]

    @property
    def total_quantity(self) -> int:
        return sum(qty for _, qty in self.lines())

    def with_quantity(self, item_id: UUID, quantity: int) -> "Cart":
        return self.model_copy(update={"quantities": {**self.quantities, item_id: quantity}})

    def with_promo(self, promo: PromoSpec | None) -> "Cart":
        return self.model_copy(update={"promo": promo})


class CartPrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount: Decimal
    total: Decimal


class DonationChoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DonationKind = DonationKind.NONE
    count: int = Field(default=0, ge=0)

    @classmethod
    def none(cls) -> "DonationChoice":
        return cls()

    @classmethod
    def whole_tables(cls, count: int) -> "DonationChoice":
        return cls(kind=DonationKind.WHOLE_TABLES, count=count)

    @classmethod
    def individual_seats(cls, count: int) -> "DonationChoice":
        return cls(kind=DonationKind.INDIVIDUAL_SEATS, count=count)


class GuestSlot(BaseModel):
    """One seat of a multi-seat purchase, as filled in by the purchaser."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    email: str = ""
    dietary: bool = False
    is_purchaser: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip() and self.email.strip())

    @property
    def dietary_preference(self) -> str:
        return "Vegetarian" if self.dietary else ""


class FieldSpec(BaseModel):
    """The parts of a form field the engine needs for validation and name/email lookup."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    field_type: str
    label: str
    required: bool = False
    conditional_field_id: UUID | None = None
    conditional_value: str = ""


Answers = dict[str, t.Any]
