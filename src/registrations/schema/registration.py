"""Cart, registration and referral payloads."""

import typing as t
from decimal import Decimal
from uuid import UUID

from ninja import Schema
from pydantic import EmailStr, Field, field_validator

from common.schema import OneToOneFiftyString, StrippedString
from registrations.engine import DonationChoice, DonationKind, GuestSlot


class CartSchema(Schema):
    quantities: dict[UUID, int] = Field(default_factory=dict)
    promo_code: StrippedString | None = None

    @field_validator("quantities")
    @classmethod
    def no_negative_quantities(cls, value: dict[UUID, int]) -> dict[UUID, int]:
        if any(qty < 0 for qty in value.values()):
            raise ValueError("Quantities cannot be negative.")
        return value


class PromoApplySchema(CartSchema):
    code: StrippedString


class CartPriceSchema(Schema):
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    promo_code: str | None = None
    currency: str


class DonationSchema(Schema):
    kind: DonationKind = DonationKind.NONE
    count: int = Field(default=0, ge=0)

    def to_choice(self) -> DonationChoice:
        return DonationChoice(kind=self.kind, count=self.count)


class GuestSlotSchema(Schema):
    name: str = ""
    email: str = ""
    dietary: bool = False
    is_purchaser: bool = False

    def to_slot(self) -> GuestSlot:
        return GuestSlot(name=self.name, email=self.email, dietary=self.dietary, is_purchaser=self.is_purchaser)

    @classmethod
    def from_slot(cls, slot: GuestSlot) -> "GuestSlotSchema":
        return cls(name=slot.name, email=slot.email, dietary=slot.dietary, is_purchaser=slot.is_purchaser)


class SeatPreviewRequestSchema(CartSchema):
    answers: dict[str, t.Any] = Field(default_factory=dict)
    donation: DonationSchema = Field(default_factory=DonationSchema)
    guest_slots: list[GuestSlotSchema] = Field(default_factory=list)
    detach_purchaser: bool = False


class SeatPreviewSchema(Schema):
    total_seats: int
    donated_seats: int
    effective_guest_slots: int
    donation_offered: bool
    guest_slots: list[GuestSlotSchema]


class PaymentResultSchema(Schema):
    succeeded: bool
    transaction_id: str = ""
    amount: Decimal = Decimal("0")


class RegistrationSchema(CartSchema):
    answers: dict[str, t.Any] = Field(default_factory=dict)
    donation: DonationSchema = Field(default_factory=DonationSchema)
    guest_slots: list[GuestSlotSchema] = Field(default_factory=list)
    dietary_preference: str = ""
    is_test: bool = False


class GuestDetailsSchema(Schema):
    name: OneToOneFiftyString
    email: EmailStr
    dietary: bool = False
    answers: dict[str, t.Any] = Field(default_factory=dict)


class ReferralStatusSchema(Schema):
    primary_id: UUID
    primary_name: str
    invoice_id: str
    total_seats: int
    filled_seats: int
    remaining_seats: int
    is_full: bool
    via_placeholder: bool
