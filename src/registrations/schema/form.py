"""Ticket form schemas (public view and admin editing)."""

from decimal import Decimal
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import Field, model_validator

from common.schema import OneToOneFiftyString, OneToTwoFiftyFiveString
from registrations.models import FormField, PromoCode, TicketForm, TicketItem


class FormFieldSchema(ModelSchema):
    conditional_field_id: UUID | None = None

    class Meta:
        model = FormField
        fields = ["id", "field_type", "label", "placeholder", "required", "options", "order", "conditional_value"]


class TicketItemSchema(ModelSchema):
    remaining_inventory: int | None = None

    @staticmethod
    def resolve_remaining_inventory(obj: TicketItem) -> int | None:
        from registrations.service.form_service import remaining_inventory

        return remaining_inventory(obj)

    class Meta:
        model = TicketItem
        fields = ["id", "name", "description", "unit_price", "inventory", "max_per_order", "seats_per_unit", "order"]


class PromoCodeSchema(ModelSchema):
    class Meta:
        model = PromoCode
        fields = ["id", "code", "discount_type", "value"]


class PublicTicketFormSchema(ModelSchema):
    form_fields: list[FormFieldSchema]
    ticket_items: list[TicketItemSchema]
    has_promo_codes: bool = False

    @staticmethod
    def resolve_form_fields(obj: TicketForm) -> list[FormField]:
        return list(obj.form_fields.all())

    @staticmethod
    def resolve_ticket_items(obj: TicketForm) -> list[TicketItem]:
        return list(obj.ticket_items.all())

    @staticmethod
    def resolve_has_promo_codes(obj: TicketForm) -> bool:
        return obj.promo_codes.exists()

    class Meta:
        model = TicketForm
        fields = [
            "id",
            "title",
            "description",
            "thank_you_message",
            "status",
            "currency",
            "ticket_required",
            "enable_donations",
            "collect_guest_details",
        ]


class AdminTicketFormSchema(PublicTicketFormSchema):
    promo_codes: list[PromoCodeSchema]

    @staticmethod
    def resolve_promo_codes(obj: TicketForm) -> list[PromoCode]:
        return list(obj.promo_codes.all())

    class Meta:
        model = TicketForm
        fields = [
            "id",
            "title",
            "description",
            "thank_you_message",
            "status",
            "currency",
            "ticket_required",
            "enable_donations",
            "collect_guest_details",
            "referral_base_url",
            "email_subject",
            "email_body_template",
            "email_footer_text",
            "invitation_subject",
            "invitation_body_template",
            "created_at",
        ]


class TicketFormListSchema(ModelSchema):
    class Meta:
        model = TicketForm
        fields = ["id", "title", "status", "currency", "created_at"]


class TicketFormCreateSchema(Schema):
    title: OneToTwoFiftyFiveString
    description: str = ""
    thank_you_message: str = ""
    status: TicketForm.Status = TicketForm.Status.DRAFT
    currency: str = Field(default="USD", min_length=3, max_length=3)
    ticket_required: bool = False
    enable_donations: bool = False
    collect_guest_details: bool = True
    referral_base_url: str = ""


class TicketFormUpdateSchema(Schema):
    title: OneToTwoFiftyFiveString | None = None
    description: str | None = None
    thank_you_message: str | None = None
    status: TicketForm.Status | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    ticket_required: bool | None = None
    enable_donations: bool | None = None
    collect_guest_details: bool | None = None
    referral_base_url: str | None = None
    email_subject: str | None = None
    email_body_template: str | None = None
    email_footer_text: str | None = None
    invitation_subject: str | None = None
    invitation_body_template: str | None = None


class FormFieldInputSchema(Schema):
    """A field in a full field-list replacement.

    ``key`` is a client-side handle that ``conditional_on`` may refer to, so
    conditions can point at fields created in the same request.
    """

    key: str
    field_type: FormField.FieldType = FormField.FieldType.TEXT
    label: OneToTwoFiftyFiveString
    placeholder: str = ""
    required: bool = False
    options: list[str] = Field(default_factory=list)
    conditional_on: str | None = None
    conditional_value: str = ""


class FormFieldsReplaceSchema(Schema):
    fields: list[FormFieldInputSchema]

    @model_validator(mode="after")
    def validate_keys(self) -> "FormFieldsReplaceSchema":
        keys = [f.key for f in self.fields]
        if len(keys) != len(set(keys)):
            raise ValueError("Field keys must be unique.")
        for field in self.fields:
            depends_on = field.conditional_on
            if depends_on is not None and (depends_on not in keys or depends_on == field.key):
                raise ValueError(f"Field '{field.key}' depends on an unknown field.")
        return self


class TicketItemCreateSchema(Schema):
    name: OneToOneFiftyString
    description: str = ""
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)
    inventory: int = Field(default=0, ge=0)
    max_per_order: int = Field(default=10, ge=1)
    seats_per_unit: int = Field(default=1, ge=1)
    order: int = Field(default=0, ge=0)


class TicketItemUpdateSchema(Schema):
    name: OneToOneFiftyString | None = None
    description: str | None = None
    unit_price: Decimal | None = Field(default=None, ge=0)
    inventory: int | None = Field(default=None, ge=0)
    max_per_order: int | None = Field(default=None, ge=1)
    seats_per_unit: int | None = Field(default=None, ge=1)
    order: int | None = Field(default=None, ge=0)


class PromoCodeCreateSchema(Schema):
    code: OneToOneFiftyString
    discount_type: PromoCode.DiscountType = PromoCode.DiscountType.PERCENT
    value: Decimal = Field(ge=0)

    @model_validator(mode="after")
    def percent_in_range(self) -> "PromoCodeCreateSchema":
        if self.discount_type == PromoCode.DiscountType.PERCENT and self.value > 100:
            raise ValueError("A percent discount cannot exceed 100.")
        return self
