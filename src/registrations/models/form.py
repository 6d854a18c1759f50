import typing as t
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models.functions import Lower

from common.models import TimeStampedModel

if t.TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser, AnonymousUser

DEFAULT_EMAIL_SUBJECT = "Your Event Ticket & Invoice"
DEFAULT_EMAIL_BODY = (
    "<p>Hi <strong>{{name}}</strong>,</p>"
    "<p>Thank you for registering for <strong>{{event}}</strong>!</p>"
    "<p>Please present the QR code of your ticket at the entrance.</p>"
    "<p>Invoice ID: {{invoiceId}}<br>Amount Paid: {{amount}}</p>"
    "<p>See you there!</p>"
)
DEFAULT_INVITATION_SUBJECT = "You are invited!"
DEFAULT_INVITATION_BODY = (
    "<p>Hi there,</p>"
    "<p>We would love for you to join us at <strong>{{event}}</strong>.</p>"
    '<p>Please click the link below to register:</p><p><a href="{{link}}">Register Now</a></p>'
    "<p>Best regards,<br>The Team</p>"
)


class TicketFormQuerySet(models.QuerySet["TicketForm"]):
    def for_user(self, user: "AbstractBaseUser | AnonymousUser") -> t.Self:
        """Forms a user may administer: their own, or all of them for Django staff."""
        if user.is_anonymous:
            return self.none()
        if user.is_staff or user.is_superuser:
            return self.all()
        return self.filter(owner=user)

    def public(self) -> t.Self:
        return self.filter(status=TicketForm.Status.ACTIVE)


class TicketFormManager(models.Manager["TicketForm"]):
    def get_queryset(self) -> TicketFormQuerySet:
        return TicketFormQuerySet(self.model, using=self._db)

    def for_user(self, user: "AbstractBaseUser | AnonymousUser") -> TicketFormQuerySet:
        return self.get_queryset().for_user(user)

    def public(self) -> TicketFormQuerySet:
        return self.get_queryset().public()


class TicketForm(TimeStampedModel):
    class Status(models.TextChoices):
        ACTIVE = "active"
        DRAFT = "draft"
        CLOSED = "closed"

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="ticket_forms")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    thank_you_message = models.TextField(blank=True, default="")
    status = models.CharField(choices=Status.choices, max_length=10, default=Status.DRAFT, db_index=True)
    currency = models.CharField(max_length=3, default="USD")
    ticket_required = models.BooleanField(default=False)
    enable_donations = models.BooleanField(default=False)
    collect_guest_details = models.BooleanField(default=True)
    referral_base_url = models.URLField(blank=True, default="")

    email_subject = models.CharField(max_length=255, default=DEFAULT_EMAIL_SUBJECT)
    email_body_template = models.TextField(default=DEFAULT_EMAIL_BODY)
    email_footer_text = models.CharField(max_length=255, blank=True, default="")
    invitation_subject = models.CharField(max_length=255, default=DEFAULT_INVITATION_SUBJECT)
    invitation_body_template = models.TextField(default=DEFAULT_INVITATION_BODY)

    objects = TicketFormManager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    def get_registration_url(self) -> str:
        """Public registration page of this form."""
        base = self.referral_base_url or f"{settings.FRONTEND_BASE_URL}/register/{self.pk}"
        return base.rstrip("/")

    def get_referral_link(self, attendee_id: t.Any) -> str:
        """Shareable link that lets a guest claim a seat of the given attendee."""
        return f"{self.get_registration_url()}?ref={attendee_id}"


class FormField(TimeStampedModel):
    class FieldType(models.TextChoices):
        TEXT = "text"
        TEXTAREA = "textarea"
        NUMBER = "number"
        EMAIL = "email"
        PHONE = "phone"
        ADDRESS = "address"
        SELECT = "select"
        RADIO = "radio"
        CHECKBOX = "checkbox"
        BOOLEAN = "boolean"

    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="form_fields")
    field_type = models.CharField(choices=FieldType.choices, max_length=20, default=FieldType.TEXT)
    label = models.CharField(max_length=255)
    placeholder = models.CharField(max_length=255, blank=True, default="")
    required = models.BooleanField(default=False)
    options = models.JSONField(default=list, blank=True)
    order = models.PositiveIntegerField(default=0)
    conditional_field = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="dependent_fields"
    )
    conditional_value = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["order", "created_at"]

    def __str__(self) -> str:
        return self.label

    def clean(self) -> None:
        """Conditions may only point at a sibling field of the same form."""
        super().clean()
        if self.conditional_field_id is not None:
            if self.conditional_field_id == self.pk:
                raise DjangoValidationError({"conditional_field": "A field cannot depend on itself."})
            if self.conditional_field is not None and self.conditional_field.form_id != self.form_id:
                raise DjangoValidationError({"conditional_field": "Conditional field must belong to the same form."})


class TicketItem(TimeStampedModel):
    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="ticket_items")
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default="")
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal("0.00"), validators=[MinValueValidator(Decimal("0"))]
    )
    inventory = models.PositiveIntegerField(default=0, help_text="0 means unlimited.")
    max_per_order = models.PositiveIntegerField(default=10, validators=[MinValueValidator(1)])
    seats_per_unit = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["order", "created_at"]
        constraints = [
            models.UniqueConstraint(fields=["form", "name"], name="unique_ticket_item_name_per_form"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.form_id})"

    @property
    def is_table(self) -> bool:
        return self.seats_per_unit > 1


class PromoCode(TimeStampedModel):
    class DiscountType(models.TextChoices):
        PERCENT = "percent"
        FIXED = "fixed"

    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="promo_codes")
    code = models.CharField(max_length=64)
    discount_type = models.CharField(choices=DiscountType.choices, max_length=10, default=DiscountType.PERCENT)
    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal("0"))])

    class Meta:
        ordering = ["code"]
        constraints = [
            models.UniqueConstraint(Lower("code"), "form", name="unique_promo_code_per_form_ci"),
        ]

    def __str__(self) -> str:
        return self.code

    def clean(self) -> None:
        super().clean()
        if self.discount_type == self.DiscountType.PERCENT and self.value is not None and self.value > 100:
            raise DjangoValidationError({"value": "A percent discount cannot exceed 100."})
