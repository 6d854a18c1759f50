import re
import typing as t
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.utils import timezone

from common.models import TimeStampedModel

from .form import TicketForm

PLACEHOLDER_NAME_TEMPLATE = "{purchaser} - Guest Ticket #{number}"
PLACEHOLDER_NAME_PATTERN = re.compile(r" - Guest Ticket #\d+$")
NAME_MAX_LENGTH = 255


class AttendeeQuerySet(models.QuerySet["Attendee"]):
    def primaries(self) -> t.Self:
        return self.filter(is_primary=True)

    def guests_of(self, primary: "Attendee") -> t.Self:
        return self.filter(primary_attendee=primary, is_primary=False)

    def live(self) -> t.Self:
        """Exclude preview submissions."""
        return self.filter(is_test=False)

    def for_invoice(self, invoice_id: str) -> t.Self:
        return self.filter(invoice_id=invoice_id)


class AttendeeManager(models.Manager["Attendee"]):
    def get_queryset(self) -> AttendeeQuerySet:
        return AttendeeQuerySet(self.model, using=self._db)

    def primaries(self) -> AttendeeQuerySet:
        return self.get_queryset().primaries()

    def guests_of(self, primary: "Attendee") -> AttendeeQuerySet:
        return self.get_queryset().guests_of(primary)

    def live(self) -> AttendeeQuerySet:
        return self.get_queryset().live()


class Attendee(TimeStampedModel):
    class PaymentStatus(models.TextChoices):
        PAID = "paid"
        FREE = "free"
        PENDING = "pending"

    class DonationType(models.TextChoices):
        NONE = "none"
        WHOLE_TABLES = "whole_tables"
        INDIVIDUAL_SEATS = "individual_seats"

    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="attendees")
    name = models.CharField(max_length=NAME_MAX_LENGTH)
    email = models.EmailField(db_index=True)
    ticket_type_summary = models.CharField(max_length=1024, blank=True, default="")
    registered_at = models.DateTimeField(default=timezone.now, db_index=True)
    payment_status = models.CharField(
        choices=PaymentStatus.choices, max_length=10, default=PaymentStatus.PENDING, db_index=True
    )
    amount_paid = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    transaction_id = models.CharField(max_length=255, blank=True, default="")
    qr_payload = models.TextField(unique=True)
    invoice_id = models.CharField(max_length=32, db_index=True)

    is_primary = models.BooleanField(default=True, db_index=True)
    primary_attendee = models.ForeignKey(
        "self", on_delete=models.CASCADE, null=True, blank=True, related_name="guests"
    )

    # Primary only. Seat counts are persisted at finalize time.
    total_seats = models.PositiveIntegerField(default=1)
    donation_type = models.CharField(choices=DonationType.choices, max_length=20, default=DonationType.NONE)
    donated_seats = models.PositiveIntegerField(default=0)
    donated_tables = models.PositiveIntegerField(default=0)

    dietary_preference = models.CharField(max_length=255, blank=True, default="")
    answers = models.JSONField(default=dict, blank=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    is_test = models.BooleanField(default=False, db_index=True)

    objects = AttendeeManager()

    class Meta:
        ordering = ["registered_at", "created_at"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(is_primary=True, primary_attendee__isnull=True)
                    | models.Q(is_primary=False, primary_attendee__isnull=False)
                ),
                name="attendee_primary_link_consistent",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"

    def clean(self) -> None:
        """A guest must point at a primary of the same form."""
        super().clean()
        if self.primary_attendee_id is None:
            return
        primary = self.primary_attendee
        if primary is not None and primary.form_id != self.form_id:
            raise DjangoValidationError({"primary_attendee": "Primary attendee belongs to a different form."})

    @property
    def is_placeholder(self) -> bool:
        """Guest rows that still carry the generated placeholder name."""
        return not self.is_primary and bool(PLACEHOLDER_NAME_PATTERN.search(self.name))

    @property
    def effective_seats(self) -> int:
        """Seats this primary still holds after donation, never below one."""
        return max(1, self.total_seats - self.donated_seats)
