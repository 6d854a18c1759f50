from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models

from common.models import TimeStampedModel
from registrations.models import Attendee, TicketForm

INITIAL_LAYOUT_NAME = "Initial Layout"


class SeatingConfiguration(TimeStampedModel):
    """A named table layout of a form. A form can keep several alternatives."""

    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="seating_configurations")
    name = models.CharField(max_length=255)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.form_id})"


class SeatingTable(TimeStampedModel):
    class Shape(models.TextChoices):
        ROUND = "round"
        RECTANGLE = "rectangle"

    form = models.ForeignKey(TicketForm, on_delete=models.CASCADE, related_name="seating_tables")
    configuration = models.ForeignKey(SeatingConfiguration, on_delete=models.CASCADE, related_name="tables")
    name = models.CharField(max_length=100)
    capacity = models.PositiveIntegerField(default=8, validators=[MinValueValidator(1)])
    shape = models.CharField(choices=Shape.choices, max_length=10, default=Shape.ROUND)
    position_x = models.FloatField(default=0)
    position_z = models.FloatField(default=0)
    rotation = models.FloatField(default=0)
    is_vip = models.BooleanField(default=False)
    # Highest seat number ever handed out at this table. Never decreases.
    seats_issued = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["created_at", "name"]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        super().clean()
        if self.configuration_id is not None and self.configuration.form_id != self.form_id:
            raise DjangoValidationError({"configuration": "Configuration belongs to a different form."})


class SeatingAssignment(TimeStampedModel):
    configuration = models.ForeignKey(SeatingConfiguration, on_delete=models.CASCADE, related_name="assignments")
    attendee = models.ForeignKey(Attendee, on_delete=models.CASCADE, related_name="seating_assignments")
    table = models.ForeignKey(SeatingTable, on_delete=models.CASCADE, related_name="assignments")
    seat_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    class Meta:
        ordering = ["table", "seat_number"]
        constraints = [
            models.UniqueConstraint(fields=["configuration", "attendee"], name="unique_assignment_per_configuration"),
            models.UniqueConstraint(fields=["table", "seat_number"], name="unique_seat_per_table"),
        ]

    def __str__(self) -> str:
        return f"{self.attendee_id} @ {self.table_id} #{self.seat_number}"
