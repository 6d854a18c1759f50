import decimal
import uuid

import django.core.validators
import django.db.models.deletion
import django.db.models.functions.text
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="TicketForm",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("thank_you_message", models.TextField(blank=True, default="")),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("draft", "Draft"), ("closed", "Closed")],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("ticket_required", models.BooleanField(default=False)),
                ("enable_donations", models.BooleanField(default=False)),
                ("collect_guest_details", models.BooleanField(default=True)),
                ("referral_base_url", models.URLField(blank=True, default="")),
                ("email_subject", models.CharField(default="Your Event Ticket & Invoice", max_length=255)),
                (
                    "email_body_template",
                    models.TextField(
                        default=(
                            "<p>Hi <strong>{{name}}</strong>,</p>"
                            "<p>Thank you for registering for <strong>{{event}}</strong>!</p>"
                            "<p>Please present the QR code of your ticket at the entrance.</p>"
                            "<p>Invoice ID: {{invoiceId}}<br>Amount Paid: {{amount}}</p>"
                            "<p>See you there!</p>"
                        )
                    ),
                ),
                ("email_footer_text", models.CharField(blank=True, default="", max_length=255)),
                ("invitation_subject", models.CharField(default="You are invited!", max_length=255)),
                (
                    "invitation_body_template",
                    models.TextField(
                        default=(
                            "<p>Hi there,</p>"
                            "<p>We would love for you to join us at <strong>{{event}}</strong>.</p>"
                            '<p>Please click the link below to register:</p><p><a href="{{link}}">Register Now</a></p>'
                            "<p>Best regards,<br>The Team</p>"
                        )
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ticket_forms",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="FormField",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                (
                    "field_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("textarea", "Textarea"),
                            ("number", "Number"),
                            ("email", "Email"),
                            ("phone", "Phone"),
                            ("address", "Address"),
                            ("select", "Select"),
                            ("radio", "Radio"),
                            ("checkbox", "Checkbox"),
                            ("boolean", "Boolean"),
                        ],
                        default="text",
                        max_length=20,
                    ),
                ),
                ("label", models.CharField(max_length=255)),
                ("placeholder", models.CharField(blank=True, default="", max_length=255)),
                ("required", models.BooleanField(default=False)),
                ("options", models.JSONField(blank=True, default=list)),
                ("order", models.PositiveIntegerField(default=0)),
                ("conditional_value", models.CharField(blank=True, default="", max_length=255)),
                (
                    "conditional_field",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dependent_fields",
                        to="registrations.formfield",
                    ),
                ),
                (
                    "form",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="form_fields",
                        to="registrations.ticketform",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "created_at"],
            },
        ),
        migrations.CreateModel(
            name="TicketItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True, default="")),
                (
                    "unit_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=decimal.Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
                ("inventory", models.PositiveIntegerField(default=0, help_text="0 means unlimited.")),
                (
                    "max_per_order",
                    models.PositiveIntegerField(default=10, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                (
                    "seats_per_unit",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("order", models.PositiveIntegerField(default=0)),
                (
                    "form",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="ticket_items",
                        to="registrations.ticketform",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "created_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("form", "name"), name="unique_ticket_item_name_per_form")
                ],
            },
        ),
        migrations.CreateModel(
            name="PromoCode",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("code", models.CharField(max_length=64)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[("percent", "Percent"), ("fixed", "Fixed")], default="percent", max_length=10
                    ),
                ),
                (
                    "value",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
                    ),
                ),
                (
                    "form",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="promo_codes",
                        to="registrations.ticketform",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "constraints": [
                    models.UniqueConstraint(
                        django.db.models.functions.text.Lower("code"), "form", name="unique_promo_code_per_form_ci"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Attendee",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True, db_index=True)),
                ("name", models.CharField(max_length=255)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("ticket_type_summary", models.CharField(blank=True, default="", max_length=1024)),
                ("registered_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "payment_status",
                    models.CharField(
                        choices=[("paid", "Paid"), ("free", "Free"), ("pending", "Pending")],
                        db_index=True,
                        default="pending",
                        max_length=10,
                    ),
                ),
                (
                    "amount_paid",
                    models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=10),
                ),
                ("transaction_id", models.CharField(blank=True, default="", max_length=255)),
                ("qr_payload", models.TextField(unique=True)),
                ("invoice_id", models.CharField(db_index=True, max_length=32)),
                ("is_primary", models.BooleanField(db_index=True, default=True)),
                ("total_seats", models.PositiveIntegerField(default=1)),
                (
                    "donation_type",
                    models.CharField(
                        choices=[
                            ("none", "None"),
                            ("whole_tables", "Whole Tables"),
                            ("individual_seats", "Individual Seats"),
                        ],
                        default="none",
                        max_length=20,
                    ),
                ),
                ("donated_seats", models.PositiveIntegerField(default=0)),
                ("donated_tables", models.PositiveIntegerField(default=0)),
                ("dietary_preference", models.CharField(blank=True, default="", max_length=255)),
                ("answers", models.JSONField(blank=True, default=dict)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("is_test", models.BooleanField(db_index=True, default=False)),
                (
                    "form",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendees",
                        to="registrations.ticketform",
                    ),
                ),
                (
                    "primary_attendee",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guests",
                        to="registrations.attendee",
                    ),
                ),
            ],
            options={
                "ordering": ["registered_at", "created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("is_primary", True), ("primary_attendee__isnull", True)),
                            models.Q(("is_primary", False), ("primary_attendee__isnull", False)),
                            _connector="OR",
                        ),
                        name="attendee_primary_link_consistent",
                    )
                ],
            },
        ),
    ]
