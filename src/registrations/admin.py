"""Admin views for forms, their ticket items and the attendees they produced."""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html
from unfold.admin import ModelAdmin, TabularInline

from . import models


class FormFieldInline(TabularInline):  # type: ignore[misc]
    model = models.FormField
    fk_name = "form"
    extra = 0
    fields = ["label", "field_type", "required", "order", "conditional_field", "conditional_value"]


class TicketItemInline(TabularInline):  # type: ignore[misc]
    model = models.TicketItem
    extra = 0
    fields = ["name", "unit_price", "seats_per_unit", "max_per_order", "inventory", "order"]


class PromoCodeInline(TabularInline):  # type: ignore[misc]
    model = models.PromoCode
    extra = 0
    fields = ["code", "discount_type", "value"]


@admin.register(models.TicketForm)
class TicketFormAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["title", "owner", "status", "currency", "enable_donations", "created_at"]
    list_filter = ["status", "enable_donations", "ticket_required"]
    search_fields = ["title", "owner__username", "owner__email"]
    autocomplete_fields = ["owner"]
    readonly_fields = ["id", "created_at", "updated_at"]
    inlines = [FormFieldInline, TicketItemInline, PromoCodeInline]


@admin.register(models.Attendee)
class AttendeeAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = [
        "name",
        "email",
        "form",
        "invoice_id",
        "payment_status",
        "is_primary",
        "primary_link",
        "checked_in_at",
        "is_test",
    ]
    list_filter = ["payment_status", "is_primary", "is_test", "form"]
    search_fields = ["name", "email", "invoice_id", "transaction_id"]
    autocomplete_fields = ["form", "primary_attendee"]
    readonly_fields = ["id", "qr_payload", "registered_at", "created_at", "updated_at"]
    date_hierarchy = "registered_at"

    @admin.display(description="Primary")
    def primary_link(self, obj: models.Attendee) -> str:
        if obj.primary_attendee is None:
            return "-"
        url = reverse("admin:registrations_attendee_change", args=[obj.primary_attendee_id])
        return format_html('<a href="{}">{}</a>', url, obj.primary_attendee.name)
