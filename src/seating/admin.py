from django.contrib import admin
from unfold.admin import ModelAdmin, TabularInline

from . import models


class SeatingTableInline(TabularInline):  # type: ignore[misc]
    model = models.SeatingTable
    extra = 0
    fields = ["name", "capacity", "shape", "is_vip", "seats_issued"]
    readonly_fields = ["seats_issued"]


@admin.register(models.SeatingConfiguration)
class SeatingConfigurationAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["name", "form", "created_at"]
    list_filter = ["form"]
    search_fields = ["name", "form__title"]
    autocomplete_fields = ["form"]
    inlines = [SeatingTableInline]


@admin.register(models.SeatingAssignment)
class SeatingAssignmentAdmin(ModelAdmin):  # type: ignore[misc]
    list_display = ["attendee", "table", "seat_number", "configuration"]
    list_filter = ["configuration"]
    search_fields = ["attendee__name", "attendee__email", "table__name"]
    autocomplete_fields = ["attendee"]
    raw_id_fields = ["configuration", "table"]
