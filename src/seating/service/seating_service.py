"""Loading and saving seating layouts.

Saves are whole-layout replaces: tables missing from the payload are deleted
and every assignment of the configuration is rewritten. Concurrent editors of
the same configuration therefore overwrite each other, last writer wins.
"""

import typing as t
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from registrations.models import Attendee, TicketForm
from seating import schema
from seating.engine import SeatAssignment, SeatingChart, TableSpec, generate_table_grid
from seating.exceptions import UnknownAttendeeError, UnknownTableError
from seating.models import INITIAL_LAYOUT_NAME, SeatingAssignment, SeatingConfiguration, SeatingTable

logger = structlog.get_logger(__name__)


# ---- Configurations ----


@transaction.atomic
def list_configurations(form: TicketForm) -> list[SeatingConfiguration]:
    """All layouts of a form. A form without any gets an empty ``Initial Layout``."""
    TicketForm.objects.select_for_update().filter(pk=form.pk).first()
    configurations = list(SeatingConfiguration.objects.filter(form=form))
    if not configurations:
        configurations = [SeatingConfiguration.objects.create(form=form, name=INITIAL_LAYOUT_NAME)]
        logger.info("seating_configuration_created", form_id=str(form.id), name=INITIAL_LAYOUT_NAME)
    return configurations


def create_configuration(form: TicketForm, name: str) -> SeatingConfiguration:
    configuration = SeatingConfiguration.objects.create(form=form, name=name)
    logger.info("seating_configuration_created", form_id=str(form.id), name=name)
    return configuration


def rename_configuration(configuration: SeatingConfiguration, name: str) -> SeatingConfiguration:
    configuration.name = name
    configuration.save(update_fields=["name", "updated_at"])
    return configuration


def delete_configuration(configuration: SeatingConfiguration) -> None:
    """Delete a layout with its tables and assignments."""
    logger.info("seating_configuration_deleted", configuration_id=str(configuration.id))
    configuration.delete()


# ---- Reading ----


def list_tables(configuration: SeatingConfiguration) -> list[SeatingTable]:
    return list(SeatingTable.objects.filter(configuration=configuration))


def list_assignments(configuration: SeatingConfiguration) -> list[SeatingAssignment]:
    return list(SeatingAssignment.objects.filter(configuration=configuration))


def seatable_attendee_ids(form: TicketForm) -> list[UUID]:
    """Every real attendee of the form, purchasers and guests alike, in registration order."""
    return list(
        Attendee.objects.live().filter(form=form).order_by("registered_at", "created_at").values_list("id", flat=True)
    )


def load_chart(configuration: SeatingConfiguration) -> SeatingChart:
    return SeatingChart(
        tables=tuple(
            TableSpec(id=table.id, name=table.name, capacity=table.capacity, seats_issued=table.seats_issued)
            for table in list_tables(configuration)
        ),
        assignments=tuple(
            SeatAssignment(attendee_id=a.attendee_id, table_id=a.table_id, seat_number=a.seat_number)
            for a in list_assignments(configuration)
        ),
    )


def layout(configuration: SeatingConfiguration) -> schema.SeatingLayoutSchema:
    """Tables, assignments and the attendees still waiting for a seat."""
    assignments = list_assignments(configuration)
    seated = {a.attendee_id for a in assignments}
    return schema.SeatingLayoutSchema(
        configuration=schema.SeatingConfigurationSchema.from_orm(configuration),
        tables=[schema.SeatingTableSchema.from_orm(table) for table in list_tables(configuration)],
        assignments=[schema.SeatingAssignmentSchema.from_orm(a) for a in assignments],
        unassigned_attendee_ids=[
            attendee_id for attendee_id in seatable_attendee_ids(configuration.form) if attendee_id not in seated
        ],
    )


# ---- Writing ----


def _check_attendees(form: TicketForm, attendee_ids: t.Iterable[UUID]) -> None:
    wanted = set(attendee_ids)
    known = set(Attendee.objects.filter(form=form, pk__in=wanted).values_list("id", flat=True))
    for attendee_id in wanted - known:
        raise UnknownAttendeeError(attendee_id)


def save_tables(
    configuration: SeatingConfiguration, tables: t.Sequence[schema.SeatingTableInputSchema]
) -> list[SeatingTable]:
    """Replace the tables of a configuration.

    Tables not in ``tables`` are deleted together with their assignments. The
    rest are updated in place, or created when their id is new. A table keeps
    its ``seats_issued`` across saves.
    """
    incoming_ids = {table.id for table in tables if table.id is not None}
    foreign = SeatingTable.objects.filter(pk__in=incoming_ids).exclude(configuration=configuration)
    if (foreign_id := foreign.values_list("id", flat=True).first()) is not None:
        raise UnknownTableError(foreign_id)

    deleted, _ = SeatingTable.objects.filter(configuration=configuration).exclude(pk__in=incoming_ids).delete()
    existing = {table.id: table for table in SeatingTable.objects.filter(configuration=configuration)}

    saved: list[SeatingTable] = []
    for data in tables:
        table = existing.get(data.id) if data.id is not None else None
        if table is None:
            table = SeatingTable(form=configuration.form, configuration=configuration)
            if data.id is not None:
                table.id = data.id
        table.name = data.name
        table.capacity = data.capacity
        table.shape = data.shape
        table.position_x = data.position_x
        table.position_z = data.position_z
        table.rotation = data.rotation
        table.is_vip = data.is_vip
        table.save()
        saved.append(table)

    logger.info(
        "seating_tables_saved", configuration_id=str(configuration.id), tables=len(saved), deleted=deleted
    )
    return saved


def save_assignments(
    configuration: SeatingConfiguration, assignments: t.Sequence[schema.SeatingAssignmentInputSchema]
) -> list[SeatingAssignment]:
    """Replace every assignment of a configuration with ``assignments``.

    Raises:
        UnknownTableError: a table is not part of the configuration.
        UnknownAttendeeError: an attendee is not registered for the form.
        ValidationError: a table would hold more guests than its capacity.
    """
    tables = {table.id: table for table in SeatingTable.objects.filter(configuration=configuration)}
    for assignment in assignments:
        if assignment.table_id not in tables:
            raise UnknownTableError(assignment.table_id)
    _check_attendees(configuration.form, (a.attendee_id for a in assignments))

    per_table: dict[UUID, list[int]] = {}
    for assignment in assignments:
        per_table.setdefault(assignment.table_id, []).append(assignment.seat_number)
    for table_id, seats in per_table.items():
        table = tables[table_id]
        if len(seats) > table.capacity:
            raise DjangoValidationError(
                {"assignments": f"{table.name} seats {table.capacity} guests, got {len(seats)}."}
            )

    rows = _replace_assignments(
        configuration,
        [
            SeatAssignment(attendee_id=a.attendee_id, table_id=a.table_id, seat_number=a.seat_number)
            for a in assignments
        ],
    )
    for table_id, seats in per_table.items():
        table = tables[table_id]
        if max(seats) > table.seats_issued:
            table.seats_issued = max(seats)
            table.save(update_fields=["seats_issued", "updated_at"])
    logger.info("seating_assignments_saved", configuration_id=str(configuration.id), assignments=len(rows))
    return rows


def _replace_assignments(
    configuration: SeatingConfiguration, assignments: t.Iterable[SeatAssignment]
) -> list[SeatingAssignment]:
    SeatingAssignment.objects.filter(configuration=configuration).delete()
    return SeatingAssignment.objects.bulk_create(
        [
            SeatingAssignment(
                configuration=configuration,
                attendee_id=a.attendee_id,
                table_id=a.table_id,
                seat_number=a.seat_number,
            )
            for a in assignments
        ]
    )


@transaction.atomic
def save_layout(configuration: SeatingConfiguration, payload: schema.SeatingLayoutInputSchema) -> None:
    """Save tables and assignments together. Either both are written or neither."""
    _lock(configuration)
    save_tables(configuration, payload.tables)
    save_assignments(configuration, payload.assignments)


@transaction.atomic
def generate_tables(configuration: SeatingConfiguration, payload: schema.GenerateTablesSchema) -> list[SeatingTable]:
    """Create a grid of identical tables, replacing the current ones unless ``replace`` is off."""
    _lock(configuration)
    if payload.replace:
        SeatingTable.objects.filter(configuration=configuration).delete()
    start_index = SeatingTable.objects.filter(configuration=configuration).count()
    tables = [
        SeatingTable(
            form=configuration.form,
            configuration=configuration,
            name=placement.name,
            capacity=placement.capacity,
            shape=placement.shape,
            position_x=placement.position_x,
            position_z=placement.position_z,
            rotation=placement.rotation,
            is_vip=placement.is_vip,
        )
        for placement in generate_table_grid(payload.count, payload.capacity, start_index, payload.shape)
    ]
    for table in tables:
        table.save()
    logger.info(
        "seating_tables_generated", configuration_id=str(configuration.id), count=len(tables), replace=payload.replace
    )
    return tables


# ---- Assignment operations ----


def _lock(configuration: SeatingConfiguration) -> None:
    SeatingConfiguration.objects.select_for_update().filter(pk=configuration.pk).first()


def persist_chart(configuration: SeatingConfiguration, chart: SeatingChart) -> None:
    """Write a chart back: raised ``seats_issued`` counters and the full assignment list."""
    for table in SeatingTable.objects.filter(configuration=configuration):
        issued = chart.table(table.id).seats_issued
        if issued > table.seats_issued:
            table.seats_issued = issued
            table.save(update_fields=["seats_issued", "updated_at"])
    _replace_assignments(configuration, chart.assignments)


@transaction.atomic
def assign_guests(configuration: SeatingConfiguration, attendee_ids: list[UUID], table_id: UUID) -> SeatingChart:
    """Seat attendees at a table, up to the seats it has left.

    Attendees beyond the free seats are ignored.
    """
    _lock(configuration)
    _check_attendees(configuration.form, attendee_ids)
    chart = load_chart(configuration)
    moving = [
        attendee_id
        for attendee_id in dict.fromkeys(attendee_ids)
        if (current := chart.assignment_for(attendee_id)) is None or current.table_id != table_id
    ]
    capped = moving[: chart.spots_left(table_id)]
    chart = chart.assign(capped, table_id)
    persist_chart(configuration, chart)
    logger.info(
        "seating_guests_assigned",
        configuration_id=str(configuration.id),
        table_id=str(table_id),
        requested=len(attendee_ids),
        assigned=len(capped),
    )
    return chart


@transaction.atomic
def unassign_guest(configuration: SeatingConfiguration, attendee_id: UUID) -> SeatingChart:
    _lock(configuration)
    chart = load_chart(configuration)
    if chart.assignment_for(attendee_id) is None:
        _check_attendees(configuration.form, [attendee_id])
        return chart
    chart = chart.unassign(attendee_id)
    persist_chart(configuration, chart)
    logger.info("seating_guest_unassigned", configuration_id=str(configuration.id), attendee_id=str(attendee_id))
    return chart


@transaction.atomic
def auto_assign(configuration: SeatingConfiguration) -> SeatingChart:
    """Seat every unseated attendee of the form, first fit over the tables in order."""
    _lock(configuration)
    chart = load_chart(configuration)
    attendee_ids = seatable_attendee_ids(configuration.form)
    before = len(chart.assignments)
    chart = chart.auto_assign(attendee_ids)
    persist_chart(configuration, chart)
    logger.info(
        "seating_auto_assigned",
        configuration_id=str(configuration.id),
        assigned=len(chart.assignments) - before,
        left_over=len(chart.unassigned(attendee_ids)),
    )
    return chart
