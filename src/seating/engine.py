"""Pure table assignment over one seating configuration.

A :class:`SeatingChart` is an immutable snapshot of the tables and the current
assignments. Every operation returns a new chart; persisting it is up to the
caller (see ``seating.service.seating_service``).

Seat numbers are handed out per table as ``max(occupancy, seats_issued) + 1``
so a number that was issued once is never issued again, even after the guest
holding it is moved away.
"""

import math
import typing as t
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import UnknownTableError

GRID_SPACING = 5.0


class TableSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str = ""
    capacity: int = Field(ge=0)
    seats_issued: int = Field(default=0, ge=0)


class SeatAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    attendee_id: UUID
    table_id: UUID
    seat_number: int = Field(ge=1)


class TablePlacement(BaseModel):
    """A table position produced by :func:`generate_table_grid`."""

    model_config = ConfigDict(frozen=True)

    name: str
    capacity: int
    shape: str = "round"
    position_x: float = 0.0
    position_z: float = 0.0
    rotation: float = 0.0
    is_vip: bool = False


class SeatingChart(BaseModel):
    model_config = ConfigDict(frozen=True)

    tables: tuple[TableSpec, ...] = ()
    assignments: tuple[SeatAssignment, ...] = ()

    # ---- Queries ----

    def table(self, table_id: UUID) -> TableSpec:
        for table in self.tables:
            if table.id == table_id:
                return table
        raise UnknownTableError(table_id)

    def assignment_for(self, attendee_id: UUID) -> SeatAssignment | None:
        return next((a for a in self.assignments if a.attendee_id == attendee_id), None)

    def at_table(self, table_id: UUID) -> list[SeatAssignment]:
        return sorted((a for a in self.assignments if a.table_id == table_id), key=lambda a: a.seat_number)

    def occupancy(self, table_id: UUID) -> int:
        self.table(table_id)
        return sum(1 for a in self.assignments if a.table_id == table_id)

    def spots_left(self, table_id: UUID) -> int:
        return max(0, self.table(table_id).capacity - self.occupancy(table_id))

    def seats_issued(self, table_id: UUID) -> int:
        """Highest seat number issued at the table, including numbers held by current assignments."""
        seats = [a.seat_number for a in self.assignments if a.table_id == table_id]
        return max([self.table(table_id).seats_issued, *seats])

    def unassigned(self, attendee_ids: t.Iterable[UUID]) -> list[UUID]:
        """The given attendees without a seat, in input order."""
        seated = {a.attendee_id for a in self.assignments}
        return [attendee_id for attendee_id in attendee_ids if attendee_id not in seated]

    # ---- Transitions ----

    def assign(self, attendee_ids: t.Sequence[UUID], table_id: UUID) -> "SeatingChart":
        """Seat attendees at a table in the given order.

        An attendee seated elsewhere in this configuration is moved. One who already
        sits at this table keeps their seat. Once the table is full the remaining
        attendees are left where they were.
        """
        target = self.table(table_id)
        assignments = list(self.assignments)
        issued = self.seats_issued(table_id)
        for attendee_id in attendee_ids:
            current = next((a for a in assignments if a.attendee_id == attendee_id), None)
            if current is not None and current.table_id == table_id:
                continue
            occupancy = sum(1 for a in assignments if a.table_id == table_id)
            if occupancy >= target.capacity:
                continue
            if current is not None:
                assignments.remove(current)
            issued = max(occupancy, issued) + 1
            assignments.append(SeatAssignment(attendee_id=attendee_id, table_id=table_id, seat_number=issued))
        return self._with(assignments, {table_id: issued})

    def unassign(self, attendee_id: UUID) -> "SeatingChart":
        """Remove an attendee's seat. Other seat numbers at the table stay as they are."""
        current = self.assignment_for(attendee_id)
        if current is None:
            return self
        issued = self.seats_issued(current.table_id)
        assignments = [a for a in self.assignments if a.attendee_id != attendee_id]
        return self._with(assignments, {current.table_id: issued})

    def auto_assign(self, attendee_ids: t.Sequence[UUID]) -> "SeatingChart":
        """Fill tables in order with the attendees who have no seat yet, first fit.

        Stops when either runs out. Attendees that do not fit stay unassigned.
        """
        pending = self.unassigned(dict.fromkeys(attendee_ids))
        chart = self
        for table in self.tables:
            if not pending:
                break
            free = chart.spots_left(table.id)
            if free <= 0:
                continue
            batch, pending = pending[:free], pending[free:]
            chart = chart.assign(batch, table.id)
        return chart

    def _with(self, assignments: list[SeatAssignment], issued: dict[UUID, int]) -> "SeatingChart":
        tables = tuple(
            table.model_copy(update={"seats_issued": max(table.seats_issued, issued[table.id])})
            if table.id in issued
            else table
            for table in self.tables
        )
        return self.model_copy(update={"tables": tables, "assignments": tuple(assignments)})


def generate_table_grid(
    count: int, capacity: int, start_index: int = 0, shape: str = "round"
) -> list[TablePlacement]:
    """Lay out ``count`` tables on a centred square-ish grid, 5 units apart.

    Tables are named ``Table 1``, ``Table 2`` ... offset by ``start_index``.
    """
    if count <= 0:
        return []
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    placements = []
    for i in range(count):
        row, col = divmod(i, cols)
        placements.append(
            TablePlacement(
                name=f"Table {start_index + i + 1}",
                capacity=capacity,
                shape=shape,
                position_x=(col - (cols - 1) / 2) * GRID_SPACING,
                position_z=(row - (rows - 1) / 2) * GRID_SPACING,
            )
        )
    return placements
