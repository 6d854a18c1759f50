"""Seating layout schemas."""

from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import Field, model_validator

from common.schema import OneToTwoFiftyFiveString
from seating.models import SeatingAssignment, SeatingConfiguration, SeatingTable


class SeatingConfigurationSchema(ModelSchema):
    form_id: UUID

    class Meta:
        model = SeatingConfiguration
        fields = ["id", "name", "created_at"]


class SeatingConfigurationCreateSchema(Schema):
    name: OneToTwoFiftyFiveString


class SeatingTableSchema(ModelSchema):
    configuration_id: UUID

    class Meta:
        model = SeatingTable
        fields = [
            "id",
            "name",
            "capacity",
            "shape",
            "position_x",
            "position_z",
            "rotation",
            "is_vip",
            "seats_issued",
        ]


class SeatingTableInputSchema(Schema):
    """A table as sent by the layout editor. Tables without ``id`` are created."""

    id: UUID | None = None
    name: str = Field(..., min_length=1, max_length=100)
    capacity: int = Field(..., ge=1, le=100)
    shape: SeatingTable.Shape = SeatingTable.Shape.ROUND
    position_x: float = 0.0
    position_z: float = 0.0
    rotation: float = 0.0
    is_vip: bool = False


class SeatingAssignmentSchema(ModelSchema):
    attendee_id: UUID
    table_id: UUID

    class Meta:
        model = SeatingAssignment
        fields = ["id", "seat_number"]


class SeatingAssignmentInputSchema(Schema):
    attendee_id: UUID
    table_id: UUID
    seat_number: int = Field(..., ge=1)


class SeatingLayoutInputSchema(Schema):
    tables: list[SeatingTableInputSchema] = Field(default_factory=list)
    assignments: list[SeatingAssignmentInputSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_rows(self) -> "SeatingLayoutInputSchema":
        table_ids = [table.id for table in self.tables if table.id is not None]
        if len(table_ids) != len(set(table_ids)):
            raise ValueError("Duplicate table ids in layout.")
        attendee_ids = [a.attendee_id for a in self.assignments]
        if len(attendee_ids) != len(set(attendee_ids)):
            raise ValueError("An attendee can only be seated once per configuration.")
        seats = [(a.table_id, a.seat_number) for a in self.assignments]
        if len(seats) != len(set(seats)):
            raise ValueError("Two attendees cannot share a seat.")
        return self


class SeatingLayoutSchema(Schema):
    configuration: SeatingConfigurationSchema
    tables: list[SeatingTableSchema]
    assignments: list[SeatingAssignmentSchema]
    unassigned_attendee_ids: list[UUID]


class GenerateTablesSchema(Schema):
    count: int = Field(..., ge=1, le=200)
    capacity: int = Field(..., ge=1, le=100)
    shape: SeatingTable.Shape = SeatingTable.Shape.ROUND
    replace: bool = True


class AssignGuestsSchema(Schema):
    table_id: UUID
    attendee_ids: list[UUID] = Field(..., min_length=1)


class UnassignGuestSchema(Schema):
    attendee_id: UUID
