"""Errors raised when seating input references rows outside the layout."""

from uuid import UUID


class UnknownTableError(Exception):
    """Raised when a table id is not part of the configuration."""

    def __init__(self, table_id: UUID | str) -> None:
        super().__init__(f"Table {table_id} is not part of this seating configuration.")
        self.table_id = table_id


class UnknownAttendeeError(Exception):
    """Raised when an attendee id does not belong to the configuration's form."""

    def __init__(self, attendee_id: UUID | str) -> None:
        super().__init__(f"Attendee {attendee_id} is not registered for this form.")
        self.attendee_id = attendee_id
