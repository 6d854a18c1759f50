from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ninja import ModelSchema, Schema
from pydantic import EmailStr

from common.schema import OneToTwoFiftyFiveString
from registrations.models import Attendee


class AttendeeSchema(ModelSchema):
    form_id: UUID
    primary_attendee_id: UUID | None = None

    class Meta:
        model = Attendee
        fields = [
            "id",
            "name",
            "email",
            "ticket_type_summary",
            "registered_at",
            "payment_status",
            "amount_paid",
            "qr_payload",
            "invoice_id",
            "is_primary",
            "total_seats",
            "donation_type",
            "donated_seats",
            "donated_tables",
            "dietary_preference",
            "checked_in_at",
            "is_test",
        ]


class RegistrationResultSchema(Schema):
    primary: AttendeeSchema
    guests: list[AttendeeSchema]
    referral_link: str | None = None


class CheckInSchema(Schema):
    qr_payload: str


class CheckInResultSchema(Schema):
    status: str
    attendee: AttendeeSchema | None = None


class ManualTicketSchema(Schema):
    name: OneToTwoFiftyFiveString
    email: EmailStr
    ticket_type_summary: str = "General Admission x1"
    payment_status: Attendee.PaymentStatus = Attendee.PaymentStatus.PAID
    amount_paid: Decimal = Decimal("0")
    send_email: bool = True


class AttendeeFilterSchema(Schema):
    include_test: bool = False
    checked_in: bool | None = None
    search: str | None = None


class SendInvitationsSchema(Schema):
    emails: list[EmailStr]


class AttendeeSummarySchema(Schema):
    total: int
    checked_in: int
    primaries: int
    placeholders: int
    last_registration: datetime | None = None
