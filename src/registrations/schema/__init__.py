from .attendee import (
    AttendeeFilterSchema,
    AttendeeSchema,
    AttendeeSummarySchema,
    CheckInResultSchema,
    CheckInSchema,
    ManualTicketSchema,
    RegistrationResultSchema,
    SendInvitationsSchema,
)
from .form import (
    AdminTicketFormSchema,
    FormFieldInputSchema,
    FormFieldSchema,
    FormFieldsReplaceSchema,
    PromoCodeCreateSchema,
    PromoCodeSchema,
    PublicTicketFormSchema,
    TicketFormCreateSchema,
    TicketFormListSchema,
    TicketFormUpdateSchema,
    TicketItemCreateSchema,
    TicketItemSchema,
    TicketItemUpdateSchema,
)
from .registration import (
    CartPriceSchema,
    CartSchema,
    DonationSchema,
    GuestDetailsSchema,
    GuestSlotSchema,
    PaymentResultSchema,
    PromoApplySchema,
    ReferralStatusSchema,
    RegistrationSchema,
    SeatPreviewRequestSchema,
    SeatPreviewSchema,
)

__all__ = [
    "AdminTicketFormSchema",
    "AttendeeFilterSchema",
    "AttendeeSchema",
    "AttendeeSummarySchema",
    "CartPriceSchema",
    "CartSchema",
    "CheckInResultSchema",
    "CheckInSchema",
    "DonationSchema",
    "FormFieldInputSchema",
    "FormFieldSchema",
    "FormFieldsReplaceSchema",
    "GuestDetailsSchema",
    "GuestSlotSchema",
    "ManualTicketSchema",
    "PaymentResultSchema",
    "PromoApplySchema",
    "PromoCodeCreateSchema",
    "PromoCodeSchema",
    "PublicTicketFormSchema",
    "ReferralStatusSchema",
    "RegistrationResultSchema",
    "RegistrationSchema",
    "SeatPreviewRequestSchema",
    "SeatPreviewSchema",
    "SendInvitationsSchema",
    "TicketFormCreateSchema",
    "TicketFormListSchema",
    "TicketFormUpdateSchema",
    "TicketItemCreateSchema",
    "TicketItemSchema",
    "TicketItemUpdateSchema",
]
