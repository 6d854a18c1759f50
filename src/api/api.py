from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from registrations.controllers import REGISTRATION_CONTROLLERS
from registrations.exceptions import (
    BrokenReferral,
    DonationNotOffered,
    InvalidDonation,
    InvalidReferral,
    PromoNotFound,
    RegistrationValidationError,
    TableFull,
)
from seating.controllers import SeatingController
from seating.exceptions import UnknownAttendeeError, UnknownTableError

from .exception_handlers import (
    handle_broken_referral,
    handle_django_validation_error,
    handle_general_exception,
    handle_invalid_donation,
    handle_invalid_referral,
    handle_promo_not_found,
    handle_registration_validation_error,
    handle_table_full,
    handle_unknown_seating_reference,
)

api = NinjaExtraAPI(
    title="Seatwise API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Seatwise admission and seating API {settings.VERSION}",
    app_name=f"seatwise-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version."""
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API."""
    return 200, ResponseOk()


api.register_controllers(
    # Auth
    NinjaJWTDefaultController,
    # Registration controllers
    *REGISTRATION_CONTROLLERS,
    # Seating controllers
    SeatingController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    RegistrationValidationError: handle_registration_validation_error,
    PromoNotFound: handle_promo_not_found,
    DonationNotOffered: handle_invalid_donation,
    InvalidDonation: handle_invalid_donation,
    TableFull: handle_table_full,
    BrokenReferral: handle_broken_referral,
    InvalidReferral: handle_invalid_referral,
    UnknownTableError: handle_unknown_seating_reference,
    UnknownAttendeeError: handle_unknown_seating_reference,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
