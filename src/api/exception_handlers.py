"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from registrations.exceptions import (
    BrokenReferral,
    DonationNotOffered,
    InvalidDonation,
    InvalidReferral,
    PromoNotFound,
    RegistrationValidationError,
    TableFull,
)
from seating.exceptions import UnknownAttendeeError, UnknownTableError

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    The request is logged with credentials masked. Staff and debug responses
    include the traceback.
    """
    tb_str = traceback.format_exc()
    json_payload = None
    if request.body and request.content_type == "application/json":
        try:
            json_payload = obfuscate(orjson.loads(request.body))
        except (orjson.JSONDecodeError, AttributeError, TypeError):  # pragma: no cover
            json_payload = None
    logger.exception(
        "INTERNAL_SERVER_ERROR",
        method=request.method,
        path=request.path,
        headers=obfuscate(dict(request.headers)),
        query=obfuscate(request.GET.dict()),
        json_payload=json_payload,
    )
    data = {"detail": "Internal Server Error."}
    is_staff = getattr(request, "user", None) and request.user.is_staff
    if settings.DEBUG or is_staff:  # pragma: no cover
        data["traceback"] = tb_str
    return Response(status=500, data=data)


def handle_django_validation_error(
    request: HttpRequest, exc: ValidationError | t.Type[ValidationError]
) -> Response:
    """Handle a model validation error."""
    logger.error("VALIDATION_ERROR", exc_info=True)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}  # type: ignore[union-attr]
    return Response(status=400, data={"errors": error_dict})


def handle_registration_validation_error(
    request: HttpRequest, exc: RegistrationValidationError | t.Type[RegistrationValidationError]
) -> Response:
    """Handle an incomplete registration. Nothing has been written."""
    return Response(status=400, data={"errors": exc.errors})


def handle_promo_not_found(request: HttpRequest, exc: PromoNotFound | t.Type[PromoNotFound]) -> Response:
    """Handle an unknown promo code."""
    return Response(status=404, data={"detail": "Promo code not found."})


def handle_invalid_donation(
    request: HttpRequest, exc: DonationNotOffered | InvalidDonation | t.Type[Exception]
) -> Response:
    """Handle a donation that does not fit the cart."""
    return Response(status=400, data={"detail": str(exc)})


def handle_table_full(request: HttpRequest, exc: TableFull | t.Type[TableFull]) -> Response:
    """Handle a referral to a purchase without free seats."""
    return Response(status=409, data={"detail": "All seats of this registration are already taken."})


def handle_broken_referral(request: HttpRequest, exc: BrokenReferral | t.Type[BrokenReferral]) -> Response:
    """Handle a referral whose guest is not linked to a purchaser."""
    logger.warning("broken_referral", path=request.path, error=str(exc))
    return Response(status=409, data={"detail": "This referral link is no longer valid."})


def handle_invalid_referral(request: HttpRequest, exc: InvalidReferral | t.Type[InvalidReferral]) -> Response:
    """Handle a referral token that does not resolve for the form."""
    return Response(status=404, data={"detail": "Referral not found."})


def handle_unknown_seating_reference(
    request: HttpRequest, exc: UnknownTableError | UnknownAttendeeError | t.Type[Exception]
) -> Response:
    """Handle seating input that points at tables or attendees outside the layout."""
    return Response(status=400, data={"detail": str(exc)})


SENSITIVE_KEYS = {"password", "token", "refresh", "access", "authorization", "cookie"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    if not isinstance(data, dict):
        return data
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
