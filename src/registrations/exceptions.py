"""Domain errors raised by the admission engine and its services."""


class RegistrationValidationError(Exception):
    """Raised when a submission is incomplete. Nothing has been written."""

    def __init__(self, errors: dict[str, str]) -> None:
        """Keep the per-field messages for the API response."""
        super().__init__("; ".join(f"{key}: {value}" for key, value in errors.items()))
        self.errors = errors


class PromoNotFound(Exception):
    """Raised when a promo code does not match any code of the form."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Promo code '{code}' not found.")
        self.code = code


class DonationNotOffered(Exception):
    """Raised when a donation is requested for a cart without table items."""


class InvalidDonation(Exception):
    """Raised when the donation would give away the purchaser's own seat."""


class InvalidReferral(Exception):
    """Raised when a referral token does not resolve to a primary of the expected form."""


class BrokenReferral(Exception):
    """Raised when a guest row points at another guest instead of a primary."""


class TableFull(Exception):
    """Raised when every seat of the referring purchase is already filled."""


class NotificationDeliveryError(Exception):
    """Raised by notification helpers when a message could not be delivered."""
