"""Project-wide fixtures: users, API clients and a ready-to-sell ticket form."""

import secrets
import string
import typing as t
from decimal import Decimal

import faker
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AbstractUser
from django.core.cache import cache
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken

from registrations.models import FormField, PromoCode, TicketForm, TicketItem

fake = faker.Faker()


@pytest.fixture(autouse=True)
def enable_celery_eager_mode(settings: t.Any) -> None:
    """Run Celery tasks synchronously so their side effects can be asserted."""
    settings.CELERY_TASK_ALWAYS_EAGER = True
    settings.CELERY_TASK_EAGER_PROPAGATES = True


@pytest.fixture(autouse=True)
def clear_throttle_cache() -> t.Iterator[None]:
    """Throttle history lives in the cache; start every test with a clean slate."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def live_emails(settings: t.Any) -> None:
    """Deliver test mail to the addresses given, not to the catch-all."""
    settings.LIVE_EMAILS = True


class UserFactory:
    """Factory for creating users for testing."""

    def create_user(self, **kwargs: t.Any) -> AbstractUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)))
        email = kwargs.pop("email", f"{username}@user.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", fake.first_name())
        last_name = kwargs.pop("last_name", fake.last_name())
        return get_user_model().objects.create_user(  # type: ignore[no-any-return]
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> AbstractUser:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> UserFactory:
    return UserFactory()


@pytest.fixture
def organizer(user_factory: UserFactory) -> AbstractUser:
    """The owner of the ticket form fixtures."""
    return user_factory(username="organizer")


@pytest.fixture
def other_organizer(user_factory: UserFactory) -> AbstractUser:
    return user_factory(username="other_organizer")


@pytest.fixture
def superuser(user_factory: UserFactory) -> AbstractUser:
    return user_factory(username="admin", is_superuser=True, is_staff=True)


def _client_for(user: AbstractUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def organizer_client(organizer: AbstractUser) -> Client:
    """API client for the form owner."""
    return _client_for(organizer)


@pytest.fixture
def other_organizer_client(other_organizer: AbstractUser) -> Client:
    """API client for a user who owns none of the fixture forms."""
    return _client_for(other_organizer)


@pytest.fixture
def superuser_client(superuser: AbstractUser) -> Client:
    return _client_for(superuser)


@pytest.fixture
def ticket_form(organizer: AbstractUser) -> TicketForm:
    """An active form with donations enabled."""
    return TicketForm.objects.create(
        owner=organizer,
        title="Spring Gala",
        status=TicketForm.Status.ACTIVE,
        currency="USD",
        enable_donations=True,
        referral_base_url="https://tickets.example.com/gala",
    )


@pytest.fixture
def name_field(ticket_form: TicketForm) -> FormField:
    return FormField.objects.create(
        form=ticket_form, field_type=FormField.FieldType.TEXT, label="Full Name", required=True, order=0
    )


@pytest.fixture
def email_field(ticket_form: TicketForm) -> FormField:
    return FormField.objects.create(
        form=ticket_form, field_type=FormField.FieldType.EMAIL, label="Email", required=True, order=1
    )


@pytest.fixture
def ga_item(ticket_form: TicketForm) -> TicketItem:
    """A single-seat ticket."""
    return TicketItem.objects.create(
        form=ticket_form, name="General Admission", unit_price=Decimal("50.00"), max_per_order=10, order=0
    )


@pytest.fixture
def table_item(ticket_form: TicketForm) -> TicketItem:
    """A table for eight."""
    return TicketItem.objects.create(
        form=ticket_form, name="Table", unit_price=Decimal("400.00"), seats_per_unit=8, max_per_order=5, order=1
    )


@pytest.fixture
def save10(ticket_form: TicketForm) -> PromoCode:
    return PromoCode.objects.create(
        form=ticket_form, code="SAVE10", discount_type=PromoCode.DiscountType.PERCENT, value=Decimal("10")
    )


@pytest.fixture
def purchaser_answers(name_field: FormField, email_field: FormField) -> dict[str, str]:
    """Main form answers of a purchaser, keyed by field id."""
    return {str(name_field.id): "Jane Doe", str(email_field.id): "jane@example.com"}
