"""Service layer for registrations."""
