"""Seating persistence services."""
