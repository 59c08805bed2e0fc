"""
Test suite for the Astrology Consultation Booking API.

Contains unit and integration tests for authentication and appointments.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("ALLOWED_ORIGINS", "[\"http://testserver\"]")
