"""
Astrology Consultation Booking

A FastAPI-based backend for booking astrology consultations,
with password-based signup/login and per-user appointment management.
"""

__version__ = "1.0.0"
