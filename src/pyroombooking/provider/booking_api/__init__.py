"""Booking API payment status provider."""

from .api import Provider

__all__ = ["Provider"]
