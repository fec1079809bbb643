"""Exceptions raised by the nightpos domain layer."""

from __future__ import annotations


class NightPosError(Exception):
    """Base class for domain errors."""


class ValidationError(NightPosError, ValueError):
    """An amount handed to the domain layer is out of range."""


class LineValidationError(ValidationError):
    """A menu line carries a price or quantity the pricing engine cannot accept."""


class ConfigError(NightPosError, ValueError):
    """Pricing configuration is out of range."""


class TicketClosedError(NightPosError):
    """A paid ticket was asked to change."""


class TicketNotFoundError(NightPosError, KeyError):
    """No ticket with the requested id exists."""


class CatalogImportError(NightPosError):
    """Menu JSON could not be applied. The message is shown to staff as-is."""


class AttendanceError(NightPosError):
    """Clock-in/out request does not match the open records."""
