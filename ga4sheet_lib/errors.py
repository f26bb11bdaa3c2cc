"""Exception types raised by the report pipeline."""

from __future__ import annotations


class ReportError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationMissing(ReportError):
    """The configuration worksheet does not exist."""


class ConfigurationError(ReportError, ValueError):
    """A configuration column holds content that cannot be compiled."""


class TooManyDateRanges(ConfigurationError):
    """More than ``MAX_DATE_RANGES`` date ranges in one field."""


class InvalidDateRange(ConfigurationError):
    """A date range token is not of the form ``start:end``."""


class InvalidDateAlias(ConfigurationError):
    """A date token could not be resolved to a calendar date."""


class FieldOrderError(ConfigurationError):
    """A configuration cell label does not match the expected field."""


class InvalidRequestOption(ConfigurationError):
    """A pass-through request option cell holds a value of the wrong type."""


class ExecutionFailure(ReportError):
    """The analytics service failed for one report."""

    def __init__(self, property_id: str, name: str, error: Exception):
        self.property_id = property_id
        self.name = name
        self.error = error
        super().__init__(
            f"Something went wrong with getting data for {property_id}/{name}: {error}"
        )


class ResponseShapeError(ReportError, ValueError):
    """A report response cannot be flattened into rows."""
