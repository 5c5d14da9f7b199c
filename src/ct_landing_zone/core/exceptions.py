"""Exception hierarchy for landing zone assembly.

All errors raised by this package derive from LandingZoneError. Validation
errors carry the offending field name and the rule that was violated so the
caller can report them without parsing the message.
"""

from typing import Optional


class LandingZoneError(Exception):
    """Base exception for landing zone assembly."""
    pass


class ValidationError(LandingZoneError):
    """Raised when a provisioning option violates a rule."""

    def __init__(self, field: str, rule: str, message: Optional[str] = None) -> None:
        self.field = field
        self.rule = rule
        super().__init__(message or f"Invalid value for '{field}': {rule}")


class MissingIdentifierError(ValidationError):
    """Raised when neither an email nor an existing account ID is supplied."""
    pass


class InvalidAccountIdError(ValidationError):
    """Raised when an account ID is not a 12-digit string."""
    pass


class GraphError(LandingZoneError):
    """Base exception for resource graph operations."""
    pass


class DuplicateResourceError(GraphError):
    """Raised when a logical ID is declared twice in the same graph."""
    pass


class UnknownResourceError(GraphError):
    """Raised when a dependency points at a resource outside the graph."""
    pass


class ConfigurationError(LandingZoneError):
    """Raised when configuration is invalid or missing."""
    pass
