"""
Domain Exceptions for the Consequence Engine.

Custom exceptions enforcing data-model rules at the collaborator boundary:
- Temporal consistency (start on or before end)
- Field validation
- Lookup failures

The analyzers themselves do not raise for incomplete plans; missing dates
and dangling ids are reported as "no violation".
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Schedule Exceptions
# =============================================================================

class InvalidDateRangeError(DomainError):
    """Raised when a start date falls after its end date."""

    def __init__(self, entity_id: str, start_date, end_date):
        message = (
            f"'{entity_id}' end date ({end_date}) must not be before "
            f"start date ({start_date})"
        )
        super().__init__(message, code="INVALID_DATE_RANGE")
        self.entity_id = entity_id
        self.start_date = start_date
        self.end_date = end_date


class InitiativeNotFoundError(DomainError):
    """Raised when an initiative cannot be found in a snapshot."""

    def __init__(self, initiative_id: str):
        message = f"Initiative with id '{initiative_id}' not found"
        super().__init__(message, code="INITIATIVE_NOT_FOUND")
        self.initiative_id = initiative_id


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationError(DomainError):
    """Raised when data validation fails."""

    def __init__(self, field: str, message: str):
        super().__init__(f"Validation failed for '{field}': {message}", code="VALIDATION_ERROR")
        self.field = field


class InvariantViolationError(DomainError):
    """Raised when a mathematical invariant is violated."""

    def __init__(self, invariant_name: str, expected: str, actual: str):
        message = (
            f"Invariant '{invariant_name}' violated. "
            f"Expected: {expected}, Actual: {actual}"
        )
        super().__init__(message, code="INVARIANT_VIOLATION")
        self.invariant_name = invariant_name
        self.expected = expected
        self.actual = actual
