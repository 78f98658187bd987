"""Error taxonomy for the itinerary lifecycle.

Every error carries a machine-usable ``error_code`` and an HTTP-like
``status_code`` so the API layer can render a specific message without
inspecting message strings.
"""

from typing import Any


class PlannerError(Exception):
    """Base error for all itinerary lifecycle failures."""

    error_code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a JSON-serializable dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(PlannerError):
    """Malformed or missing input, rejected before any I/O."""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self, message: str, field: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        self.field = field
        super().__init__(message, {"field": field, **(details or {})})


class NoUpdatesProvided(ValidationError):
    """Update batch contained no activity edits."""

    error_code = "NO_UPDATES_PROVIDED"

    def __init__(self) -> None:
        super().__init__(
            "No updates provided. At least one activity must be specified.", field="activities"
        )


class DuplicatePosition(ValidationError):
    """Two edits in the same batch target the same (day, position) slot."""

    error_code = "DUPLICATE_POSITION"

    def __init__(self, day_number: int, position: int) -> None:
        self.day_number = day_number
        self.position = position
        super().__init__(
            f"Duplicate position {position} on day {day_number}",
            field="activities",
            details={"day_number": day_number, "position": position},
        )


class SessionNotEditing(ValidationError):
    """Mutation attempted while the edit session is in viewing mode."""

    error_code = "SESSION_NOT_EDITING"

    def __init__(self, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} while not editing", details={"operation": operation}
        )


class NotFound(PlannerError):
    """Requested record does not exist (or is archived)."""

    error_code = "NOT_FOUND"
    status_code = 404


class Forbidden(PlannerError):
    """Record exists but belongs to a different user."""

    error_code = "FORBIDDEN"
    status_code = 403


class NotFoundOrForbidden(PlannerError):
    """Scoped update matched no row: activity missing or outside the plan."""

    error_code = "NOT_FOUND_OR_FORBIDDEN"
    status_code = 404

    def __init__(self, activity_id: str, plan_id: str) -> None:
        self.activity_id = activity_id
        self.plan_id = plan_id
        super().__init__(
            f"Activity {activity_id} not found or access denied",
            {"activity_id": activity_id, "plan_id": plan_id},
        )


class AlreadySubmitted(PlannerError):
    """Feedback for this (plan, user) pair already exists."""

    error_code = "ALREADY_SUBMITTED"
    status_code = 409


class PersistenceError(PlannerError):
    """Store write failed cleanly; nothing was persisted by this step."""

    error_code = "PERSISTENCE_ERROR"
    status_code = 500


class PersistencePartialFailure(PersistenceError):
    """Plan record was written but its activities were not.

    The plan remains persisted without activities and needs manual
    reconciliation.
    """

    error_code = "PERSISTENCE_PARTIAL_FAILURE"

    def __init__(self, plan_id: str, cause: str) -> None:
        self.plan_id = plan_id
        super().__init__(
            "Failed to save plan",
            {"plan_id": plan_id, "cause": cause},
        )


class GenerationFailed(PlannerError):
    """Draft generation failed; the user should adjust inputs, not retry."""

    error_code = "GENERATION_FAILED"
    status_code = 422
    reason = "generation_failed"


class ProviderError(GenerationFailed):
    """Provider call failed (network, HTTP status, empty content)."""

    reason = "provider_error"


class ProviderTimeout(GenerationFailed):
    """Provider call exceeded the fixed generation deadline."""

    reason = "timeout"


class RequestRejected(GenerationFailed):
    """Provider refused the request on content-policy grounds."""

    reason = "rejected"


class MalformedResponse(GenerationFailed):
    """Provider text contained no parseable JSON array."""

    reason = "malformed_response"


class EmptyResponse(GenerationFailed):
    """Provider returned an empty JSON array."""

    reason = "empty_response"


class InvalidActivityField(GenerationFailed):
    """An activity element carried an out-of-contract field value."""

    reason = "invalid_activity_field"

    def __init__(self, field: str, value: Any, index: int) -> None:
        self.field = field
        self.value = value
        self.index = index
        super().__init__(
            f"Invalid {field}: {value!r}",
            {"field": field, "value": repr(value), "index": index},
        )
