"""
Failure classification: errors returned as data.

Every fault inside the build pipeline is converted into a FailureDetail
before it reaches the caller. Nothing escapes `build_deck` as an exception.

Taxonomy:
- ConfigurationError: malformed requirements, build aborts before filtering
- PoolInsufficientError: SOFT, a quota or land target could not be met
- SizeInvariantError: HARD, final deck size differs from the required size
- DeckValidationError: HARD, a structural invariant was violated
- PoolIngestionError: a raw card record could not be normalized (strict mode)
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input failures
    CONFIGURATION = "configuration"
    INVALID_CARD_RECORD = "invalid_card_record"

    # Soft failures (recorded as warnings)
    POOL_INSUFFICIENT = "pool_insufficient"

    # Constraint violations
    DECK_SIZE_VIOLATION = "deck_size_violation"
    COLOR_IDENTITY_VIOLATION = "color_identity_violation"
    EXCLUSION_VIOLATION = "exclusion_violation"
    COPY_LIMIT_VIOLATION = "copy_limit_violation"
    MUST_INCLUDE_VIOLATION = "must_include_violation"

    # Unknown
    UNKNOWN = "unknown"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="Human-readable explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the caller",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the engine knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class ConfigurationError(KnownError):
    """Raised when deck requirements are malformed. The build never starts."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.CONFIGURATION,
            message=message,
            detail=detail,
            suggestion="Fix the deck requirements and try again.",
        )


class PoolIngestionError(KnownError):
    """Raised in strict ingestion mode when a card record cannot be normalized."""

    def __init__(self, record_id: str, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(
            kind=FailureKind.INVALID_CARD_RECORD,
            message=f"Card record '{record_id}' is invalid",
            detail=reason,
        )


class PoolInsufficientError(KnownError):
    """
    Soft failure: the legal pool cannot satisfy a quota or land target.

    Never raised out of a phase. Phases collect instances and the
    orchestrator records them as warnings; the build continues.
    """

    def __init__(self, role: str, required: int, available: int):
        self.role = role
        self.required = required
        self.available = available
        super().__init__(
            kind=FailureKind.POOL_INSUFFICIENT,
            message=f"Low {role}: {available}/{required} cards",
            detail=f"{role}: pool supplied {available} of {required}",
            suggestion=f"Add more {role} cards to the candidate pool.",
        )


class SizeInvariantError(KnownError):
    """
    Hard failure: the finished deck does not have the required size.

    Undersized decks are never padded beyond the filler phase.
    """

    def __init__(
        self,
        requested_size: int,
        actual_size: int,
        detail: str | None = None,
    ):
        self.requested_size = requested_size
        self.actual_size = actual_size
        message = (
            f"Unable to construct a {requested_size}-card deck. "
            f"Only {actual_size} cards available with the given constraints."
        )
        super().__init__(
            kind=FailureKind.DECK_SIZE_VIOLATION,
            message=message,
            detail=detail,
            suggestion="Try relaxing color, budget or exclusion constraints, or widen the pool.",
        )


class DeckValidationError(KnownError):
    """Hard failure: a card violates a structural deck invariant."""

    def __init__(self, kind: FailureKind, card_id: str, reason: str):
        self.card_id = card_id
        self.reason = reason
        super().__init__(
            kind=kind,
            message=f"Deck validation failed for '{card_id}': {reason}",
        )


# Fixed, boring, predictable. Must not vary with runtime state.
UNKNOWN_FAILURE_MESSAGE = "The deck build failed and the cause is unknown."
UNKNOWN_FAILURE_SUGGESTION = "If this persists, please report the issue."


def create_unknown_failure(exception: Exception) -> FailureDetail:
    """
    Create a failure entry for an unexpected exception.

    The message is fixed. Only the exception type is recorded as detail.
    """
    return FailureDetail(
        kind=FailureKind.UNKNOWN,
        message=UNKNOWN_FAILURE_MESSAGE,
        detail=type(exception).__name__,
        suggestion=UNKNOWN_FAILURE_SUGGESTION,
    )
