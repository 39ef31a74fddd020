"""Error taxonomy for the document engine.

Validation errors block an action before any state is committed. Transient
service errors come from the AI collaborator and roll the flow back one step.
Persistence errors come from the artifact store and are surfaced as-is; the
in-memory project is not rolled back. Authorization errors force sign-out.
"""


class AnalystProError(Exception):
    """Base class for all engine errors."""


# =============================================================================
# Validation
# =============================================================================


class InputValidationError(AnalystProError):
    """Raised when user input blocks an action locally."""


class FileTooLargeError(InputValidationError):
    """Raised when a reference file exceeds the compressed-size ceiling."""

    def __init__(self, name: str, compressed_size: int, limit: int):
        self.name = name
        self.compressed_size = compressed_size
        self.limit = limit
        super().__init__(
            f'File "{name}" is too large even after compression '
            f"({compressed_size} bytes > {limit} bytes)."
        )


class FileDecodeError(InputValidationError):
    """Raised when a stored reference file payload cannot be decoded."""


class MissingAnswerError(InputValidationError):
    """Raised when a required interview question has no answer."""

    def __init__(self, question_ids: list[int]):
        self.question_ids = question_ids
        super().__init__(f"Required questions unanswered: {question_ids}")


class EmptyProjectNameError(InputValidationError):
    """Raised when a project is created or renamed with a blank name."""

    def __init__(self) -> None:
        super().__init__("Project name must not be empty")


class InvalidTransitionError(InputValidationError):
    """Raised when an orchestrator operation is not allowed from the current view."""


class NotFoundError(AnalystProError):
    """Raised when a project or artifact does not exist for the current owner."""


class BusyError(AnalystProError):
    """Raised when an operation conflicts with one already in flight."""


# =============================================================================
# Transient service failures
# =============================================================================


class TransientServiceError(AnalystProError):
    """Raised when a call to the AI collaborator fails."""


class QuestionGenerationError(TransientServiceError):
    """Raised when AI question generation fails."""


class GenerationFailedError(TransientServiceError):
    """Raised when document generation fails."""


class RefinementFailedError(TransientServiceError):
    """Raised when a refinement call fails."""


class RefinementRejectedError(RefinementFailedError):
    """Raised when a refinement changed text outside the targeted section."""


# =============================================================================
# Persistence / authorization
# =============================================================================


class PersistenceError(AnalystProError):
    """Raised when the artifact store fails to read or write."""


class AuthorizationError(AnalystProError):
    """Raised for absent or unverified identities."""
