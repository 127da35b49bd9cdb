"""
Error taxonomy for guidance validation and feedback recording.

Only context validation errors and total collaborator unavailability fail a
validation request; everything else degrades into Info-level issues.
"""


class GuidanceEngineError(Exception):
    """Base class for engine errors surfaced to callers."""


class InvalidCaseContext(GuidanceEngineError):
    """Malformed or unknown case facts. Client error, never retried."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class UnknownJurisdiction(InvalidCaseContext):
    def __init__(self, jurisdiction: str):
        self.jurisdiction = jurisdiction
        super().__init__("jurisdiction", f"unknown jurisdiction '{jurisdiction}'")


class CollaboratorTimeout(GuidanceEngineError):
    """An external collaborator did not answer within its timeout."""

    def __init__(self, collaborator: str, timeout: float):
        self.collaborator = collaborator
        self.timeout = timeout
        super().__init__(f"{collaborator} timed out after {timeout:.1f}s")


class CollaboratorUnavailable(GuidanceEngineError):
    """Collaborators failed beyond the retry budget and no partial result is computable."""

    def __init__(self, collaborators: list[str] | tuple[str, ...], detail: str = ""):
        self.collaborators = tuple(collaborators)
        self.detail = detail
        message = f"collaborators unavailable: {', '.join(self.collaborators)}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class FeedbackConflict(GuidanceEngineError):
    """Storage reported a write conflict for a feedback upsert."""

    def __init__(self, session_id: str, precedent_id: str):
        self.session_id = session_id
        self.precedent_id = precedent_id
        super().__init__(f"write conflict recording feedback for precedent {precedent_id}")


class RateLimitExceeded(GuidanceEngineError):
    """A session exceeded its feedback submission budget."""

    def __init__(self, retry_after: int, limit: int):
        self.retry_after = retry_after
        self.limit = limit
        super().__init__(f"rate limit of {limit} submissions exceeded; retry after {retry_after}s")


class InvalidFeedback(GuidanceEngineError):
    """Malformed feedback submission (missing ids, bad session id). Client error."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
