"""Domain exceptions raised by the StudyTrack services.

Routers translate these into HTTP errors; every one of them is recoverable
by the user retrying with different input.
"""


class StudyTrackError(Exception):
    """Base exception for StudyTrack."""
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailed(StudyTrackError):
    """Input rejected before any state was changed."""
    status_code = 400


class NotFound(StudyTrackError):
    status_code = 404

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} '{item_id}' not found")


class InvalidOperation(StudyTrackError):
    """
    Edit attempted through the wrong owner.
    Raised e.g. when a course-embedded goal is edited through the standalone goal API.
    """
    status_code = 409


class ConfirmationRequired(StudyTrackError):
    """Destructive action requested without explicit confirmation."""
    status_code = 400

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Confirmation required to {action}. This action cannot be undone.")


class IdentityProviderError(StudyTrackError):
    """Error reported by the hosted identity provider, message passed through verbatim."""
    status_code = 400
