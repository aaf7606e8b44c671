"""Workflow exceptions shared by the staff workflow services.

Every exception carries a message that can be shown to the user as-is.
"""


class WorkflowError(Exception):
    """Base class for workflow failures."""

    default_message = "The request could not be completed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateRequestError(WorkflowError):
    """Raised when the identity already has a pending request or a role."""

    default_message = "A staff access request is already pending for this account."


class NotFoundError(WorkflowError):
    """Raised when the referenced record does not exist."""

    default_message = "The requested record was not found."


class AlreadyDecidedError(WorkflowError):
    """Raised when a request has already been approved or rejected."""

    default_message = "This request has already been decided by another administrator."


class ForbiddenError(WorkflowError):
    """Raised when the actor may not perform the action on this record."""

    default_message = "You are not allowed to perform this action."


class EmptyJustificationError(WorkflowError):
    """Raised when an escalation is sent without a justification."""

    default_message = "Please explain why you need this permission."


class NoAdministratorsError(WorkflowError):
    """Raised when there is no administrator to route a request to."""

    default_message = "No administrators are available to review this request. Contact support."


class UnsupportedRoleError(WorkflowError):
    """Raised when a role is not accepted by intake or role storage."""

    default_message = "The requested role is not supported."


class UpstreamUnavailableError(WorkflowError):
    """Raised when storage cannot be reached."""

    default_message = "The service is temporarily unavailable. Please try again shortly."
