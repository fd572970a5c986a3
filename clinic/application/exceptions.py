class AuthError(RuntimeError):
    """Raised when the remote auth service rejects credentials or fails to sign out or restore a session."""
    pass


class NotAuthenticatedError(AuthError):
    """Raised when an operation that needs a signed-in operator is called without one."""
    pass


class PersistenceError(RuntimeError):
    """Raised when a read or write against a remote table fails."""
    pass


class InvalidTransitionError(PersistenceError):
    """Raised when an appointment status change is not allowed from its current status."""
    pass


class NotFoundError(PersistenceError):
    """Raised when a remote record does not exist or is not visible to the caller."""
    pass


class SubscriptionError(RuntimeError):
    """Raised when the change-notification channel cannot be established."""
    pass
