"""Custom exceptions for tunnel listener."""


class TunnelError(Exception):
    """Base exception for all tunnel listener errors."""

    def __init__(self, message: str, inner: BaseException | None = None):
        super().__init__(message)
        self.inner = inner

    def root_cause(self) -> BaseException:
        """Follow the ``inner`` chain down to the original error."""
        error: BaseException = self
        while isinstance(error, TunnelError) and error.inner is not None:
            error = error.inner
        return error


class AcceptFailed(TunnelError):
    """Raised when the tunnel client fails to accept a connection."""

    def __init__(self, inner: BaseException):
        super().__init__(f"failed to accept connection: {inner}", inner)


class CloseFailed(TunnelError):
    """Raised when the tunnel client fails to close the tunnel."""

    def __init__(self, inner: BaseException):
        super().__init__(f"failed to close tunnel: {inner}", inner)


class CloseTimeout(TunnelError, TimeoutError):
    """Raised when the close context ends before the close is acknowledged."""
    pass


class ServeTerminated(TunnelError):
    """Raised when the HTTP serving loop stops."""

    def __init__(self, inner: BaseException):
        super().__init__(f"serve terminated: {inner}", inner)


class TunnelClosedError(TunnelError):
    """Raised when accepting on a tunnel that has already been closed."""
    pass


class ContextError(TunnelError):
    """Base exception for context cancellation."""
    pass


class ContextCancelled(ContextError):
    """The context was cancelled."""
    pass


class DeadlineExceeded(ContextError):
    """The context deadline passed."""
    pass
