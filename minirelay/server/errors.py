from typing import Optional


class RelayError(Exception):
    """Base class of every error the relay reports."""
    pass

class UsageError(RelayError):
    """Raised when the process is started with invalid arguments."""
    pass

class ResourceExhaustion(RelayError):
    """Raised when growing a buffer or the registry runs out of memory."""
    pass

class TransportFault(RelayError):
    """Raised when a socket operation fails other than by orderly shutdown."""

    def __init__(self, message: str, handle: Optional[int] = None):
        super().__init__(message)
        self.handle = handle

class ClientDisconnected(Exception):
    """Raised when the client disconnects cleanly (e.g., closes the socket)."""
    pass

class ServerShutdown(BaseException):
    """
    Raised from a termination signal handler to leave the relay loop.

    Derives from BaseException, like KeyboardInterrupt, so that handlers
    catching Exception (logging's among them) let it through.
    """
    pass
