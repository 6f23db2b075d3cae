"""Server-specific exceptions for better error handling."""


class HTTPServerError(Exception):
    """Base exception for HTTP server errors."""

    pass


class RequestProcessingError(HTTPServerError):
    """Errors during request processing."""

    pass


class RouteNotFoundError(RequestProcessingError):
    """Raised when the first path segment is not a known route."""

    def __init__(self, path: str):
        super().__init__(f"No route for path: {path!r}")
        self.path = path


class StreamAbortedError(HTTPServerError):
    """Raised when a streamed body fails after the headers went out."""

    pass
