from enum import Enum

CHUNK_SIZE = 4096  # bytes per streamed body chunk
PATH_ERRORS = "surrogateescape"  # raw non-UTF-8 path bytes round-trip


class HTTPHeaders(str, Enum):
    """Standard HTTP header names (lowercase, as stored after parsing)."""

    USER_AGENT = "user-agent"
    ACCEPT_ENCODING = "accept-encoding"
    CONTENT_LENGTH = "content-length"


class HTTPMethod(str, Enum):
    """HTTP methods the file route understands."""

    GET = "GET"
    POST = "POST"


class StandardRoute(str, Enum):
    """Standard route names used in the server."""

    ROOT = ""
    ECHO = "echo"
    USER_AGENT = "user-agent"
    FILES = "files"


class ContentType(str, Enum):
    """Content-Type values the server emits."""

    TEXT_PLAIN = "text/plain"
    OCTET_STREAM = "application/octet-stream"


class ContentEncoding(str, Enum):
    """Content codings the server can apply."""

    GZIP = "gzip"


KNOWN_ROUTES = frozenset(
    route.value for route in StandardRoute if route is not StandardRoute.ROOT
)
