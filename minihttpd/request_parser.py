import asyncio
from urllib.parse import unquote, urlsplit

from minihttpd.http_constants import PATH_ERRORS, HTTPHeaders
from minihttpd.http_request import HTTPRequest


# Exception Hierarchy
class HTTPParseError(Exception):
    """Base exception for HTTP parsing errors"""

    pass


class EmptyRequestError(HTTPParseError):
    """Raised when the peer closes before sending any bytes"""

    pass


class IncompleteRequestError(HTTPParseError):
    """Raised when the stream ends or overflows before the request is complete"""

    pass


class InvalidEncodingError(HTTPParseError):
    """Raised when request head cannot be decoded as UTF-8"""

    pass


class InvalidRequestLineError(HTTPParseError):
    """Raised when request line format is invalid"""

    pass


class InvalidHeaderError(HTTPParseError):
    """Raised when header format is malformed"""

    pass


class InvalidContentLengthError(HTTPParseError):
    """Raised when Content-Length is not a non-negative integer"""

    pass


# HTTP Protocol Constants
REQUEST_LINE_SEPARATOR = "\r\n"
HEADER_BODY_SEPARATOR = b"\r\n\r\n"
HEADER_KEY_VALUE_SEPARATOR = ":"
HTTP_VERSION_PREFIX = "HTTP/"
TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789"
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
DEFAULT_ENCODING = "utf-8"


class RequestParser:
    """HTTP request reader with validation and error handling"""

    @staticmethod
    async def read(reader: asyncio.StreamReader) -> HTTPRequest:
        """
        Read exactly one HTTP request off a connection stream.

        The head is consumed up to the blank line; the body is read only
        when a Content-Length header is present, and then exactly that
        many bytes are consumed.

        Args:
            reader: Async stream reader for the connection

        Returns:
            HTTPRequest object with parsed data

        Raises:
            HTTPParseError: If the request is malformed or the stream ends early
        """
        try:
            raw_head = await reader.readuntil(HEADER_BODY_SEPARATOR)
        except asyncio.IncompleteReadError as e:
            if not e.partial:
                raise EmptyRequestError("Connection closed before any request data")
            raise IncompleteRequestError(
                f"Stream ended after {len(e.partial)} bytes of request head"
            )
        except asyncio.LimitOverrunError as e:
            raise IncompleteRequestError(f"Request head too large: {e}")

        method, path, headers = RequestParser.parse_head(raw_head)
        content_length = RequestParser._content_length(headers)

        body = b""
        if content_length:
            try:
                body = await reader.readexactly(content_length)
            except asyncio.IncompleteReadError as e:
                raise IncompleteRequestError(
                    f"Body truncated: expected {content_length} bytes, "
                    f"got {len(e.partial)}"
                )

        return HTTPRequest(method=method, path=path, headers=headers, body=body)

    @staticmethod
    def parse_head(raw_head: bytes) -> tuple[str, str, dict[str, str]]:
        """
        Parse the request line and headers.

        Args:
            raw_head: Request head bytes, optionally ending in the blank line

        Returns:
            Tuple of (method, path, headers)

        Raises:
            HTTPParseError: If the head is malformed
        """
        try:
            head = raw_head.decode(DEFAULT_ENCODING)
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(f"Invalid UTF-8 encoding: {e}")

        head = head.removesuffix(REQUEST_LINE_SEPARATOR * 2)
        req_line, _, header_string = head.partition(REQUEST_LINE_SEPARATOR)

        method, target = RequestParser._parse_request_line(req_line)
        path = RequestParser._parse_target(target)
        headers = RequestParser._parse_headers(header_string)
        return method, path, headers

    @staticmethod
    def _parse_request_line(line: str) -> tuple[str, str]:
        """
        Parse HTTP request line into method and target.

        Args:
            line: Request line string (e.g., "GET /path HTTP/1.1")

        Returns:
            Tuple of (method, target)

        Raises:
            InvalidRequestLineError: If request line format is invalid
        """
        components = line.split(" ")
        if len(components) != 3:
            raise InvalidRequestLineError(
                f"Invalid request line format. Expected 3 components, got {len(components)}"
            )

        method, target, version = components
        if not method or not set(method) <= TOKEN_CHARS:
            raise InvalidRequestLineError(f"Invalid method token: {method!r}")
        if not target:
            raise InvalidRequestLineError("Empty request target")
        if not version.startswith(HTTP_VERSION_PREFIX):
            raise InvalidRequestLineError(f"Invalid HTTP version: {version!r}")
        return method, target

    @staticmethod
    def _parse_target(target: str) -> str:
        # Query strings are not routed on; undecodable escapes survive as surrogates.
        if target.startswith("/"):
            path, _, _ = target.partition("?")
        else:
            path = urlsplit(target).path
        return unquote(path, errors=PATH_ERRORS)

    @staticmethod
    def _parse_headers(header_string: str) -> dict[str, str]:
        """
        Parse header string into dictionary keyed by lower-cased name.

        The first occurrence of a repeated header wins.
        """
        headers_dict: dict[str, str] = {}
        if not header_string:
            return headers_dict

        for header in header_string.split(REQUEST_LINE_SEPARATOR):
            key, sep, value = header.partition(HEADER_KEY_VALUE_SEPARATOR)
            key = key.strip()
            if not sep or not key:
                raise InvalidHeaderError(f"Malformed header line: {header!r}")
            headers_dict.setdefault(key.lower(), value.strip())
        return headers_dict

    @staticmethod
    def _content_length(headers: dict[str, str]) -> int:
        raw_length = headers.get(HTTPHeaders.CONTENT_LENGTH.value)
        if raw_length is None:
            return 0
        if not (raw_length.isascii() and raw_length.isdigit()):
            raise InvalidContentLengthError(f"Invalid Content-Length: {raw_length!r}")
        return int(raw_length)
