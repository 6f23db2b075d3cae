"""Route handlers using protocol pattern for extensibility."""

from http import HTTPStatus
from typing import Protocol

import minihttpd.http_constants as constants
from minihttpd.file_manager import FileManager
from minihttpd.http_request import HTTPRequest
from minihttpd.http_response import HttpResponse, StreamedResponse, status_response

Response = HttpResponse | StreamedResponse


class RouteHandler(Protocol):
    """Protocol for route handlers (structural subtyping)."""

    def handle(
        self,
        request: HTTPRequest,
        argument: str | None,
        encoding: constants.ContentEncoding | None,
    ) -> Response:
        """
        Handle HTTP request and return response.

        Args:
            request: Parsed HTTP request
            argument: Second path segment, if any
            encoding: Negotiated content encoding

        Returns:
            HTTP response to send to client
        """
        ...


class RootHandler:
    """Handler for root path '/'."""

    def handle(
        self,
        request: HTTPRequest,
        argument: str | None,
        encoding: constants.ContentEncoding | None,
    ) -> Response:
        """Return 200 OK with empty body."""
        return status_response(HTTPStatus.OK)


class EchoHandler:
    """Handler for /echo/<text> - echoes back the text."""

    def handle(
        self,
        request: HTTPRequest,
        argument: str | None,
        encoding: constants.ContentEncoding | None,
    ) -> Response:
        """Echo the route argument as text/plain."""
        body = (argument or "").encode("utf-8", constants.PATH_ERRORS)
        return HttpResponse(HTTPStatus.OK, constants.ContentType.TEXT_PLAIN, body, encoding)


class UserAgentHandler:
    """Handler for /user-agent - returns User-Agent header."""

    def handle(
        self,
        request: HTTPRequest,
        argument: str | None,
        encoding: constants.ContentEncoding | None,
    ) -> Response:
        """Return the User-Agent header value."""
        user_agent = request.header(constants.HTTPHeaders.USER_AGENT.value, "")
        return HttpResponse(
            HTTPStatus.OK, constants.ContentType.TEXT_PLAIN, user_agent.encode(), encoding
        )


class FileHandler:
    """Handler for /files/<filename> - GET/POST file operations."""

    def __init__(self, file_manager: FileManager):
        """
        Initialize FileHandler with a FileManager.

        Args:
            file_manager: FileManager instance for the served directory
        """
        self.file_manager = file_manager

    def handle(
        self,
        request: HTTPRequest,
        argument: str | None,
        encoding: constants.ContentEncoding | None,
    ) -> Response:
        """
        Route file operations based on HTTP method.

        Returns:
            HTTP response (200/201/404/500)
        """
        if not argument:
            return status_response(HTTPStatus.NOT_FOUND)

        match request.method:
            case constants.HTTPMethod.GET.value:
                return self._handle_get(argument, encoding)
            case constants.HTTPMethod.POST.value:
                return self._handle_post(argument, request.body)
            case _:
                return status_response(HTTPStatus.NOT_FOUND)

    def _handle_get(
        self, filename: str, encoding: constants.ContentEncoding | None
    ) -> Response:
        """
        Handle GET request to stream a file.

        Returns:
            200 with streamed file content, 404 if it cannot be opened
        """
        try:
            source, size = self.file_manager.open_file(filename)
        except (OSError, ValueError) as e:
            self.file_manager.logger.debug(f"Cannot open {filename!r}: {e}")
            return status_response(HTTPStatus.NOT_FOUND)

        return StreamedResponse(
            HTTPStatus.OK, constants.ContentType.OCTET_STREAM, source, size, encoding
        )

    def _handle_post(self, filename: str, content: bytes) -> Response:
        """
        Handle POST request to write file.

        Returns:
            201 on success, 500 on error
        """
        try:
            self.file_manager.write_file(filename, content)
        except (OSError, ValueError) as e:
            self.file_manager.logger.error(f"Cannot write {filename!r}: {e}")
            return status_response(HTTPStatus.INTERNAL_SERVER_ERROR)
        return status_response(HTTPStatus.CREATED)
