"""Path splitting and route dispatch using a handler registry."""

from http import HTTPStatus

from minihttpd.exceptions import RouteNotFoundError
from minihttpd.http_constants import KNOWN_ROUTES, ContentEncoding, StandardRoute
from minihttpd.http_request import HTTPRequest
from minihttpd.http_response import status_response
from minihttpd.route_handler import Response, RouteHandler

PATH_SEPARATOR = "/"
MAX_SEGMENTS = 2


def split_path(path: str) -> tuple[str, ...]:
    """
    Split a request path into at most two route segments.

    Empty segments are discarded, so "/echo", "/echo/" and "//echo" are
    equivalent. Components past the second are dropped.

    Args:
        path: Decoded URL path (e.g., "/echo/hello")

    Returns:
        () for the root, (route,) or (route, argument)

    Raises:
        RouteNotFoundError: If the first segment is not a known route
    """
    segments = [segment for segment in path.split(PATH_SEPARATOR) if segment]
    if not segments:
        return ()
    if segments[0] not in KNOWN_ROUTES:
        raise RouteNotFoundError(path)
    return tuple(segments[:MAX_SEGMENTS])


class Router:
    """
    Route dispatcher using handler registry.

    Maps StandardRoute members to handler instances and dispatches
    requests to the appropriate handler.
    """

    def __init__(self):
        """Initialize router with empty handler registry."""
        self._handlers: dict[StandardRoute, RouteHandler] = {}

    def register(self, route: StandardRoute, handler: RouteHandler) -> None:
        """
        Register a handler for a route.

        Args:
            route: Route to serve
            handler: Handler instance implementing RouteHandler protocol
        """
        self._handlers[route] = handler

    def dispatch(
        self, request: HTTPRequest, encoding: ContentEncoding | None = None
    ) -> Response:
        """
        Dispatch request to appropriate handler.

        Args:
            request: Parsed HTTP request
            encoding: Negotiated content encoding passed on to the handler

        Returns:
            HTTP response from handler, or 404 if no handler registered

        Raises:
            RouteNotFoundError: If the path names an unknown route
        """
        segments = split_path(request.path)
        route = StandardRoute(segments[0]) if segments else StandardRoute.ROOT
        argument = segments[1] if len(segments) > 1 else None

        handler = self._handlers.get(route)
        if handler is None:
            return status_response(HTTPStatus.NOT_FOUND)

        return handler.handle(request, argument, encoding)

    def has_route(self, route: StandardRoute) -> bool:
        """
        Check if route has a registered handler.

        Args:
            route: Route to check

        Returns:
            True if handler registered for this route, False otherwise
        """
        return route in self._handlers
