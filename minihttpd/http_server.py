"""Async HTTP/1.1 server handling one request per connection."""

import asyncio
from http import HTTPStatus
from logging import Logger

from minihttpd.content_negotiation import negotiate_encoding
from minihttpd.exceptions import RouteNotFoundError
from minihttpd.file_manager import FileManager
from minihttpd.http_constants import HTTPHeaders, StandardRoute
from minihttpd.http_response import ResponseWriter, status_response
from minihttpd.request_parser import HTTPParseError, RequestParser
from minihttpd.route_handler import EchoHandler, FileHandler, RootHandler, UserAgentHandler
from minihttpd.router import Router


class HTTPServer:
    """
    Async HTTP/1.1 server using asyncio.

    Features:
    - One asyncio task per accepted connection
    - Exactly one request and one response per connection, then close
    - Compression support (gzip)
    - Streamed file downloads in fixed-size chunks
    - Pluggable routing via Router
    """

    def __init__(
        self,
        logger: Logger,
        host: str,
        port: int,
        files_directory: str,
        router: Router | None = None,
    ):
        """
        Initialize HTTP server.

        Args:
            logger: Logger instance for debug/info/error messages
            host: Host address to bind to
            port: Port number to listen on (0 picks a free port)
            files_directory: Directory served by the files route
            router: Optional Router instance (creates default if None)
        """
        self.logger = logger
        self.host = host
        self.port = port
        self.files_directory = files_directory

        self.router = router or self._create_default_router()

    def _create_default_router(self) -> Router:
        """
        Create router with standard handlers.

        Returns:
            Router instance with registered handlers
        """
        router = Router()

        router.register(StandardRoute.ROOT, RootHandler())
        router.register(StandardRoute.ECHO, EchoHandler())
        router.register(StandardRoute.USER_AGENT, UserAgentHandler())

        # File handler needs FileManager
        try:
            file_manager = FileManager(self.files_directory, self.logger)
            router.register(StandardRoute.FILES, FileHandler(file_manager))
        except ValueError as e:
            self.logger.warning(
                f"File handler not available: {e}. /files route will return 404"
            )

        return router

    async def listen(self) -> asyncio.AbstractServer:
        """Bind the listening socket and begin accepting connections."""
        server = await asyncio.start_server(
            self._handle_connection, self.host, self.port
        )
        for sock in server.sockets:
            self.logger.info(f"Listening on {sock.getsockname()}")
        return server

    async def start(self):
        """Start async server and accept connections forever."""
        server = await self.listen()
        async with server:
            await server.serve_forever()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ):
        """
        Handle a single client connection: one request, one response, close.

        Args:
            reader: Async stream reader for receiving data
            writer: Async stream writer for sending data
        """
        client_address = writer.get_extra_info("peername")
        self.logger.info(f"Connection from: {client_address}")
        response_writer = ResponseWriter(writer, self.logger)

        try:
            try:
                request = await RequestParser.read(reader)
            except HTTPParseError as e:
                self.logger.warning(f"Invalid request from {client_address}: {e}")
                await response_writer.send(
                    status_response(HTTPStatus.INTERNAL_SERVER_ERROR)
                )
                return

            self.logger.debug(
                f"{client_address} {request.method} {request.path} "
                f"({len(request.body)} body bytes)"
            )
            encoding = negotiate_encoding(
                request.header(HTTPHeaders.ACCEPT_ENCODING.value)
            )

            try:
                response = await asyncio.to_thread(
                    self.router.dispatch, request, encoding
                )
            except RouteNotFoundError as e:
                self.logger.debug(f"{client_address}: {e}")
                response = status_response(HTTPStatus.NOT_FOUND)

            await response_writer.send(response)
            self.logger.info(
                f"Sent {response.status.value} response to {client_address}"
            )

        except OSError as e:
            self.logger.warning(f"Socket error for {client_address}: {e}")
        except Exception as e:
            if response_writer.headers_sent:
                self.logger.error(
                    f"Response aborted for {client_address}: {e}", exc_info=True
                )
            else:
                self.logger.error(
                    f"Unexpected error for {client_address}: {e}", exc_info=True
                )
                await self._send_error(response_writer, client_address)
        finally:
            if not writer.is_closing():
                writer.close()

    async def _send_error(self, response_writer: ResponseWriter, client_address):
        try:
            await response_writer.send(
                status_response(HTTPStatus.INTERNAL_SERVER_ERROR)
            )
        except OSError as e:
            self.logger.warning(
                f"Failed to send error response to {client_address}: {e}"
            )
