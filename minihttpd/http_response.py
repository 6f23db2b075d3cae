import asyncio
import gzip
import shutil
import tempfile
import zlib
from dataclasses import dataclass
from http import HTTPStatus
from logging import Logger
from typing import BinaryIO

from minihttpd.exceptions import StreamAbortedError
from minihttpd.http_constants import CHUNK_SIZE, ContentEncoding, ContentType

HEADER_SEPARATOR = "\r\n"


@dataclass(frozen=True)
class HttpResponse:
    """Response whose body is fully held in memory."""

    status: HTTPStatus
    content_type: ContentType = ContentType.TEXT_PLAIN
    body: bytes = b""
    encoding: ContentEncoding | None = None


@dataclass(frozen=True)
class StreamedResponse:
    """Response whose body is copied from an open file in chunks."""

    status: HTTPStatus
    content_type: ContentType
    source: BinaryIO
    content_length: int
    encoding: ContentEncoding | None = None


def status_response(status: HTTPStatus) -> HttpResponse:
    """Bodyless plain-text response (Content-Length: 0)."""
    return HttpResponse(status)


def build_head(
    status: HTTPStatus,
    content_type: ContentType,
    content_length: int,
    encoding: ContentEncoding | None = None,
) -> bytes:
    lines = [
        f"HTTP/1.1 {status.value} {status.phrase}",
        f"Content-Type: {content_type.value}",
    ]
    if encoding is not None:
        lines.append(f"Content-Encoding: {encoding.value}")
    lines.append(f"Content-Length: {content_length}")
    return (HEADER_SEPARATOR.join(lines) + HEADER_SEPARATOR * 2).encode()


class ResponseWriter:
    """
    Serializes responses onto one connection.

    The head is only written once the final body length is known, so a
    compressed body is always compressed in full before Content-Length is
    computed. ``headers_sent`` tells the caller whether an error can still
    be answered with a status response.
    """

    def __init__(self, writer: asyncio.StreamWriter, logger: Logger):
        self.writer = writer
        self.logger = logger
        self.headers_sent = False

    async def send(self, response: HttpResponse | StreamedResponse) -> None:
        match response:
            case StreamedResponse():
                await self.send_stream(response)
            case HttpResponse():
                await self.send_materialized(response)
            case _:
                raise TypeError(f"Unsupported response type: {type(response)!r}")

    async def send_materialized(self, response: HttpResponse) -> None:
        body, encoding = self._encode_content(response.body, response.encoding)
        head = build_head(response.status, response.content_type, len(body), encoding)
        await self._write_head(head)
        self.writer.write(body)
        await self.writer.drain()

    async def send_stream(self, response: StreamedResponse) -> None:
        """
        Copy the response source to the connection in CHUNK_SIZE pieces.

        With gzip selected the source is first compressed into a temporary
        file whose size becomes the Content-Length.

        Raises:
            StreamAbortedError: If reading the source fails after the head is sent
        """
        source, length, encoding = response.source, response.content_length, None
        spool = None
        try:
            if response.encoding is ContentEncoding.GZIP:
                try:
                    spool = await asyncio.to_thread(self._compress_to_spool, source)
                except (OSError, zlib.error) as e:
                    self.logger.warning(f"Compression failed, sending identity body: {e}")
                    await asyncio.to_thread(source.seek, 0)
                else:
                    source, encoding = spool, response.encoding
                    length = await asyncio.to_thread(self._spooled_size, spool)

            head = build_head(response.status, response.content_type, length, encoding)
            await self._write_head(head)
            await self._copy(source, length)
        finally:
            response.source.close()
            if spool is not None:
                spool.close()

    async def _write_head(self, head: bytes) -> None:
        self.writer.write(head)
        self.headers_sent = True
        await self.writer.drain()

    async def _copy(self, source: BinaryIO, length: int) -> None:
        remaining = length
        while remaining > 0:
            try:
                chunk = await asyncio.to_thread(source.read, min(CHUNK_SIZE, remaining))
            except OSError as e:
                raise StreamAbortedError(f"Read failed mid-stream: {e}") from e
            if not chunk:
                raise StreamAbortedError(
                    f"Source ended with {remaining} of {length} bytes unsent"
                )
            self.writer.write(chunk)
            await self.writer.drain()
            remaining -= len(chunk)

    def _encode_content(
        self, body: bytes, encoding: ContentEncoding | None
    ) -> tuple[bytes, ContentEncoding | None]:
        match encoding:
            case ContentEncoding.GZIP:
                try:
                    return gzip.compress(body), encoding
                except (OSError, zlib.error) as e:
                    self.logger.warning(f"Compression failed, sending identity body: {e}")
                    return body, None
            case _:
                return body, None

    @staticmethod
    def _compress_to_spool(source: BinaryIO) -> BinaryIO:
        spool = tempfile.TemporaryFile()
        try:
            with gzip.GzipFile(fileobj=spool, mode="wb") as compressor:
                shutil.copyfileobj(source, compressor, CHUNK_SIZE)
            spool.seek(0)
        except BaseException:
            spool.close()
            raise
        return spool

    @staticmethod
    def _spooled_size(spool: BinaryIO) -> int:
        spool.seek(0, 2)
        size = spool.tell()
        spool.seek(0)
        return size
