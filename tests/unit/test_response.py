"""
Unit tests for response serialization.
"""

import asyncio
import gzip
import io
from http import HTTPStatus

import pytest

from minihttpd.exceptions import StreamAbortedError
from minihttpd.http_constants import CHUNK_SIZE, ContentEncoding, ContentType
from minihttpd.http_response import (
    HttpResponse,
    ResponseWriter,
    StreamedResponse,
    build_head,
    status_response,
)

FILE_CONTENT = bytes(range(256)) * 40 + b"tail"


def send(fake_writer, logger, response) -> ResponseWriter:
    response_writer = ResponseWriter(fake_writer, logger)
    asyncio.run(response_writer.send(response))
    return response_writer


class FailingSource(io.BytesIO):
    """Source whose reads fail once the first chunk has been served."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads = 0

    def read(self, size=-1):
        self.reads += 1
        if self.reads > 1:
            raise OSError("disk went away")
        return super().read(size)


class TestBuildHead:
    def test_header_order(self):
        head = build_head(HTTPStatus.OK, ContentType.TEXT_PLAIN, 3, ContentEncoding.GZIP)

        assert head == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/plain\r\n"
            b"Content-Encoding: gzip\r\n"
            b"Content-Length: 3\r\n"
            b"\r\n"
        )

    def test_no_encoding_header(self):
        head = build_head(HTTPStatus.NOT_FOUND, ContentType.TEXT_PLAIN, 0)

        assert b"Content-Encoding" not in head
        assert head.startswith(b"HTTP/1.1 404 Not Found\r\n")


class TestMaterializedResponse:
    """Tests for in-memory bodies."""

    def test_plain_body(self, fake_writer, logger, parse):
        send(fake_writer, logger, HttpResponse(HTTPStatus.OK, body=b"abc"))
        response = parse(fake_writer.data)

        assert response.status == 200
        assert response.headers["content-type"] == "text/plain"
        assert response.headers["content-length"] == "3"
        assert "content-encoding" not in response.headers
        assert response.body == b"abc"

    def test_gzip_length_is_compressed_length(self, fake_writer, logger, parse):
        body = b"compress me " * 100
        send(
            fake_writer,
            logger,
            HttpResponse(HTTPStatus.OK, body=body, encoding=ContentEncoding.GZIP),
        )
        response = parse(fake_writer.data)

        assert response.headers["content-encoding"] == "gzip"
        assert int(response.headers["content-length"]) == len(response.body)
        assert len(response.body) < len(body)
        assert gzip.decompress(response.body) == body

    def test_compression_failure_falls_back(self, fake_writer, logger, parse, monkeypatch):
        def broken_compress(data):
            raise OSError("no compressor")

        monkeypatch.setattr("minihttpd.http_response.gzip.compress", broken_compress)
        send(
            fake_writer,
            logger,
            HttpResponse(HTTPStatus.OK, body=b"plain", encoding=ContentEncoding.GZIP),
        )
        response = parse(fake_writer.data)

        assert response.status == 200
        assert "content-encoding" not in response.headers
        assert response.body == b"plain"

    @pytest.mark.parametrize(
        "status", [HTTPStatus.OK, HTTPStatus.CREATED, HTTPStatus.NOT_FOUND, HTTPStatus.INTERNAL_SERVER_ERROR]
    )
    def test_bodyless_responses_use_zero_length(self, fake_writer, logger, status):
        send(fake_writer, logger, status_response(status))

        assert fake_writer.data == (
            f"HTTP/1.1 {status.value} {status.phrase}\r\n"
            "Content-Type: text/plain\r\n"
            "Content-Length: 0\r\n\r\n"
        ).encode()

    def test_headers_sent_flag(self, fake_writer, logger):
        response_writer = send(fake_writer, logger, status_response(HTTPStatus.OK))

        assert response_writer.headers_sent is True


class TestStreamedResponse:
    """Tests for bodies copied from an open file."""

    def test_identity_stream_uses_bounded_chunks(self, fake_writer, logger, parse):
        source = io.BytesIO(FILE_CONTENT)
        send(
            fake_writer,
            logger,
            StreamedResponse(HTTPStatus.OK, ContentType.OCTET_STREAM, source, len(FILE_CONTENT)),
        )
        response = parse(fake_writer.data)

        assert response.headers["content-type"] == "application/octet-stream"
        assert response.headers["content-length"] == str(len(FILE_CONTENT))
        assert response.body == FILE_CONTENT
        body_writes = fake_writer.writes[1:]
        assert len(body_writes) > 1
        assert all(len(chunk) <= CHUNK_SIZE for chunk in body_writes)

    def test_source_is_closed(self, fake_writer, logger):
        source = io.BytesIO(b"data")
        send(
            fake_writer,
            logger,
            StreamedResponse(HTTPStatus.OK, ContentType.OCTET_STREAM, source, 4),
        )

        assert source.closed

    def test_empty_file(self, fake_writer, logger, parse):
        source = io.BytesIO(b"")
        send(
            fake_writer,
            logger,
            StreamedResponse(HTTPStatus.OK, ContentType.OCTET_STREAM, source, 0),
        )
        response = parse(fake_writer.data)

        assert response.status == 200
        assert response.headers["content-length"] == "0"
        assert response.body == b""

    def test_gzip_stream_is_compressed_before_head(self, fake_writer, logger, parse):
        source = io.BytesIO(FILE_CONTENT)
        send(
            fake_writer,
            logger,
            StreamedResponse(
                HTTPStatus.OK,
                ContentType.OCTET_STREAM,
                source,
                len(FILE_CONTENT),
                ContentEncoding.GZIP,
            ),
        )
        response = parse(fake_writer.data)

        assert response.headers["content-encoding"] == "gzip"
        assert int(response.headers["content-length"]) == len(response.body)
        assert gzip.decompress(response.body) == FILE_CONTENT

    def test_gzip_stream_failure_falls_back(self, fake_writer, logger, parse, monkeypatch):
        def broken_spool(source):
            source.read(10)
            raise OSError("no temp space")

        monkeypatch.setattr(ResponseWriter, "_compress_to_spool", staticmethod(broken_spool))
        source = io.BytesIO(FILE_CONTENT)
        send(
            fake_writer,
            logger,
            StreamedResponse(
                HTTPStatus.OK,
                ContentType.OCTET_STREAM,
                source,
                len(FILE_CONTENT),
                ContentEncoding.GZIP,
            ),
        )
        response = parse(fake_writer.data)

        assert "content-encoding" not in response.headers
        assert response.body == FILE_CONTENT

    def test_read_error_after_head_aborts(self, fake_writer, logger):
        source = FailingSource(FILE_CONTENT)
        response_writer = ResponseWriter(fake_writer, logger)
        response = StreamedResponse(
            HTTPStatus.OK, ContentType.OCTET_STREAM, source, len(FILE_CONTENT)
        )

        with pytest.raises(StreamAbortedError):
            asyncio.run(response_writer.send(response))

        assert response_writer.headers_sent is True
        assert source.closed
        assert len(fake_writer.data) < len(FILE_CONTENT)

    def test_short_source_aborts(self, fake_writer, logger):
        source = io.BytesIO(b"only this")
        response_writer = ResponseWriter(fake_writer, logger)
        response = StreamedResponse(HTTPStatus.OK, ContentType.OCTET_STREAM, source, 100)

        with pytest.raises(StreamAbortedError):
            asyncio.run(response_writer.send(response))
