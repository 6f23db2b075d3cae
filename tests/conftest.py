"""
pytest configuration and fixtures.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import pytest

from minihttpd.http_server import HTTPServer


@dataclass
class RawResponse:
    """Response as seen by a client on the wire."""

    raw: bytes
    status: int
    headers: dict[str, str]
    body: bytes


def parse_response(raw: bytes) -> RawResponse:
    head, _, body = raw.partition(b"\r\n\r\n")
    status_line, *header_lines = head.decode().split("\r\n")
    version, code, _ = status_line.split(" ", 2)
    assert version == "HTTP/1.1"
    headers = {}
    for line in header_lines:
        key, _, value = line.partition(":")
        headers[key.strip().lower()] = value.strip()
    return RawResponse(raw, int(code), headers, body)


class FakeStreamWriter:
    """Collects everything a ResponseWriter writes."""

    def __init__(self):
        self.writes: list[bytes] = []
        self.closed = False

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    async def drain(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True

    def is_closing(self) -> bool:
        return self.closed

    @property
    def data(self) -> bytes:
        return b"".join(self.writes)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("minihttpd.tests")


@pytest.fixture
def fake_writer() -> FakeStreamWriter:
    return FakeStreamWriter()


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "served"
    directory.mkdir()
    return directory


async def _exchange(port: int, raw_request: bytes) -> bytes:
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    try:
        writer.write(raw_request)
        writer.write_eof()
        await writer.drain()
        return await reader.read()
    finally:
        writer.close()


@pytest.fixture
def serve(logger, files_dir) -> Callable[..., list[RawResponse]]:
    """
    Start a server on a free port, send each raw request on its own
    connection concurrently, and return the parsed responses in order.
    """

    def _serve(*raw_requests: bytes, directory: Path | None = None) -> list[RawResponse]:
        async def scenario() -> list[bytes]:
            http_server = HTTPServer(
                logger, "127.0.0.1", 0, str(directory or files_dir)
            )
            server = await http_server.listen()
            port = server.sockets[0].getsockname()[1]
            try:
                return await asyncio.gather(
                    *(_exchange(port, raw) for raw in raw_requests)
                )
            finally:
                server.close()
                await server.wait_closed()

        return [parse_response(raw) for raw in asyncio.run(scenario())]

    return _serve


def build_request(
    method: str,
    path: str,
    headers: dict[str, str] | None = None,
    body: bytes = b"",
) -> bytes:
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost:4221"]
    for key, value in (headers or {}).items():
        lines.append(f"{key}: {value}")
    if body or method == "POST":
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


@pytest.fixture
def make_request() -> Callable[..., bytes]:
    return build_request


@pytest.fixture
def parse() -> Callable[[bytes], RawResponse]:
    return parse_response
