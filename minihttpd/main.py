import argparse
import asyncio
import logging

from minihttpd.http_server import HTTPServer

HOST = "localhost"
PORT = 4221


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="minihttpd")
    parser.add_argument("--directory", default="./", help="Files directory")
    parser.add_argument("--host", default=HOST, help="Address to bind to")
    parser.add_argument("--port", type=int, default=PORT, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None):
    """Main entry point for the async HTTP server."""
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level)
    logger = logging.getLogger(__name__)
    http_server = HTTPServer(
        logger, host=args.host, port=args.port, files_directory=args.directory
    )
    await http_server.start()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
