"""Accept-Encoding negotiation (gzip or nothing)."""

from minihttpd.http_constants import ContentEncoding

SUPPORTED_COMPRESSIONS = frozenset({ContentEncoding.GZIP.value})


def negotiate_encoding(accept_encoding: str | None) -> ContentEncoding | None:
    """
    Negotiate compression based on Accept-Encoding header.

    Parses the Accept-Encoding header, which can contain multiple
    compression schemes separated by commas (e.g., "gzip, deflate, br").
    Quality parameters are ignored; gzip is selected whenever it is listed.

    Args:
        accept_encoding: Client's Accept-Encoding header value

    Returns:
        ContentEncoding.GZIP or None
    """
    if not accept_encoding:
        return None

    requested = [c.partition(";")[0].strip().lower() for c in accept_encoding.split(",")]
    supported = [c for c in requested if c in SUPPORTED_COMPRESSIONS]
    return ContentEncoding(supported[0]) if supported else None
