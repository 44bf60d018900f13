# Domain entry parsing

import logging
from typing import Tuple
from urllib.parse import urlparse

logger = logging.getLogger("checkssl.lookup")


def parse_domain_entry(entry: str, default_port: int = 443) -> Tuple[str, int]:
    """
    Split a user supplied domain entry into (host, port).

    Accepts a bare host ('example.com'), a host with port ('example.com:8443')
    or a URL ('https://example.com/path'). Returns an empty host for an empty
    entry; an invalid or out of range port falls back to default_port.
    """
    entry = entry.strip()
    if not entry:
        return "", default_port

    candidate = entry if "://" in entry else f"https://{entry}"
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname
        port = parsed.port
    except ValueError:
        logger.warning(f"Invalid port in '{entry}', using default port {default_port}")
        try:
            host = urlparse(candidate.rsplit(":", 1)[0]).hostname
        except ValueError:
            # Unbalanced IPv6 brackets and the like; the connect step reports it.
            host = None
        port = None

    if not host:
        logger.warning(f"Could not extract hostname from '{entry}', using entry as host")
        return entry, default_port
    if port is None or not (1 <= port <= 65535):
        port = default_port
    return host, port
