import logging
import socket

logger = logging.getLogger(__name__)


class SocketDnsResolver:
    """DnsResolverPort backed by the system resolver."""

    def resolves(self, hostname: str) -> bool:
        try:
            return bool(socket.getaddrinfo(hostname, None))
        except (socket.gaierror, UnicodeError) as e:
            logger.debug("DNS lookup failed for %s: %s", hostname, e)
            return False
