"""
Liveness Check
==============

Single bounded TCP connect against the loopback host. The connection is
torn down as soon as it is established.
"""

import logging
import socket
from enum import Enum

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"
DEFAULT_LIVENESS_TIMEOUT = 2.0


class ProbeResult(Enum):
    """Outcome of the liveness check."""
    OPEN = "open"
    CLOSED = "closed"
    TIMEOUT = "timeout"
    NO_RESPONSE = "no_response"

    @property
    def is_open(self) -> bool:
        return self is ProbeResult.OPEN


def check_port(
    port: int,
    host: str = LOOPBACK_HOST,
    timeout: float = DEFAULT_LIVENESS_TIMEOUT
) -> ProbeResult:
    """
    Attempt one TCP connection to host:port.

    Args:
        port: Target port (upper bound is not pre-validated)
        host: Target host, loopback by default
        timeout: Connect timeout in seconds

    Returns:
        ProbeResult.OPEN if the handshake completed, otherwise the reason
        the port is considered closed
    """
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except socket.timeout:
        logger.debug("Liveness check on %s:%s timed out after %.1fs", host, port, timeout)
        return ProbeResult.TIMEOUT
    except ConnectionRefusedError:
        logger.debug("Liveness check on %s:%s refused", host, port)
        return ProbeResult.CLOSED
    except (OSError, OverflowError, ValueError, TypeError) as e:
        # OverflowError: port outside 0-65535
        logger.debug("Liveness check on %s:%s failed: %s", host, port, e)
        return ProbeResult.NO_RESPONSE

    logger.debug("Liveness check on %s:%s succeeded", host, port)
    return ProbeResult.OPEN

