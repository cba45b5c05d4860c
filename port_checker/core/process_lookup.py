"""
Process Lookup
==============

Finds the process listening on a local TCP port and terminates it on
request. Listener enumeration goes through psutil, so no process-listing
tool is shelled out to and no text output is parsed.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import psutil

from .errors import PrivilegeDeniedError, SignalFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundProcess:
    """Process bound to a port."""
    name: str
    pid: int
    address: str = ""

    def __str__(self) -> str:
        return f"{self.name} (pid: {self.pid})"


def _listening_connections(port: int):
    try:
        connections = psutil.net_connections(kind="tcp")
    except psutil.AccessDenied as e:
        # macOS and some BSDs need root for system-wide enumeration
        raise PrivilegeDeniedError(f"Listing sockets is not permitted: {e}") from e

    for conn in connections:
        if not conn.laddr or conn.status != psutil.CONN_LISTEN:
            continue
        if conn.laddr.port == port:
            yield conn


def find_bound_process(port: int) -> Optional[BoundProcess]:
    """
    Find the process listening on a TCP port.

    Args:
        port: Local port number

    Returns:
        BoundProcess, or None when nothing is listening

    Raises:
        PrivilegeDeniedError: A listener exists but its owner cannot be read
    """
    denied = False

    for conn in _listening_connections(port):
        if not conn.pid:
            # Socket owned by another user; pid hidden without privileges
            denied = True
            continue

        try:
            name = psutil.Process(conn.pid).name()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            name = "unknown"

        address = f"{conn.laddr.ip}:{conn.laddr.port}"
        logger.debug("Port %s bound by %s (pid %s) on %s", port, name, conn.pid, address)
        return BoundProcess(name=name, pid=conn.pid, address=address)

    if denied:
        raise PrivilegeDeniedError(f"Owner of port {port} is hidden from the current user")

    logger.debug("No listening process found for port %s", port)
    return None


def terminate_process(pid: int) -> None:
    """
    Send a termination signal (SIGTERM on POSIX) to a process.

    Raises:
        SignalFailedError: The process is gone or cannot be signalled
    """
    try:
        psutil.Process(pid).terminate()
    except psutil.NoSuchProcess as e:
        raise SignalFailedError(pid, "no such process") from e
    except psutil.AccessDenied as e:
        raise SignalFailedError(pid, "permission denied") from e
    except (psutil.Error, OSError) as e:
        raise SignalFailedError(pid, str(e)) from e

    logger.debug("Sent termination signal to pid %s", pid)
