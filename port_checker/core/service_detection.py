"""
Service Detection Module for Port Checker

Guesses the protocol served on an open loopback port:
HTTP(S) fingerprinting with an HTTPS -> HTTP fallback, followed by a raw
banner grab triggered with an AMQP protocol header.
"""

import http.client
import logging
import re
import socket
import ssl
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Optional, Tuple, Union

import requests
import urllib3

from .errors import ConnectionRefusedProbeError, ProbeTimeoutError, TransportError
from .liveness import LOOPBACK_HOST

logger = logging.getLogger(__name__)

# AMQP 0-9-1 style protocol header: "AMQP" 0x00 0x01 0x00 0x00
AMQP_PROTOCOL_HEADER = b"AMQP\x00\x01\x00\x00"
BANNER_READ_SIZE = 1024

DEFAULT_HTTP_TIMEOUT = 5.0
DEFAULT_BANNER_TIMEOUT = 3.0

# Ports where a TLS hang-up is reported as a failed HTTPS handshake
HANDSHAKE_FAILED_PORTS = (443, 8243)
# Prometheus-style exporter port, always reported as plain TCP
TCP_FALLBACK_PORTS = (9615,)

HTTP_REQUEST_HEADERS = {
    "Host": "localhost",
    "User-Agent": "port-checker",
}

MYSQL_AUTH_PLUGINS = ("caching_sha2_password", "mysql_native_password")
VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")

# Exceptions meaning the remote end dropped the connection mid-exchange
HANG_UP_EXCEPTIONS = (
    ConnectionResetError,
    ConnectionAbortedError,
    BrokenPipeError,
    ssl.SSLEOFError,
    ssl.SSLZeroReturnError,
    http.client.RemoteDisconnected,
)
# OpenSSL reason codes for a TLS peer that vanished mid-handshake
HANG_UP_SSL_REASONS = ("UNEXPECTED_EOF_WHILE_READING",)


class ServiceKind(Enum):
    """Coarse protocol labels"""
    HTTP = "HTTP"
    HTTPS = "HTTPS"
    HTTPS_HANDSHAKE_FAILED = "HTTPS (handshake failed)"
    AMQP = "AMQP (JMS)"
    MYSQL = "MySQL"
    TCP = "TCP"
    UNKNOWN = "Unknown"
    TIMEOUT = "Timeout"
    NO_RESPONSE = "No response"


@dataclass(frozen=True)
class ServiceIdentification:
    """
    Final or intermediate protocol guess for a port.

    Attributes:
        kind: Protocol classification
        version: Extracted version (MySQL only)
        banner: Cleaned banner text (Unknown only)
        status: HTTP status line seen by the web probe, e.g. "200 OK"
    """
    kind: ServiceKind
    version: Optional[str] = None
    banner: Optional[str] = None
    status: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind is ServiceKind.MYSQL:
            return f"MySQL (version: {self.version or 'Unknown'})"
        if self.kind is ServiceKind.UNKNOWN:
            return f"Unknown (banner: {self.banner or ''})"
        return self.kind.value

    @property
    def is_http(self) -> bool:
        """True for HTTP, HTTPS and the handshake-failed variant."""
        return self.label.startswith("HTTP")

    def __str__(self) -> str:
        return self.label


class BannerExtractor:
    """Decode and clean raw service banners"""

    @classmethod
    def decode(cls, banner: Union[bytes, str]) -> str:
        """Byte-preserving decode used for classification."""
        if isinstance(banner, str):
            return banner
        return banner.decode("latin-1")

    @classmethod
    def clean_banner(cls, banner: Union[bytes, str]) -> str:
        """
        Banner text for display: same decode as classification, only trimmed.

        Args:
            banner: Raw banner bytes or text

        Returns:
            Banner string with surrounding whitespace removed
        """
        return cls.decode(banner).strip()

    @classmethod
    def extract_version(cls, banner: str) -> Optional[str]:
        match = VERSION_PATTERN.search(banner)
        return match.group(0) if match else None


def classify_banner(
    banner: Union[bytes, str],
    port: int,
    tcp_fallback_ports: Iterable[int] = TCP_FALLBACK_PORTS
) -> ServiceIdentification:
    """
    Classify a banner. First match wins, all tests are case-sensitive.

    Args:
        banner: Bytes received after the AMQP header was sent
        port: Probed port
        tcp_fallback_ports: Ports reported as TCP when nothing else matches

    Returns:
        ServiceIdentification for the banner
    """
    text = BannerExtractor.decode(banner)

    if text.startswith("AMQP"):
        return ServiceIdentification(ServiceKind.AMQP)
    if "HTTP" in text:
        return ServiceIdentification(ServiceKind.HTTP)
    if any(plugin in text for plugin in MYSQL_AUTH_PLUGINS):
        return ServiceIdentification(
            ServiceKind.MYSQL,
            version=BannerExtractor.extract_version(text)
        )
    if port in tcp_fallback_ports:
        return ServiceIdentification(ServiceKind.TCP)
    return ServiceIdentification(
        ServiceKind.UNKNOWN,
        banner=BannerExtractor.clean_banner(banner)
    )


def _iter_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Walk an exception, its causes and wrapped exceptions."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current

        # urllib3 MaxRetryError keeps the real failure in .reason
        reason = getattr(current, "reason", None)
        if isinstance(reason, BaseException):
            stack.append(reason)
        stack.extend(a for a in current.args if isinstance(a, BaseException))
        stack.append(current.__cause__)
        stack.append(current.__context__)


def is_hang_up(exc: BaseException) -> bool:
    """True if the remote end closed or reset the connection mid-exchange."""
    for error in _iter_exception_chain(exc):
        if isinstance(error, HANG_UP_EXCEPTIONS):
            return True
        reason = getattr(error, "reason", None)
        if isinstance(error, ssl.SSLError) and reason in HANG_UP_SSL_REASONS:
            return True
    return False


def send_request(scheme: str, port: int, host: str, timeout: float) -> Tuple[int, str]:
    """
    Issue one GET / request.

    Returns:
        (status_code, reason) of the response

    Raises:
        ProbeTimeoutError: No response within timeout
        ConnectionRefusedProbeError: Nothing accepted the connection
        TransportError: Any other transport failure, hang_up set when the
            remote end dropped the connection
    """
    url = f"{scheme}://{host}:{port}/"
    try:
        with warnings.catch_warnings():
            # Certificates are not verified; only the protocol matters here
            warnings.simplefilter("ignore", urllib3.exceptions.InsecureRequestWarning)
            with requests.Session() as session:
                # Loopback traffic must never go through a proxy from the environment
                session.trust_env = False
                response = session.get(
                    url,
                    headers=HTTP_REQUEST_HEADERS,
                    timeout=timeout,
                    verify=False,
                    allow_redirects=False,
                    stream=True,
                )
                response.close()
    except requests.Timeout as e:
        raise ProbeTimeoutError(f"{scheme.upper()} request timed out: {e}") from e
    except requests.RequestException as e:
        if any(isinstance(err, ConnectionRefusedError) for err in _iter_exception_chain(e)):
            raise ConnectionRefusedProbeError(f"{scheme.upper()} connection refused") from e
        raise TransportError(str(e), hang_up=is_hang_up(e)) from e
    except ValueError as e:
        # urllib3 rejects unusable timeouts before connecting
        raise TransportError(f"{scheme.upper()} request rejected: {e}") from e

    return response.status_code, response.reason or ""


class ProbeFunctions:
    """Blocking probe functions, each owning a single connection"""

    @staticmethod
    def probe_web(
        port: int,
        host: str = LOOPBACK_HOST,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        handshake_failed_ports: Iterable[int] = HANDSHAKE_FAILED_PORTS
    ) -> Optional[ServiceIdentification]:
        """
        HTTP(S) fingerprint: HTTPS first, then plain HTTP.

        Any response, whatever its status code, identifies the scheme.

        Returns:
            HTTPS, HTTP, HTTPS (handshake failed), or None
        """
        handshake_ports = tuple(handshake_failed_ports)

        try:
            code, reason = send_request("https", port, host, timeout)
            logger.debug("HTTPS probe on port %s answered %s %s", port, code, reason)
            return ServiceIdentification(ServiceKind.HTTPS, status=f"{code} {reason}".strip())
        except (ConnectionRefusedProbeError, ProbeTimeoutError, TransportError) as e:
            logger.debug("HTTPS probe on port %s failed: %s", port, e)
            if port in handshake_ports and isinstance(e, TransportError) and e.hang_up:
                return ServiceIdentification(ServiceKind.HTTPS_HANDSHAKE_FAILED)

        try:
            code, reason = send_request("http", port, host, timeout)
            logger.debug("HTTP probe on port %s answered %s %s", port, code, reason)
            return ServiceIdentification(ServiceKind.HTTP, status=f"{code} {reason}".strip())
        except (ConnectionRefusedProbeError, ProbeTimeoutError, TransportError) as e:
            logger.debug("HTTP probe on port %s failed: %s", port, e)
            if port in handshake_ports and isinstance(e, TransportError) and e.hang_up:
                return ServiceIdentification(ServiceKind.HTTPS_HANDSHAKE_FAILED)

        return None

    @staticmethod
    def probe_banner(
        port: int,
        host: str = LOOPBACK_HOST,
        timeout: float = DEFAULT_BANNER_TIMEOUT,
        tcp_fallback_ports: Iterable[int] = TCP_FALLBACK_PORTS
    ) -> ServiceIdentification:
        """
        Raw banner grab.

        Sends the AMQP protocol header and waits for the first chunk of
        data. The socket is closed on every path.
        """
        fallback_ports = tuple(tcp_fallback_ports)
        tcp_fallback = port in fallback_ports

        try:
            with socket.create_connection((host, port), timeout=timeout) as sock:
                sock.settimeout(timeout)
                sock.sendall(AMQP_PROTOCOL_HEADER)
                data = sock.recv(BANNER_READ_SIZE)
        except socket.timeout:
            logger.debug("Banner probe on port %s timed out after %.1fs", port, timeout)
            return ServiceIdentification(ServiceKind.TCP if tcp_fallback else ServiceKind.TIMEOUT)
        except (OSError, OverflowError, ValueError) as e:
            logger.debug("Banner probe on port %s failed: %s", port, e)
            return ServiceIdentification(ServiceKind.TCP if tcp_fallback else ServiceKind.NO_RESPONSE)

        if not data:
            # Peer closed without sending anything
            logger.debug("Banner probe on port %s: connection closed without data", port)
            return ServiceIdentification(ServiceKind.TCP if tcp_fallback else ServiceKind.NO_RESPONSE)

        logger.debug("Banner probe on port %s received %d bytes: %r", port, len(data), data[:64])
        return classify_banner(data, port, fallback_ports)


def merge_results(
    web_result: Optional[ServiceIdentification],
    banner_result: Optional[ServiceIdentification]
) -> Optional[ServiceIdentification]:
    """An HTTP-prefixed web result wins, otherwise the banner result is final."""
    if web_result is not None and web_result.is_http:
        return web_result
    return banner_result


class ServiceDetector:
    """
    Service detection with configured timeouts and special-case ports.

    Args:
        http_timeout: Per-request timeout for the HTTP(S) probe
        banner_timeout: Wait window for the banner probe
        handshake_failed_ports: Ports where a TLS hang-up means a failed handshake
        tcp_fallback_ports: Ports always reported as TCP by the banner probe
        host: Target host
    """

    def __init__(
        self,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        banner_timeout: float = DEFAULT_BANNER_TIMEOUT,
        handshake_failed_ports: Iterable[int] = HANDSHAKE_FAILED_PORTS,
        tcp_fallback_ports: Iterable[int] = TCP_FALLBACK_PORTS,
        host: str = LOOPBACK_HOST
    ):
        self.http_timeout = http_timeout
        self.banner_timeout = banner_timeout
        self.handshake_failed_ports = tuple(handshake_failed_ports)
        self.tcp_fallback_ports = tuple(tcp_fallback_ports)
        self.host = host

    def detect_web(self, port: int) -> Optional[ServiceIdentification]:
        return ProbeFunctions.probe_web(
            port, self.host, self.http_timeout, self.handshake_failed_ports
        )

    def detect_banner(self, port: int) -> ServiceIdentification:
        return ProbeFunctions.probe_banner(
            port, self.host, self.banner_timeout, self.tcp_fallback_ports
        )
