"""
Error taxonomy for Port Checker.

Network errors never leave a probe; they are converted into a
ProbeResult or a ServiceIdentification. Process errors are caught by the
pipeline or the CLI and reported to the user.
"""


class PortCheckerError(Exception):
    """Base class for all Port Checker errors."""
    pass


class ConnectionRefusedProbeError(PortCheckerError):
    """Target actively refused the connection."""
    pass


class ProbeTimeoutError(PortCheckerError):
    """Probe exceeded its time bound."""
    pass


class TransportError(PortCheckerError):
    """Transport-level failure (TLS handshake, reset, hang-up)."""

    def __init__(self, message: str, hang_up: bool = False):
        super().__init__(message)
        self.hang_up = hang_up


class PrivilegeDeniedError(PortCheckerError):
    """Process lookup is not permitted for the current user."""
    pass


class SignalFailedError(PortCheckerError):
    """Termination signal could not be delivered."""

    def __init__(self, pid: int, reason: str):
        super().__init__(f"Failed to kill process {pid}: {reason}")
        self.pid = pid
        self.reason = reason


class ConfigError(PortCheckerError):
    """Configuration file is unreadable or fails validation."""
    pass
