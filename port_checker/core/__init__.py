"""
Core module initialization for Port Checker.
"""

from .errors import (
    PortCheckerError,
    ConnectionRefusedProbeError,
    ProbeTimeoutError,
    TransportError,
    PrivilegeDeniedError,
    SignalFailedError,
    ConfigError,
)
from .liveness import ProbeResult, check_port
from .service_detection import (
    ServiceKind,
    ServiceIdentification,
    ServiceDetector,
    classify_banner,
    merge_results,
)
from .process_lookup import BoundProcess, find_bound_process, terminate_process
from .port_probe import PortProbe, PortReport

__all__ = [
    'PortCheckerError',
    'ConnectionRefusedProbeError',
    'ProbeTimeoutError',
    'TransportError',
    'PrivilegeDeniedError',
    'SignalFailedError',
    'ConfigError',
    'ProbeResult',
    'check_port',
    'ServiceKind',
    'ServiceIdentification',
    'ServiceDetector',
    'classify_banner',
    'merge_results',
    'BoundProcess',
    'find_bound_process',
    'terminate_process',
    'PortProbe',
    'PortReport',
]
