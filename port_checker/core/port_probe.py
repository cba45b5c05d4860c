"""
Port Probe Pipeline
===================

Runs the detection steps one after another for a single port:

    liveness -> HTTP(S) probe -> process lookup -> banner probe -> merge

Each step owns its own connection and its own time bound. Nothing is
cached between runs.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .errors import PrivilegeDeniedError
from .liveness import DEFAULT_LIVENESS_TIMEOUT, LOOPBACK_HOST, ProbeResult, check_port
from .process_lookup import BoundProcess, find_bound_process
from .service_detection import ServiceDetector, ServiceIdentification, merge_results

logger = logging.getLogger(__name__)


@dataclass
class PortReport:
    """Everything learned about one port in one run."""
    port: int
    status: ProbeResult
    web_result: Optional[ServiceIdentification] = None
    banner_result: Optional[ServiceIdentification] = None
    protocol: Optional[ServiceIdentification] = None
    process: Optional[BoundProcess] = None
    process_error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status.is_open


class PortProbe:
    """
    Detection pipeline for a single loopback port.

    Args:
        port: Target port
        detector: Service detector holding HTTP(S)/banner settings
        liveness_timeout: Connect timeout for the liveness check
        always_run_banner_probe: Run the banner probe even after an HTTP hit
        process_finder: Process-lookup collaborator, psutil-backed by default
        host: Target host
    """

    def __init__(
        self,
        port: int,
        detector: Optional[ServiceDetector] = None,
        liveness_timeout: float = DEFAULT_LIVENESS_TIMEOUT,
        always_run_banner_probe: bool = False,
        process_finder: Optional[Callable[[int], Optional[BoundProcess]]] = None,
        host: str = LOOPBACK_HOST
    ):
        self.port = port
        self.host = host
        self.detector = detector or ServiceDetector(host=host)
        self.liveness_timeout = liveness_timeout
        self.always_run_banner_probe = always_run_banner_probe
        self.process_finder = process_finder or find_bound_process

    def run(self) -> PortReport:
        status = check_port(self.port, self.host, self.liveness_timeout)
        report = PortReport(port=self.port, status=status)
        if not status.is_open:
            logger.info("Port %s is closed (%s)", self.port, status.value)
            return report

        report.web_result = self.detector.detect_web(self.port)
        self._lookup_process(report)

        if report.web_result is not None and report.web_result.is_http \
                and not self.always_run_banner_probe:
            logger.debug("Skipping banner probe, web probe identified %s", report.web_result)
        else:
            report.banner_result = self.detector.detect_banner(self.port)

        report.protocol = merge_results(report.web_result, report.banner_result)
        logger.info("Port %s identified as %s", self.port, report.protocol)
        return report

    def _lookup_process(self, report: PortReport) -> None:
        """Process lookup failures are recorded on the report, never raised."""
        try:
            report.process = self.process_finder(self.port)
        except PrivilegeDeniedError as e:
            logger.debug("Unable to determine process bound to port %s: %s", self.port, e)
            report.process_error = str(e)
