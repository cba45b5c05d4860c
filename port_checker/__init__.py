"""
Port Checker v1.0.0 - Local Port Inspector
==========================================

Checks a single TCP port on the loopback host, guesses the protocol
served on it (HTTP/HTTPS, AMQP, MySQL, TCP) and reports the process
bound to it.

Usage:
    from port_checker import PortProbe
    report = PortProbe(8080).run()
    print(report.protocol)

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Port Checker Team"

from port_checker.core.port_probe import PortProbe, PortReport

__all__ = [
    'PortProbe',
    'PortReport',
    '__version__',
]
