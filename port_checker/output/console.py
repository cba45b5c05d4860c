"""
Port Checker - Console Output
=============================

Human-readable report rendering. Colors come from colorama and are only
emitted when enabled and the stream is a terminal.
"""

import sys
from typing import Optional, TextIO

from colorama import Fore, Style

from ..core.port_probe import PortReport
from ..core.service_detection import ServiceKind


class ConsoleColors:
    """Color roles for terminal output"""
    HEADER = Fore.MAGENTA + Style.BRIGHT
    BLUE = Fore.BLUE + Style.BRIGHT
    CYAN = Fore.CYAN
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    RED = Fore.RED
    GRAY = Style.DIM
    ENDC = Style.RESET_ALL
    BOLD = Style.BRIGHT


class ConsoleFormatter:
    """Formatters for console output"""

    def __init__(self, stream: Optional[TextIO] = None, colors_enabled: bool = True):
        self.stream = stream or sys.stdout
        isatty = getattr(self.stream, "isatty", None)
        self.colors_enabled = colors_enabled and bool(isatty and isatty())

    def colorize(self, text: str, color: str) -> str:
        if not self.colors_enabled:
            return text
        return f"{color}{text}{ConsoleColors.ENDC}"

    def write(self, line: str = "") -> None:
        self.stream.write(line + "\n")
        self.stream.flush()

    def success(self, msg: str) -> str:
        return self.colorize(f"[✓] {msg}", ConsoleColors.GREEN)

    def error(self, msg: str) -> str:
        return self.colorize(f"[✗] {msg}", ConsoleColors.RED)

    def warning(self, msg: str) -> str:
        return self.colorize(f"[!] {msg}", ConsoleColors.YELLOW)

    def info(self, msg: str) -> str:
        return self.colorize(f"[i] {msg}", ConsoleColors.BLUE)

    def section(self, title: str, color: str = ConsoleColors.HEADER) -> str:
        return "\n" + self.colorize(f"{title}:", color)

    def box(self, text: str, color: str) -> str:
        width = len(text) + 4
        lines = [
            "┌" + "─" * width + "┐",
            "│  " + text + "  │",
            "└" + "─" * width + "┘",
        ]
        return "\n".join(self.colorize(line, color + ConsoleColors.BOLD) for line in lines)


class ReportPrinter:
    """
    Renders a PortReport.

    Sections follow the order the probes run in: open/closed banner,
    HTTP(S) response, bound process, summary.
    """

    def __init__(self, formatter: ConsoleFormatter, prog: str = "port-checker"):
        self.fmt = formatter
        self.prog = prog

    def print_report(self, report: PortReport) -> None:
        if not report.is_open:
            self.fmt.write(self.fmt.colorize(
                f"[✗] Port {report.port} is closed.", ConsoleColors.RED + ConsoleColors.BOLD
            ))
            return

        self.fmt.write(self.fmt.box(f"[✓] Port {report.port} is OPEN", ConsoleColors.GREEN))
        self.print_web_result(report)
        self.print_bound_process(report)
        self.print_summary(report)

    def print_web_result(self, report: PortReport) -> None:
        fmt = self.fmt
        fmt.write(fmt.section("HTTP(S) Response"))
        web = report.web_result

        if web is None:
            fmt.write(f"    {fmt.colorize('Both HTTP and HTTPS failed', ConsoleColors.RED)}")
        elif web.kind is ServiceKind.HTTPS_HANDSHAKE_FAILED:
            fmt.write(f"    {fmt.colorize(f'Protocol: {web.label}', ConsoleColors.YELLOW)}")
        else:
            fmt.write(f"    Protocol: {fmt.colorize(web.label, ConsoleColors.CYAN)}")
            if web.status:
                fmt.write(f"    Status: {fmt.colorize(web.status, ConsoleColors.YELLOW)}")

    def print_bound_process(self, report: PortReport) -> None:
        fmt = self.fmt
        fmt.write(fmt.section("Bound Process", ConsoleColors.CYAN + ConsoleColors.BOLD))

        if report.process is None:
            fmt.write(fmt.colorize("    Unable to determine bound process. Try running:", ConsoleColors.GRAY))
            fmt.write(fmt.colorize(f"    sudo {self.prog} {report.port}", ConsoleColors.GRAY))
            return

        fmt.write(f"    {fmt.colorize(str(report.process), ConsoleColors.YELLOW)}")
        if report.process.address:
            fmt.write(f"    Command: Listening on {report.process.address}")

    def print_summary(self, report: PortReport) -> None:
        fmt = self.fmt
        protocol = report.protocol.label if report.protocol else "Unknown"

        fmt.write(fmt.section("Summary", ConsoleColors.BLUE))
        fmt.write(f"    Port: {fmt.colorize(str(report.port), ConsoleColors.CYAN)}")
        fmt.write(f"    Protocol: {fmt.colorize(protocol, ConsoleColors.CYAN)}")
        if report.process is not None:
            fmt.write(f"    PID: {fmt.colorize(str(report.process.pid), ConsoleColors.CYAN)}")
        fmt.write(f"    Status: {fmt.colorize('Open', ConsoleColors.GREEN)}")

    def print_kill_result(self, pid: int, error: Optional[Exception] = None) -> None:
        if error is None:
            self.fmt.write(self.fmt.success(f"Process {pid} terminated."))
        else:
            self.fmt.write(self.fmt.error(str(error)))

    def print_not_killed(self) -> None:
        self.fmt.write(self.fmt.info("Process was not terminated."))
