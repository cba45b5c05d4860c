#!/usr/bin/env python3
"""
Port Checker v1.0 - Local Port Inspector
========================================

Checks whether a local TCP port is open, guesses the protocol behind it
and reports the process bound to it.

USAGE:
    port-checker <port> [options]
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

import colorama

from . import __version__
from .config.config_manager import ConfigManager
from .core.errors import ConfigError, SignalFailedError
from .core.port_probe import PortProbe
from .core.process_lookup import terminate_process
from .core.service_detection import ServiceDetector
from .interface.prompt import confirm_yes_no
from .output.console import ConsoleColors, ConsoleFormatter, ReportPrinter

logger = logging.getLogger(__name__)

PROG = "port-checker"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_INTERRUPTED = 130

HELP_TEXT = """
Port Checker v1.0 - Local Port Inspector
========================================

USAGE:
    port-checker <port> [options]

OPTIONS:
    -v, --verbose           Debug logging on stderr
    --config <file>         JSON config file (default: ./port_checker.json)
    --no-prompt             Never offer to kill the bound process
    --no-color              Disable colored output
    -h, --help              Show help
    --version               Show version

ENVIRONMENT:
    PORT_CHECKER_<SECTION>_<KEY> overrides a config value,
    e.g. PORT_CHECKER_TIMEOUTS_BANNER=5

EXAMPLES:
    port-checker 8080
    sudo port-checker 443
"""


def colored(text: str, color: str, enabled: bool = True) -> str:
    if enabled and sys.stderr.isatty():
        return f"{color}{text}{ConsoleColors.ENDC}"
    return text


# =============================================================================
# ARGUMENT PARSER
# =============================================================================

class ProfessionalParser(argparse.ArgumentParser):
    def __init__(self, *args, **kwargs):
        super().__init__(
            *args,
            prog=PROG,
            description="Port Checker - Local Port Inspector",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            **kwargs
        )
        self.colors_enabled = True

    def print_usage(self, file=None):
        if file is None:
            file = sys.stderr
        file.write(colored(f"Usage: {PROG} <port>\n", ConsoleColors.RED, self.colors_enabled))

    def print_help(self, file=None):
        if file is None:
            file = sys.stdout
        file.write(HELP_TEXT.lstrip("\n"))

    def error(self, message):
        self.print_usage()
        self.exit(EXIT_USAGE, f"{colored('[ERROR]', ConsoleColors.RED, self.colors_enabled)} {message}\n")


def create_parser() -> ProfessionalParser:
    """Create the argument parser."""
    parser = ProfessionalParser(add_help=False)

    parser.add_argument('port',
                        nargs='?',
                        default=None,
                        help='Local TCP port to inspect')
    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='Verbose')
    parser.add_argument('--config',
                        default=None,
                        help='Config file')
    parser.add_argument('--no-prompt',
                        action='store_true',
                        help='Never offer to kill the bound process')
    parser.add_argument('--no-color',
                        action='store_true',
                        help='Disable colors')
    parser.add_argument('-h', '--help',
                        action='help',
                        help='Show help')
    parser.add_argument('--version',
                        action='version',
                        version=f"{PROG} {__version__}",
                        help='Version')

    return parser


def parse_port(value: str) -> int:
    """
    Parse the port argument.

    Only positivity is checked; out-of-range ports fail at connect time.
    """
    try:
        port = int(value)
    except (ValueError, TypeError):
        raise argparse.ArgumentTypeError(f"Port must be an integer, got '{value}'")

    if port < 1:
        raise argparse.ArgumentTypeError(f"Port must be a positive integer, got {port}")

    return port


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr
    )


def load_config(config_file: Optional[str], verbose: bool) -> ConfigManager:
    """Load config; an invalid file is reported and defaults are used."""
    config = ConfigManager(config_file)
    try:
        config.load()
    except ConfigError as e:
        logger.warning("%s. Using defaults.", e)

    if not verbose:
        logging.getLogger().setLevel(getattr(logging, config.get("general.log_level")))

    return config


def build_probe(port: int, config: ConfigManager) -> PortProbe:
    settings = config.export_for_probe()
    detector = ServiceDetector(
        http_timeout=settings["http_timeout"],
        banner_timeout=settings["banner_timeout"],
        handshake_failed_ports=settings["handshake_failed_ports"],
        tcp_fallback_ports=settings["tcp_fallback_ports"],
    )
    return PortProbe(
        port,
        detector=detector,
        liveness_timeout=settings["liveness_timeout"],
        always_run_banner_probe=settings["always_run_banner_probe"],
    )


# =============================================================================
# KILL PROMPT
# =============================================================================

def prompt_to_kill_process(
    pid: int,
    formatter: ConsoleFormatter,
    printer: ReportPrinter,
    confirm: Callable[[str], bool] = confirm_yes_no,
    terminate: Callable[[int], None] = terminate_process
) -> bool:
    """
    Offer to terminate the bound process.

    Returns:
        True if the process was signalled
    """
    question = "\n" + formatter.warning(f"Do you want to kill process {pid}? (y/n): ")
    if not confirm(question):
        printer.print_not_killed()
        return False

    try:
        terminate(pid)
    except SignalFailedError as e:
        logger.debug("Termination of pid %s failed: %s", pid, e)
        printer.print_kill_result(pid, e)
        return False

    printer.print_kill_result(pid)
    return True


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    config = load_config(args.config, args.verbose)
    colors_enabled = bool(config.get("general.colors_enabled", True)) and not args.no_color
    parser.colors_enabled = colors_enabled

    if args.port is None:
        parser.error("the port argument is required")

    try:
        port = parse_port(args.port)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    colorama.just_fix_windows_console()
    formatter = ConsoleFormatter(colors_enabled=colors_enabled)
    printer = ReportPrinter(formatter, prog=PROG)

    try:
        report = build_probe(port, config).run()
        printer.print_report(report)

        if report.process is not None and not args.no_prompt \
                and config.get("process.prompt_kill", True):
            prompt_to_kill_process(report.process.pid, formatter, printer)
    except KeyboardInterrupt:
        formatter.write(formatter.success("Interrupted by user"))
        return EXIT_INTERRUPTED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
