from .console import ConsoleFormatter, ConsoleColors, ReportPrinter

__all__ = [
    'ConsoleFormatter',
    'ConsoleColors',
    'ReportPrinter',
]
