"""Colored console logger shared by the converter, scheduler and CLI."""

import threading

from colorama import init, Fore, Style

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class Logger:
    """Thread-safe colored logger.

    In quiet mode only warnings and errors are printed. Debug lines require
    ``debug=True``.
    """

    def __init__(self, verbose: bool = True, debug: bool = False):
        self.verbose = verbose
        self.debug_enabled = debug
        self._lock = threading.Lock()

    def _emit(self, tag: str, message: str) -> None:
        with self._lock:
            print(f"{tag}{Style.RESET_ALL} {message}")

    def debug(self, message: str) -> None:
        """Log debug message with color (only if debug mode is enabled)."""
        if self.debug_enabled:
            self._emit(f"{Fore.CYAN}[DEBUG]", message)

    def info(self, message: str) -> None:
        """Log info message with color."""
        if self.verbose:
            self._emit(f"{Fore.GREEN}[INFO]", message)

    def warning(self, message: str) -> None:
        """Log warning message with color."""
        self._emit(f"{Fore.YELLOW}[WARNING]", message)

    def error(self, message: str) -> None:
        """Log error message with color."""
        self._emit(f"{Fore.RED}[ERROR]", message)

    def success(self, message: str) -> None:
        """Log success message with color."""
        if self.verbose:
            self._emit(f"{Fore.GREEN}[OK]", message)
