"""Fatal error types. Anything raised from here aborts the whole run."""


class PDFExportError(Exception):
    """Base class for run-aborting errors."""


class ConfigError(PDFExportError):
    """Configuration could not be loaded or is invalid."""


class OutputDirectoryError(PDFExportError):
    """The output root could not be created."""


class SessionLaunchError(PDFExportError):
    """The browser engine could not be started."""


class SessionLostError(PDFExportError):
    """The browser disconnected while documents were still pending."""
