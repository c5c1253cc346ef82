"""Run configuration: per-document-type PDF format rules and wait conditions.

The JSON file is loaded once per run. A document's format is the ``defaults``
layer with its type's ``documents`` entry laid over it, field by field.
"""

import json
import os
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = "config/config.json"
DEFAULT_INPUT_DIR = "dist"
DEFAULT_OUTPUT_DIR = "output"

DEFAULT_TYPE_MAP = {
    "reports": "report",
    "dashboards": "dashboard",
    "news": "article",
}

_MARGIN_RE = re.compile(r'^(-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*(cm|in|mm|pt|px)?$')

# Inches per unit
_UNIT_INCHES = {
    'in': 1.0,
    'cm': 1 / 2.54,
    'mm': 1 / 25.4,
    'pt': 1 / 72,
    'px': 1 / 96,  # Assuming 96 DPI
}


def validate_margin(margin_str: str) -> str:
    """Validate and normalize a single margin value like '2cm' or '0.75in'."""
    match = _MARGIN_RE.match(str(margin_str).strip())
    if not match:
        raise ConfigError(f"Invalid margin format: '{margin_str}'. Use format like '1in', '2.5cm', '10mm', etc.")

    value_str, unit = match.groups()
    value = float(value_str)

    # Set default unit to 'in' if not specified
    if not unit:
        unit = 'in'

    value_inches = value * _UNIT_INCHES[unit]
    if value_inches < 0:
        raise ConfigError(f"Margin cannot be negative: '{margin_str}'. Minimum value is 0.")
    elif value_inches > 3:
        raise ConfigError(f"Margin too large: '{margin_str}'. Maximum value is 3 inches (7.62cm).")

    return f"{value_str}{unit}"


@dataclass(frozen=True)
class Margins:
    top: str = "2cm"
    right: str = "2cm"
    bottom: str = "2cm"
    left: str = "2cm"

    @classmethod
    def parse(cls, value: Any) -> "Margins":
        """Build margins from a ``{top, right, bottom, left}`` mapping or a CSS shorthand string."""
        if isinstance(value, dict):
            unknown = set(value) - {"top", "right", "bottom", "left"}
            if unknown:
                raise ConfigError(f"Unknown margin keys: {sorted(unknown)}")
            defaults = cls()
            return cls(**{
                side: validate_margin(value.get(side, getattr(defaults, side)))
                for side in ("top", "right", "bottom", "left")
            })

        if isinstance(value, str):
            parts = value.split()
            if len(parts) == 1:
                # All margins same
                margin = validate_margin(parts[0])
                return cls(margin, margin, margin, margin)
            elif len(parts) == 2:
                # Vertical and horizontal
                vertical = validate_margin(parts[0])
                horizontal = validate_margin(parts[1])
                return cls(vertical, horizontal, vertical, horizontal)
            elif len(parts) == 4:
                return cls(*(validate_margin(part) for part in parts))
            raise ConfigError(f"Invalid margin format: '{value}'. Use 1, 2, or 4 values.")

        raise ConfigError(f"Margin must be an object or a string, got {type(value).__name__}")

    def as_dict(self) -> Dict[str, str]:
        return {'top': self.top, 'right': self.right, 'bottom': self.bottom, 'left': self.left}


@dataclass(frozen=True)
class FormatConfig:
    """Fully resolved page format for one document type."""

    format: str = "A4"
    landscape: bool = False
    margin: Margins = field(default_factory=Margins)
    display_header_footer: bool = False
    header_template: Optional[str] = None
    footer_template: Optional[str] = None
    print_background: bool = True
    prefer_css_page_size: bool = False
    timeout: int = 30000  # navigation timeout in ms
    hide_selectors: List[str] = field(default_factory=list)
    keep_together_selectors: List[str] = field(default_factory=list)
    show_print_badges: bool = False
    extra_css: str = ""

    def pdf_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``Page.pdf``."""
        options = {
            'format': self.format,
            'landscape': self.landscape,
            'margin': self.margin.as_dict(),
            'print_background': self.print_background,
            'prefer_css_page_size': self.prefer_css_page_size,
            'display_header_footer': self.display_header_footer,
        }
        if self.display_header_footer:
            # Chromium's default header/footer prints the URL and date; an empty div hides it
            options['header_template'] = self.header_template or '<div></div>'
            options['footer_template'] = self.footer_template or '<div></div>'
        return options


@dataclass(frozen=True)
class FormatOverride:
    """One partial layer of format settings. ``None`` means "not set here"."""

    format: Optional[str] = None
    landscape: Optional[bool] = None
    margin: Optional[Margins] = None
    display_header_footer: Optional[bool] = None
    header_template: Optional[str] = None
    footer_template: Optional[str] = None
    print_background: Optional[bool] = None
    prefer_css_page_size: Optional[bool] = None
    timeout: Optional[int] = None
    hide_selectors: Optional[List[str]] = None
    keep_together_selectors: Optional[List[str]] = None
    show_print_badges: Optional[bool] = None
    extra_css: Optional[str] = None

    def apply_to(self, base: FormatConfig) -> FormatConfig:
        """Return ``base`` with every field set in this layer replaced."""
        changes = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                changes[f.name] = value
        return replace(base, **changes)


# JSON key -> (field name, accepted types)
_FORMAT_KEYS = {
    "format": ("format", (str,)),
    "landscape": ("landscape", (bool,)),
    "margin": ("margin", (dict, str)),
    "displayHeaderFooter": ("display_header_footer", (bool,)),
    "headerTemplate": ("header_template", (str,)),
    "footerTemplate": ("footer_template", (str,)),
    "printBackground": ("print_background", (bool,)),
    "preferCSSPageSize": ("prefer_css_page_size", (bool,)),
    "timeout": ("timeout", (int,)),
    "hideSelectors": ("hide_selectors", (list,)),
    "keepTogetherSelectors": ("keep_together_selectors", (list,)),
    "showPrintBadges": ("show_print_badges", (bool,)),
    "extraCss": ("extra_css", (str,)),
}


def parse_format_layer(data: Any, where: str) -> FormatOverride:
    """Parse one JSON format layer into a FormatOverride."""
    if not isinstance(data, dict):
        raise ConfigError(f"{where} must be an object")

    values = {}
    for key, raw in data.items():
        if key not in _FORMAT_KEYS:
            raise ConfigError(f"Unknown key '{key}' in {where}")
        if raw is None:
            continue
        name, types = _FORMAT_KEYS[key]
        # bool is an int subclass
        if not isinstance(raw, types) or (name == "timeout" and isinstance(raw, bool)):
            raise ConfigError(f"'{key}' in {where} has the wrong type ({type(raw).__name__})")
        if name == "margin":
            raw = Margins.parse(raw)
        elif name == "timeout" and raw <= 0:
            raise ConfigError(f"'timeout' in {where} must be positive")
        elif name in ("hide_selectors", "keep_together_selectors"):
            if not all(isinstance(item, str) for item in raw):
                raise ConfigError(f"'{key}' in {where} must be a list of strings")
            raw = list(raw)
        values[name] = raw
    return FormatOverride(**values)


@dataclass(frozen=True)
class WaitConditions:
    """Run-wide switches for the readiness sub-checks (times in ms)."""

    wait_for_visualizations: bool = False
    wait_for_images: bool = False
    additional_wait_time: int = 0
    render_timeout: int = 30000
    check_timeout: int = 10000

    @classmethod
    def from_dict(cls, data: Any) -> "WaitConditions":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("waitConditions must be an object")

        known = {"waitForVisualizations", "waitForSVGs", "waitForImages",
                 "additionalWaitTime", "renderTimeout", "checkTimeout"}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown waitConditions keys: {sorted(unknown)}")

        defaults = cls()
        visualizations = data.get("waitForVisualizations", data.get("waitForSVGs", False))
        values = {
            "wait_for_visualizations": visualizations,
            "wait_for_images": data.get("waitForImages", False),
            "additional_wait_time": data.get("additionalWaitTime", 0),
            "render_timeout": data.get("renderTimeout", defaults.render_timeout),
            "check_timeout": data.get("checkTimeout", defaults.check_timeout),
        }
        for name in ("wait_for_visualizations", "wait_for_images"):
            if not isinstance(values[name], bool):
                raise ConfigError(f"waitConditions.{name} must be a boolean")
        for name in ("additional_wait_time", "render_timeout", "check_timeout"):
            value = values[name]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"waitConditions.{name} must be a non-negative integer (ms)")
        return cls(**values)


_CONFIG_KEYS = {"defaults", "documents", "excludeFiles", "waitConditions", "typeMap"}


@dataclass(frozen=True)
class Config:
    """Everything loaded from the configuration file."""

    defaults: FormatConfig = field(default_factory=FormatConfig)
    documents: Dict[str, FormatOverride] = field(default_factory=dict)
    exclude_files: List[str] = field(default_factory=list)
    wait_conditions: WaitConditions = field(default_factory=WaitConditions)
    type_map: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TYPE_MAP))

    def get_page_config(self, document_type: str) -> FormatConfig:
        """Resolve ``defaults`` overlaid with the document type's own layer."""
        override = self.documents.get(document_type)
        if override is None:
            return self.defaults
        return override.apply_to(self.defaults)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be an object")

        unknown = set(data) - _CONFIG_KEYS
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {sorted(unknown)}")

        defaults = parse_format_layer(data.get("defaults", {}), "defaults").apply_to(FormatConfig())

        documents_data = data.get("documents", {})
        if not isinstance(documents_data, dict):
            raise ConfigError("documents must be an object keyed by document type")
        documents = {
            doc_type: parse_format_layer(layer, f"documents.{doc_type}")
            for doc_type, layer in documents_data.items()
        }

        exclude_files = data.get("excludeFiles", [])
        if not isinstance(exclude_files, list) or not all(isinstance(p, str) for p in exclude_files):
            raise ConfigError("excludeFiles must be a list of glob patterns")

        type_map = dict(DEFAULT_TYPE_MAP)
        if "typeMap" in data:
            custom = data["typeMap"]
            if not isinstance(custom, dict) or not all(isinstance(v, str) for v in custom.values()):
                raise ConfigError("typeMap must map directory names to document types")
            type_map = dict(custom)

        return cls(
            defaults=defaults,
            documents=documents,
            exclude_files=list(exclude_files),
            wait_conditions=WaitConditions.from_dict(data.get("waitConditions")),
            type_map=type_map,
        )

    @classmethod
    def load(cls, path) -> "Config":
        """Load and validate a JSON configuration file."""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {path}")
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}")
        except UnicodeDecodeError as e:
            raise ConfigError(f"Configuration file {path} is not valid UTF-8: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read configuration file {path}: {e}")
        return cls.from_dict(data)


def get_input_dir(cli_value: Optional[str] = None) -> Path:
    """Input root from CLI, then PDF_EXPORT_INPUT, then the default."""
    return Path(cli_value or os.environ.get("PDF_EXPORT_INPUT") or DEFAULT_INPUT_DIR)


def get_output_dir(cli_value: Optional[str] = None) -> Path:
    """Output root from CLI, then PDF_EXPORT_OUTPUT, then the default."""
    return Path(cli_value or os.environ.get("PDF_EXPORT_OUTPUT") or DEFAULT_OUTPUT_DIR)


def get_config_path(cli_value: Optional[str] = None) -> Path:
    """Config path from CLI, then PDF_EXPORT_CONFIG, then the default."""
    return Path(cli_value or os.environ.get("PDF_EXPORT_CONFIG") or DEFAULT_CONFIG_PATH)
