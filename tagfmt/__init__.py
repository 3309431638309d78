from .config import Options, Settings, load_config
from .errors import (
    ConfigError,
    Diagnostic,
    InvalidFillRule,
    InvalidSelectorPattern,
    InvalidSortWeight,
    InvalidTag,
    SourceError,
    TagError,
    UnclosedBracket,
    UnclosedQuote,
)
from .pipeline import FormatResult, format_source
from .tag import parse, serialize

__all__ = [
    "__version__",
    "ConfigError",
    "Diagnostic",
    "FormatResult",
    "InvalidFillRule",
    "InvalidSelectorPattern",
    "InvalidSortWeight",
    "InvalidTag",
    "Options",
    "Settings",
    "SourceError",
    "TagError",
    "UnclosedBracket",
    "UnclosedQuote",
    "format_source",
    "load_config",
    "parse",
    "serialize",
]

__version__ = "0.1.0"
