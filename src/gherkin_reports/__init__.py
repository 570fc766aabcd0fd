"""Gherkin reports - pretty, progress and summary reports for Cucumber messages."""

from .config import ReportSettings, build_theme, create_writer
from .messages import Envelope, read_envelopes
from .query import EventIndex
from .reports import (
    PrettyWriter,
    ProgressWriter,
    StreamClosedError,
    SummaryWriter,
    Theme,
    ThemeError,
    remove_uri_prefix,
)
from .version import __version__


__all__ = [
    # Writers
    "PrettyWriter",
    "ProgressWriter",
    "SummaryWriter",
    "StreamClosedError",
    # Styling
    "Theme",
    "ThemeError",
    # Configuration
    "ReportSettings",
    "build_theme",
    "create_writer",
    "remove_uri_prefix",
    # Messages
    "Envelope",
    "EventIndex",
    "read_envelopes",
]
