"""Report writers and the styling they share."""

from .base import ReportWriter, StreamClosedError
from .formatters import remove_uri_prefix
from .layout import LayoutPrecomputer, ScenarioLayout
from .line import LineBuilder
from .pretty import PrettyWriter
from .progress import ProgressWriter
from .summary import SummaryWriter
from .theme import Element, Theme, ThemeBuilder, ThemeError


__all__ = [
    "Element",
    "LayoutPrecomputer",
    "LineBuilder",
    "PrettyWriter",
    "ProgressWriter",
    "ReportWriter",
    "ScenarioLayout",
    "StreamClosedError",
    "SummaryWriter",
    "Theme",
    "ThemeBuilder",
    "ThemeError",
    "remove_uri_prefix",
]
