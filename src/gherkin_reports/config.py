"""Report settings loaded from the environment."""

from __future__ import annotations

import logging
from typing import Literal, TextIO

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

from gherkin_reports.reports.base import ReportWriter
from gherkin_reports.reports.formatters import UriFormatter, remove_uri_prefix
from gherkin_reports.reports.pretty import PrettyWriter
from gherkin_reports.reports.progress import DEFAULT_MAX_WIDTH, ProgressWriter
from gherkin_reports.reports.summary import SummaryWriter
from gherkin_reports.reports.theme import Theme


logger = logging.getLogger(__name__)

ThemeName = Literal["auto", "cucumber", "plain", "none"]
ReportKind = Literal["pretty", "progress", "summary"]


class ReportSettings(BaseSettings):
    """Options shared by every report writer.

    Loads from environment variables prefixed with ``GHERKIN_REPORTS_``,
    e.g. ``GHERKIN_REPORTS_THEME=plain``.
    """

    theme: ThemeName = Field(default="auto", description="Color theme; auto picks one from the terminal")
    include_feature_line: bool = True
    include_rule_line: bool = True
    use_status_icon: bool = True
    include_attachments: bool = True
    remove_uri_prefix: str | None = Field(default=None, description="Prefix stripped from printed URIs")
    progress_max_width: int = Field(default=DEFAULT_MAX_WIDTH, gt=0)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="GHERKIN_REPORTS_",
    )

    def uri_formatter(self) -> UriFormatter:
        return remove_uri_prefix(self.remove_uri_prefix)


def build_theme(name: ThemeName, out: TextIO | None = None) -> Theme:
    """Resolve a theme name; ``auto`` colors only terminals that support it."""
    match name:
        case "cucumber":
            return Theme.cucumber()
        case "plain":
            return Theme.plain()
        case "none":
            return Theme.none()
    console = Console(file=out)
    if console.is_terminal and console.color_system and not console.no_color:
        return Theme.cucumber()
    logger.debug("Output is not a color terminal, using the plain theme")
    return Theme.plain()


def create_writer(
    kind: ReportKind,
    out: TextIO,
    settings: ReportSettings | None = None,
    theme: Theme | None = None,
) -> ReportWriter:
    """Build the writer for ``kind`` configured from ``settings``."""
    settings = settings or ReportSettings()
    theme = theme or build_theme(settings.theme, out)
    match kind:
        case "pretty":
            return PrettyWriter(
                out,
                theme,
                uri_formatter=settings.uri_formatter(),
                include_feature_line=settings.include_feature_line,
                include_rule_line=settings.include_rule_line,
                use_status_icon=settings.use_status_icon,
                include_attachments=settings.include_attachments,
            )
        case "progress":
            return ProgressWriter(out, theme, max_width=settings.progress_max_width)
        case "summary":
            return SummaryWriter(
                out,
                theme,
                uri_formatter=settings.uri_formatter(),
                include_attachments=settings.include_attachments,
            )
    raise ValueError(f"Unknown report: {kind}")
