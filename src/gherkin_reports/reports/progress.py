"""One glyph per executed step."""

from __future__ import annotations

from typing import TextIO

from gherkin_reports.messages.models import (
    Event,
    TestRunFinished,
    TestRunHookFinished,
    TestStepFinished,
    TestStepResultStatus,
)
from gherkin_reports.reports.base import ReportWriter
from gherkin_reports.reports.theme import Element, Theme


DEFAULT_MAX_WIDTH = 80


class ProgressWriter(ReportWriter):
    """Prints a progress icon for every finished step and run hook.

    Lines wrap after ``max_width`` icons; the run ends with a newline.
    """

    def __init__(self, out: TextIO, theme: Theme | None = None, *, max_width: int = DEFAULT_MAX_WIDTH) -> None:
        if max_width <= 0:
            raise ValueError(f"max_width must be positive, got {max_width}")
        super().__init__(out, theme)
        self.max_width = max_width
        self._width = 0

    def _handle(self, event: Event) -> str:
        match event:
            case TestStepFinished():
                return self._icon(event.test_step_result.status)
            case TestRunHookFinished():
                return self._icon(event.result.status)
            case TestRunFinished():
                self._width = 0
                return "\n"
        return ""

    def _icon(self, status: TestStepResultStatus) -> str:
        icon = self.theme.style(Element.PROGRESS_ICON, self.theme.progress_icon(status), status)
        self._width += 1
        if self._width % self.max_width == 0:
            self._width = 0
            return icon + "\n"
        return icon
