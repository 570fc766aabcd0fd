"""Composition of styled report lines."""

from __future__ import annotations

from collections.abc import Callable

from rich.cells import cell_len
from rich.style import Style

from gherkin_reports.messages.models import TestStepResultStatus
from gherkin_reports.reports.theme import Element, Theme


class LineBuilder:
    """Accumulates styled text while tracking its visible width.

    The visible length counts only literal text, never the ANSI markers a
    theme wraps around it, so ``pad_to`` lines up identically for styled and
    unstyled themes. ``begin``/``end`` open a style region that applies to
    every append until it is closed; regions nest and combine.
    """

    def __init__(self, theme: Theme) -> None:
        self._theme = theme
        self._parts: list[str] = []
        self._regions: list[tuple[Element, TestStepResultStatus | None, Style | None]] = []
        self._visible_length = 0

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def visible_length(self) -> int:
        """Width of the current line as it appears on screen."""
        return self._visible_length

    def indent(self, width: int) -> LineBuilder:
        return self.append(" " * width)

    def append(
        self,
        text: str,
        element: Element | None = None,
        status: TestStepResultStatus | None = None,
    ) -> LineBuilder:
        if text is None:
            raise TypeError("text may not be None")
        styles = [style for _, _, style in self._regions if style]
        if element is not None:
            style = self._theme.get_style(element, status)
            if style:
                styles.append(style)
        combined = Style.combine(styles) if styles else None
        self._parts.append(self._theme.render(combined, text))
        self._visible_length += cell_len(text)
        return self

    def begin(self, element: Element, status: TestStepResultStatus | None = None) -> LineBuilder:
        self._regions.append((element, status, self._theme.get_style(element, status)))
        return self

    def end(self, element: Element, status: TestStepResultStatus | None = None) -> LineBuilder:
        if not self._regions or self._regions[-1][:2] != (element, status):
            raise ValueError(f"{element.name} is not the innermost open style region")
        self._regions.pop()
        return self

    def pad_to(self, column: int) -> LineBuilder:
        """Pad with spaces until the line is ``column`` wide."""
        return self.append(" " * max(0, column - self._visible_length))

    def new_line(self) -> LineBuilder:
        self._parts.append("\n")
        self._visible_length = 0
        return self

    def accept(self, fn: Callable[[LineBuilder], object]) -> LineBuilder:
        """Let ``fn`` append to this line; keeps builder chains flat."""
        fn(self)
        return self

    def build(self) -> str:
        return "".join(self._parts)
