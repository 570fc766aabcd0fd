"""Themes map report elements to Rich styles and status icons."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from functools import lru_cache
from types import MappingProxyType

from rich.cells import cell_len
from rich.color import ColorSystem
from rich.errors import StyleSyntaxError
from rich.style import Style

from gherkin_reports.messages.models import TestStepResultStatus


# Icons are laid out as if they occupy exactly one terminal column.
VISUAL_ICON_WIDTH = 1

_PLACEHOLDER = "\x00"


class ThemeError(ValueError):
    """A theme was built with an invalid icon or style."""


class Element(Enum):
    """Every stylable part of a report.

    Elements nest: styles of the container (``STEP``) also apply to the
    parts rendered inside it (``STEP_KEYWORD``, ``STEP_TEXT``,
    ``STEP_ARGUMENT``). ``STEP``, ``STATUS_ICON`` and ``PROGRESS_ICON`` are
    always styled together with a status.
    """

    ATTACHMENT = "attachment"
    DATA_TABLE = "data_table"
    DATA_TABLE_BORDER = "data_table_border"
    DATA_TABLE_CONTENT = "data_table_content"
    DOC_STRING = "doc_string"
    DOC_STRING_CONTENT = "doc_string_content"
    DOC_STRING_DELIMITER = "doc_string_delimiter"
    DOC_STRING_MEDIA_TYPE = "doc_string_media_type"
    FEATURE = "feature"
    FEATURE_KEYWORD = "feature_keyword"
    FEATURE_NAME = "feature_name"
    LOCATION = "location"
    PROGRESS_ICON = "progress_icon"
    RULE = "rule"
    RULE_KEYWORD = "rule_keyword"
    RULE_NAME = "rule_name"
    SCENARIO = "scenario"
    SCENARIO_KEYWORD = "scenario_keyword"
    SCENARIO_NAME = "scenario_name"
    STATUS_ICON = "status_icon"
    STEP = "step"
    STEP_ARGUMENT = "step_argument"
    STEP_KEYWORD = "step_keyword"
    STEP_TEXT = "step_text"
    TAG = "tag"


StyleKey = tuple[Element, TestStepResultStatus | None]


@lru_cache(maxsize=256)
def _markers(style: Style, color_system: ColorSystem) -> tuple[str, str]:
    rendered = style.render(_PLACEHOLDER, color_system=color_system)
    begin, _, end = rendered.partition(_PLACEHOLDER)
    return begin, end


class Theme:
    """Immutable lookup table from elements to styles and icons.

    Build one with :meth:`Theme.builder` or use :meth:`cucumber`,
    :meth:`plain` or :meth:`none`.
    """

    def __init__(
        self,
        styles: Mapping[StyleKey, Style],
        status_icons: Mapping[TestStepResultStatus, str],
        progress_icons: Mapping[TestStepResultStatus, str],
        bullet_point_icon: str | None,
        color_system: ColorSystem,
    ) -> None:
        self._styles = MappingProxyType(dict(styles))
        self._status_icons = MappingProxyType(dict(status_icons))
        self._progress_icons = MappingProxyType(dict(progress_icons))
        self._bullet_point_icon = bullet_point_icon
        self._color_system = color_system

    @staticmethod
    def builder() -> ThemeBuilder:
        return ThemeBuilder()

    @classmethod
    def cucumber(cls) -> Theme:
        """The default colored theme."""
        builder = (
            cls.builder()
            .style(Element.ATTACHMENT, "blue")
            .style(Element.FEATURE_KEYWORD, "bold")
            .style(Element.LOCATION, "bright_black")
            .style(Element.RULE_KEYWORD, "bold")
            .style(Element.SCENARIO_KEYWORD, "bold")
            .style(Element.STEP_ARGUMENT, "bold")
            .style(Element.STEP_KEYWORD, "bold")
            .bullet_point_icon("•")
        )
        for status, (status_icon, progress_icon, color) in _STATUS_PALETTE.items():
            builder = (
                builder.style(Element.STEP, color, status)
                .style(Element.STATUS_ICON, color, status)
                .style(Element.PROGRESS_ICON, color, status)
                .status_icon(status, status_icon)
                .progress_icon(status, progress_icon)
            )
        return builder.build()

    @classmethod
    def plain(cls) -> Theme:
        """Icons without any styling."""
        builder = cls.builder().bullet_point_icon("-")
        for status, (status_icon, progress_icon, _) in _STATUS_PALETTE.items():
            builder = builder.status_icon(status, status_icon).progress_icon(status, progress_icon)
        return builder.build()

    @classmethod
    def none(cls) -> Theme:
        """Leaves all text untouched."""
        return cls.builder().build()

    @property
    def color_system(self) -> ColorSystem:
        return self._color_system

    def get_style(self, element: Element, status: TestStepResultStatus | None = None) -> Style | None:
        return self._styles.get((element, status))

    def style(self, element: Element, text: str, status: TestStepResultStatus | None = None) -> str:
        """Wrap ``text`` in the begin and end markers of ``element``."""
        return self.render(self.get_style(element, status), text)

    def begin_style(self, element: Element, status: TestStepResultStatus | None = None) -> str:
        return self.markers(self.get_style(element, status))[0]

    def end_style(self, element: Element, status: TestStepResultStatus | None = None) -> str:
        return self.markers(self.get_style(element, status))[1]

    def markers(self, style: Style | None) -> tuple[str, str]:
        """ANSI begin and end sequences for ``style``; empty when unstyled."""
        if style is None or not style:
            return "", ""
        return _markers(style, self._color_system)

    def render(self, style: Style | None, text: str) -> str:
        if not text:
            return text
        begin, end = self.markers(style)
        return f"{begin}{text}{end}"

    def status_icon(self, status: TestStepResultStatus) -> str:
        return self._status_icons.get(status, " ")

    def progress_icon(self, status: TestStepResultStatus) -> str:
        return self._progress_icons.get(status, " ")

    @property
    def bullet_point_icon(self) -> str:
        return self._bullet_point_icon or " "


class ThemeBuilder:
    """Collects styles and icons for a :class:`Theme`.

    Icons are checked for width as they are added.
    """

    def __init__(self) -> None:
        self._styles: dict[StyleKey, Style] = {}
        self._status_icons: dict[TestStepResultStatus, str] = {}
        self._progress_icons: dict[TestStepResultStatus, str] = {}
        self._bullet_point_icon: str | None = None
        self._color_system = ColorSystem.STANDARD

    def style(
        self,
        element: Element,
        style: Style | str,
        status: TestStepResultStatus | None = None,
    ) -> ThemeBuilder:
        """Style ``element``, optionally only for results with ``status``.

        ``style`` is a Rich ``Style`` or a style definition such as
        ``"bold green"``.
        """
        if not isinstance(element, Element):
            raise TypeError(f"element must be an Element, got {type(element).__name__}")
        if style is None:
            raise TypeError("style may not be None")
        if isinstance(style, str):
            try:
                style = Style.parse(style)
            except StyleSyntaxError as e:
                raise ThemeError(f"Invalid style for {element.name}: {e}") from e
        self._styles[(element, status)] = style
        return self

    def status_icon(self, status: TestStepResultStatus, icon: str) -> ThemeBuilder:
        self._status_icons[status] = _checked_icon(icon)
        return self

    def progress_icon(self, status: TestStepResultStatus, icon: str) -> ThemeBuilder:
        self._progress_icons[status] = _checked_icon(icon)
        return self

    def bullet_point_icon(self, icon: str) -> ThemeBuilder:
        self._bullet_point_icon = _checked_icon(icon)
        return self

    def color_system(self, color_system: ColorSystem) -> ThemeBuilder:
        self._color_system = color_system
        return self

    def build(self) -> Theme:
        return Theme(
            self._styles,
            self._status_icons,
            self._progress_icons,
            self._bullet_point_icon,
            self._color_system,
        )


def _checked_icon(icon: str) -> str:
    if icon is None:
        raise TypeError("icon may not be None")
    width = cell_len(icon)
    if width != VISUAL_ICON_WIDTH:
        raise ThemeError(f"Icon {icon!r} is {width} columns wide, expected {VISUAL_ICON_WIDTH}")
    return icon


_STATUS_PALETTE: dict[TestStepResultStatus, tuple[str, str, str]] = {
    TestStepResultStatus.PASSED: ("✔", ".", "green"),
    TestStepResultStatus.SKIPPED: ("↷", "-", "cyan"),
    TestStepResultStatus.PENDING: ("■", "P", "yellow"),
    TestStepResultStatus.UNDEFINED: ("■", "U", "yellow"),
    TestStepResultStatus.AMBIGUOUS: ("✘", "A", "red"),
    TestStepResultStatus.FAILED: ("✘", "F", "red"),
}
