import pytest
from rich.style import Style

from gherkin_reports.messages.models import TestStepResultStatus
from gherkin_reports.reports.theme import Element, Theme, ThemeError


def test_none_theme_returns_text_unchanged():
    theme = Theme.none()

    assert theme.style(Element.STEP, "Given a step", TestStepResultStatus.FAILED) == "Given a step"
    assert theme.begin_style(Element.LOCATION) == ""
    assert theme.end_style(Element.LOCATION) == ""
    assert not theme.has_status_icons


def test_plain_theme_has_icons_but_no_styles():
    theme = Theme.plain()

    assert theme.status_icon(TestStepResultStatus.PASSED) == "✔"
    assert theme.progress_icon(TestStepResultStatus.FAILED) == "F"
    assert theme.progress_icon(TestStepResultStatus.UNDEFINED) == "U"
    assert theme.style(Element.STEP, "text", TestStepResultStatus.FAILED) == "text"


def test_cucumber_theme_wraps_text_in_ansi_markers():
    theme = Theme.cucumber()

    styled = theme.style(Element.STEP, "it fails", TestStepResultStatus.FAILED)

    assert styled.startswith("\x1b[")
    assert "it fails" in styled
    assert styled.endswith("\x1b[0m")
    assert styled == (
        theme.begin_style(Element.STEP, TestStepResultStatus.FAILED)
        + "it fails"
        + theme.end_style(Element.STEP, TestStepResultStatus.FAILED)
    )


def test_styles_are_keyed_by_status():
    theme = Theme.builder().style(Element.STEP, "green", TestStepResultStatus.PASSED).build()

    assert theme.get_style(Element.STEP, TestStepResultStatus.PASSED) == Style.parse("green")
    assert theme.get_style(Element.STEP, TestStepResultStatus.FAILED) is None
    assert theme.get_style(Element.STEP) is None


def test_missing_icons_fall_back_to_a_single_space():
    theme = Theme.none()

    assert theme.status_icon(TestStepResultStatus.PASSED) == " "
    assert theme.bullet_point_icon == " "


@pytest.mark.parametrize("icon", ["", "ok", "✔✔", "漢"])
def test_builder_rejects_icons_that_are_not_one_column_wide(icon):
    with pytest.raises(ThemeError):
        Theme.builder().status_icon(TestStepResultStatus.PASSED, icon)


def test_builder_rejects_invalid_style_definitions():
    with pytest.raises(ThemeError):
        Theme.builder().style(Element.TAG, "not-a-color")


def test_builder_rejects_none():
    with pytest.raises(TypeError):
        Theme.builder().style(Element.TAG, None)
    with pytest.raises(TypeError):
        Theme.builder().progress_icon(TestStepResultStatus.PASSED, None)


def test_theme_is_unaffected_by_later_builder_changes():
    builder = Theme.builder().style(Element.TAG, "cyan")
    theme = builder.build()

    builder.style(Element.TAG, "red")

    assert theme.get_style(Element.TAG) == Style.parse("cyan")
