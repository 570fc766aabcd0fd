from gherkin_reports.messages.models import TestCaseStarted
from gherkin_reports.query.index import EventIndex
from gherkin_reports.reports.layout import LayoutPrecomputer, ScenarioLayout

from conftest import calculator_run


def _precomputer(**flags) -> LayoutPrecomputer:
    index = EventIndex()
    for event in calculator_run():
        index.update(event)
    return LayoutPrecomputer(index, **flags)


def test_scenario_in_feature_is_indented_once():
    layouts = _precomputer()

    layout = layouts.update(TestCaseStarted(id="started-add", test_case_id="case-add"))

    assert layout.scenario_indent == 2
    # "    ✔ Given I have 5 cukes" is the longest line
    assert layout.comment_column == 27
    assert layout.step_indent == 4
    assert layout.argument_indent == 8
    assert layout.error_indent == 10
    assert layout.attachment_indent == 10


def test_scenario_in_rule_is_indented_twice():
    layouts = _precomputer()

    layout = layouts.update(TestCaseStarted(id="started-divide", test_case_id="case-divide"))

    assert layout.scenario_indent == 4
    assert layout.comment_column == 22


def test_disabled_lines_and_icons_shrink_the_layout():
    layouts = _precomputer(include_feature_line=False, include_rule_line=False, use_status_icon=False)

    layout = layouts.update(TestCaseStarted(id="started-divide", test_case_id="case-divide"))

    assert layout.scenario_indent == 0
    # "Scenario: Divide" is longer than "  When I divide"
    assert layout.comment_column == 17
    assert layout.argument_indent == 4


def test_layouts_are_cached_by_test_case_started_id():
    layouts = _precomputer()
    computed = layouts.update(TestCaseStarted(id="started-add", test_case_id="case-add"))

    assert layouts.layout_of("started-add") is computed


def test_unknown_test_cases_get_a_zero_layout():
    layouts = _precomputer()

    assert layouts.layout_of("missing") == ScenarioLayout(icon_width=2)
    assert layouts.layout_of(None).scenario_indent == 0
    assert layouts.update(TestCaseStarted(id="orphan", test_case_id="missing")).comment_column == 0
