"""Column layout of the pretty report, computed once per test case."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from rich.cells import cell_len

from gherkin_reports.messages.models import TestCaseStarted
from gherkin_reports.query.index import EventIndex
from gherkin_reports.reports.theme import VISUAL_ICON_WIDTH


logger = logging.getLogger(__name__)

STEP_INDENT = 2
AFTER_STEP_ARGUMENT_INDENT = 2
AFTER_STEP_ERROR_INDENT = 4
AFTER_SCENARIO_ATTACHMENT_INDENT = 6


@dataclass(frozen=True)
class ScenarioLayout:
    """Indentation and comment column of one test case.

    ``icon_width`` is the status icon plus its trailing space, or 0 when
    icons are disabled.
    """

    scenario_indent: int = 0
    comment_column: int = 0
    icon_width: int = 0

    @property
    def step_indent(self) -> int:
        return self.scenario_indent + STEP_INDENT

    @property
    def argument_indent(self) -> int:
        return self.step_indent + self.icon_width + AFTER_STEP_ARGUMENT_INDENT

    @property
    def error_indent(self) -> int:
        return self.step_indent + self.icon_width + AFTER_STEP_ERROR_INDENT

    @property
    def attachment_indent(self) -> int:
        return self.scenario_indent + AFTER_SCENARIO_ATTACHMENT_INDENT + self.icon_width


class LayoutPrecomputer:
    """Computes a :class:`ScenarioLayout` when a test case starts.

    Every line of a scenario is known before its first step runs, so the
    comment column can be fixed up front and each later line is written
    exactly once.
    """

    def __init__(
        self,
        index: EventIndex,
        *,
        include_feature_line: bool = True,
        include_rule_line: bool = True,
        use_status_icon: bool = True,
    ) -> None:
        self._index = index
        self._include_feature_line = include_feature_line
        self._include_rule_line = include_rule_line
        self._icon_width = VISUAL_ICON_WIDTH + 1 if use_status_icon else 0
        self._layouts: dict[str, ScenarioLayout] = {}

    @property
    def icon_width(self) -> int:
        return self._icon_width

    def update(self, test_case_started: TestCaseStarted) -> ScenarioLayout:
        """Compute and cache the layout of ``test_case_started``."""
        layout = self._compute(test_case_started)
        self._layouts[test_case_started.id] = layout
        return layout

    def layout_of(self, test_case_started_id: str | None) -> ScenarioLayout:
        """The cached layout; a zero layout for unknown test cases."""
        layout = self._layouts.get(test_case_started_id) if test_case_started_id else None
        if layout is None:
            return ScenarioLayout(icon_width=self._icon_width)
        return layout

    def clear(self) -> None:
        self._layouts.clear()

    def _compute(self, test_case_started: TestCaseStarted) -> ScenarioLayout:
        pickle = self._index.find_pickle_by(test_case_started)
        lineage = self._index.find_lineage_by(pickle) if pickle else None
        if pickle is None or lineage is None or lineage.scenario is None:
            logger.debug("No scenario found for test case started %s", test_case_started.id)
            return ScenarioLayout(icon_width=self._icon_width)

        indent = 0
        if self._include_feature_line and lineage.feature is not None:
            indent += 2
        if self._include_rule_line and lineage.rule is not None:
            indent += 2

        # The ": " between keyword and name adds 2
        longest = indent + cell_len(lineage.scenario.keyword) + 2 + cell_len(pickle.name)
        for pickle_step in pickle.steps:
            step = self._index.find_step_by(pickle_step)
            if step is None:
                continue
            length = indent + STEP_INDENT + self._icon_width + cell_len(step.keyword) + cell_len(pickle_step.text)
            longest = max(longest, length)

        return ScenarioLayout(scenario_indent=indent, comment_column=longest + 1, icon_width=self._icon_width)
