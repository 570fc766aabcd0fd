"""Transcript report that mirrors the feature files as they execute."""

from __future__ import annotations

import logging
from typing import TextIO

from gherkin_reports.messages.models import (
    Attachment,
    Event,
    Feature,
    GherkinDocument,
    Pickle,
    Rule,
    TestCaseStarted,
    TestRunFinished,
    TestStepFinished,
    TestStepResultStatus,
)
from gherkin_reports.reports.base import ReportWriter
from gherkin_reports.reports.formatters import (
    UriFormatter,
    error_text,
    exception_text,
    format_ambiguous_step_definitions,
    format_attachment,
    format_error,
    format_source_reference,
    format_step_argument,
    format_step_text,
    remove_uri_prefix,
)
from gherkin_reports.reports.layout import LayoutPrecomputer
from gherkin_reports.reports.line import LineBuilder
from gherkin_reports.reports.theme import Element, Theme


logger = logging.getLogger(__name__)


class PrettyWriter(ReportWriter):
    """Prints each scenario and its steps with aligned location comments.

    Feature and rule headers are printed the first time a scenario inside
    them starts. Under parallel execution the lines of different scenarios
    may interleave, but each line is complete and aligned on its own.
    """

    def __init__(
        self,
        out: TextIO,
        theme: Theme | None = None,
        *,
        uri_formatter: UriFormatter | None = None,
        include_feature_line: bool = True,
        include_rule_line: bool = True,
        use_status_icon: bool = True,
        include_attachments: bool = True,
    ) -> None:
        super().__init__(out, theme)
        self.uri_formatter = uri_formatter or remove_uri_prefix(None)
        self.include_feature_line = include_feature_line
        self.include_rule_line = include_rule_line
        self.use_status_icon = use_status_icon
        self.include_attachments = include_attachments
        self.layouts = LayoutPrecomputer(
            self.index,
            include_feature_line=include_feature_line,
            include_rule_line=include_rule_line,
            use_status_icon=use_status_icon,
        )
        self._printed_features: set[str] = set()
        self._printed_rules: set[str] = set()

    def _handle(self, event: Event) -> str:
        match event:
            case TestCaseStarted():
                return self._test_case_started(event)
            case TestStepFinished():
                return self._test_step_finished(event)
            case Attachment() if self.include_attachments:
                return self._attachment(event)
            case TestRunFinished():
                return self._test_run_finished(event)
        return ""

    def _finish(self) -> str:
        self.layouts.clear()
        return ""

    def _line(self) -> LineBuilder:
        return LineBuilder(self.theme)

    # Scenarios

    def _test_case_started(self, event: TestCaseStarted) -> str:
        layout = self.layouts.update(event)
        pickle = self.index.find_pickle_by(event)
        if pickle is None:
            logger.debug("No pickle found for test case started %s", event.id)
            return ""
        line = self._line()
        lineage = self.index.find_lineage_by(pickle)
        if lineage is not None:
            if self.include_feature_line and lineage.feature is not None:
                self._feature_line(lineage.gherkin_document, lineage.feature, line)
            if self.include_rule_line and lineage.rule is not None:
                self._rule_line(lineage.rule, line)

        line.new_line()
        if pickle.tags:
            tags = " ".join(tag.name for tag in pickle.tags)
            line.indent(layout.scenario_indent).append(tags, Element.TAG).new_line()
        if lineage is not None and lineage.scenario is not None:
            line.indent(layout.scenario_indent).begin(Element.SCENARIO)
            line.append(f"{lineage.scenario.keyword}:", Element.SCENARIO_KEYWORD)
            line.append(" ").append(pickle.name, Element.SCENARIO_NAME)
            line.end(Element.SCENARIO)
            line.pad_to(layout.comment_column).append(f"# {self._pickle_location(pickle)}", Element.LOCATION)
            line.new_line()
        return line.build()

    def _feature_line(self, document: GherkinDocument, feature: Feature, line: LineBuilder) -> None:
        if document.uri in self._printed_features:
            return
        self._printed_features.add(document.uri)
        line.new_line().begin(Element.FEATURE)
        line.append(f"{feature.keyword}:", Element.FEATURE_KEYWORD)
        line.append(" ").append(feature.name, Element.FEATURE_NAME)
        line.end(Element.FEATURE).new_line()

    def _rule_line(self, rule: Rule, line: LineBuilder) -> None:
        if rule.id in self._printed_rules:
            return
        self._printed_rules.add(rule.id)
        line.new_line().indent(2 if self.include_feature_line else 0).begin(Element.RULE)
        line.append(f"{rule.keyword}:", Element.RULE_KEYWORD)
        line.append(" ").append(rule.name, Element.RULE_NAME)
        line.end(Element.RULE).new_line()

    def _pickle_location(self, pickle: Pickle) -> str:
        uri = self.uri_formatter(pickle.uri)
        location = self.index.find_location_of(pickle)
        return f"{uri}:{location.line}" if location else uri

    # Steps

    def _test_step_finished(self, event: TestStepFinished) -> str:
        layout = self.layouts.layout_of(event.test_case_started_id)
        result = event.test_step_result
        line = self._line()
        test_step = self.index.find_test_step_by(event)
        if test_step is None:
            logger.debug("No test step found for %s", event.test_step_id)
            return ""

        pickle_step = self.index.find_pickle_step_by(test_step)
        step = self.index.find_step_by(pickle_step) if pickle_step else None
        if pickle_step is not None and step is not None:
            line.indent(layout.step_indent)
            if self.use_status_icon:
                line.append(self.theme.status_icon(result.status), Element.STATUS_ICON, result.status).append(" ")
            line.begin(Element.STEP, result.status)
            line.append(step.keyword, Element.STEP_KEYWORD)
            format_step_text(test_step, pickle_step, line)
            line.end(Element.STEP, result.status)
            location = format_source_reference(self.index.find_source_reference_by(test_step), self.uri_formatter)
            if location:
                line.pad_to(layout.comment_column).append(f"# {location}", Element.LOCATION)
            line.new_line()
            format_step_argument(pickle_step.argument, layout.argument_indent, line)

        if result.status == TestStepResultStatus.AMBIGUOUS:
            format_ambiguous_step_definitions(
                self.index.find_step_definitions_by(test_step),
                layout.error_indent,
                self.uri_formatter,
                line,
            )
        format_error(error_text(result), result.status, layout.error_indent, line)
        return line.build()

    # Attachments and the test run

    def _attachment(self, event: Attachment) -> str:
        layout = self.layouts.layout_of(event.test_case_started_id)
        line = self._line().new_line()
        format_attachment(event, layout.attachment_indent, line)
        return line.new_line().build()

    def _test_run_finished(self, event: TestRunFinished) -> str:
        line = self._line()
        format_error(exception_text(event.exception), TestStepResultStatus.FAILED, 0, line)
        return line.build()
