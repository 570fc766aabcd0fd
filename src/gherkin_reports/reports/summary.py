"""End of run summary: what went wrong, counts and durations."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from datetime import timedelta
from typing import TextIO, TypeVar

from gherkin_reports.messages.models import (
    Event,
    Hook,
    Snippet,
    TestCaseFinished,
    TestRunHookFinished,
    TestStep,
    TestStepResultStatus,
)
from gherkin_reports.reports.base import ReportWriter
from gherkin_reports.reports.formatters import (
    UriFormatter,
    error_text,
    exception_text,
    format_attachment,
    format_error,
    format_source_reference,
    format_step_argument,
    format_step_text,
    remove_uri_prefix,
)
from gherkin_reports.reports.line import LineBuilder
from gherkin_reports.reports.theme import Element, Theme


logger = logging.getLogger(__name__)

T = TypeVar("T")

ITEM_INDENT = 7
ARGUMENT_INDENT = 9
ERROR_INDENT = 11

_REPORTED_STATUSES = [status for status in TestStepResultStatus if status.is_reportable]


def format_duration(duration: timedelta) -> str:
    """``Xm S.mmms``; milliseconds are zero padded."""
    total_ms = max(0, duration // timedelta(milliseconds=1))
    minutes, remainder = divmod(total_ms, 60_000)
    seconds, milliseconds = divmod(remainder, 1000)
    return f"{minutes}m {seconds}.{milliseconds:03d}s"


class SummaryWriter(ReportWriter):
    """Collects the whole run and prints a summary when closed."""

    def __init__(
        self,
        out: TextIO,
        theme: Theme | None = None,
        *,
        uri_formatter: UriFormatter | None = None,
        include_attachments: bool = True,
    ) -> None:
        super().__init__(out, theme)
        self.uri_formatter = uri_formatter or remove_uri_prefix(None)
        self.include_attachments = include_attachments

    def _handle(self, event: Event) -> str:
        return ""

    def _finish(self) -> str:
        line = LineBuilder(self.theme)
        self._non_passing_scenarios(line)
        self._undefined_parameter_types(line)
        self._non_passing_hooks(line)
        self._failed_test_run(line)
        self._stats(line)
        self._snippets(line)
        return line.build()

    def _title(self, text: str, status: TestStepResultStatus, line: LineBuilder) -> None:
        line.append(text, Element.STEP, status).new_line()

    def _items_by_status(
        self,
        name: str,
        items: Sequence[T],
        status_of: Callable[[T], TestStepResultStatus],
        format_item: Callable[[T, LineBuilder], None],
        format_details: Callable[[T, TestStepResultStatus, LineBuilder], None],
        line: LineBuilder,
    ) -> None:
        grouped: dict[TestStepResultStatus, list[T]] = defaultdict(list)
        for item in items:
            grouped[status_of(item)].append(item)
        for status in _REPORTED_STATUSES:
            if not grouped[status]:
                continue
            line.new_line()
            self._title(f"{status.title} {name}:", status, line)
            for number, item in enumerate(grouped[status], start=1):
                line.append(f"  {number}) ")
                format_item(item, line)
                line.new_line()
                format_details(item, status, line)

    def _location_comment(self, location: str | None, line: LineBuilder) -> None:
        if location:
            line.append(" ").append(f"# {location}", Element.LOCATION)

    # Scenarios

    def _test_cases_finished_in_canonical_order(self) -> list[TestCaseFinished]:
        def key(test_case_finished: TestCaseFinished) -> tuple[str, int]:
            test_case_started = self.index.find_test_case_started_by(test_case_finished)
            pickle = self.index.find_pickle_by(test_case_started) if test_case_started else None
            if pickle is None:
                return "", 0
            location = self.index.find_location_of(pickle)
            return pickle.uri, location.line if location else 0

        return sorted(self.index.find_all_test_case_finished(), key=key)

    def _non_passing_scenarios(self, line: LineBuilder) -> None:
        self._items_by_status(
            "scenarios",
            self._test_cases_finished_in_canonical_order(),
            self.index.find_most_severe_status_by,
            self._scenario_item,
            self._responsible_step,
            line,
        )

    def _scenario_item(self, test_case_finished: TestCaseFinished, line: LineBuilder) -> None:
        test_case_started = self.index.find_test_case_started_by(test_case_finished)
        pickle = self.index.find_pickle_by(test_case_started) if test_case_started else None
        if pickle is None:
            logger.debug("No pickle found for test case finished %s", test_case_finished.test_case_started_id)
            return
        line.append(pickle.name)
        if test_case_started.attempt > 0:
            line.append(f", after {test_case_started.attempt + 1} attempts")
        uri = self.uri_formatter(pickle.uri)
        location = self.index.find_location_of(pickle)
        self._location_comment(f"{uri}:{location.line}" if location else uri, line)

    def _responsible_step(
        self, test_case_finished: TestCaseFinished, status: TestStepResultStatus, line: LineBuilder
    ) -> None:
        test_case_started = self.index.find_test_case_started_by(test_case_finished)
        if test_case_started is None:
            return
        responsible = next(
            (
                (finished, test_step)
                for finished, test_step in self.index.find_test_step_finished_and_test_step_by(test_case_started)
                if finished.test_step_result.status == status
            ),
            None,
        )
        if responsible is None:
            return
        test_step_finished, test_step = responsible

        pickle_step = self.index.find_pickle_step_by(test_step)
        step = self.index.find_step_by(pickle_step) if pickle_step else None
        if pickle_step is not None and step is not None:
            line.indent(ITEM_INDENT).begin(Element.STEP, status)
            line.append(step.keyword, Element.STEP_KEYWORD)
            format_step_text(test_step, pickle_step, line)
            line.end(Element.STEP, status)
            self._step_location(test_step, line)
            line.new_line()
            format_step_argument(pickle_step.argument, ARGUMENT_INDENT, line)

        hook = self.index.find_hook_by(test_step)
        if hook is not None:
            line.indent(ITEM_INDENT).begin(Element.STEP, status)
            self._hook_title(hook, line)
            line.end(Element.STEP, status)
            self._location_comment(format_source_reference(hook.source_reference, self.uri_formatter), line)
            line.new_line()

        format_error(error_text(test_step_finished.test_step_result), status, ERROR_INDENT, line)

        if self.include_attachments:
            for attachment in self.index.find_attachments_by(test_step_finished):
                line.new_line()
                format_attachment(attachment, ERROR_INDENT, line)

    def _step_location(self, test_step: TestStep, line: LineBuilder) -> None:
        source_reference = self.index.find_source_reference_by(test_step)
        self._location_comment(format_source_reference(source_reference, self.uri_formatter), line)

    def _hook_title(self, hook: Hook, line: LineBuilder) -> None:
        line.append(hook.type.keyword if hook.type else "Unknown", Element.STEP_KEYWORD)
        if hook.name:
            line.append(f"({hook.name})")

    # Parameter types, hooks and the run

    def _undefined_parameter_types(self, line: LineBuilder) -> None:
        parameter_types = self.index.find_all_undefined_parameter_types()
        if not parameter_types:
            return
        line.new_line()
        self._title(
            "These parameters are missing a parameter type definition:",
            TestStepResultStatus.UNDEFINED,
            line,
        )
        for number, parameter_type in enumerate(parameter_types, start=1):
            line.append(f"  {number}) '{parameter_type.name}' in '{parameter_type.expression}'").new_line()

    def _non_passing_hooks(self, line: LineBuilder) -> None:
        self._items_by_status(
            "hooks",
            self.index.find_all_test_run_hook_finished(),
            lambda hook_finished: hook_finished.result.status,
            self._hook_item,
            self._hook_error,
            line,
        )

    def _hook_item(self, hook_finished: TestRunHookFinished, line: LineBuilder) -> None:
        hook = self.index.find_hook_by(hook_finished)
        if hook is None:
            logger.debug("No hook found for %s", hook_finished.test_run_hook_started_id)
            return
        self._hook_title(hook, line)
        self._location_comment(format_source_reference(hook.source_reference, self.uri_formatter), line)

    def _hook_error(self, hook_finished: TestRunHookFinished, status: TestStepResultStatus, line: LineBuilder) -> None:
        format_error(error_text(hook_finished.result), status, ITEM_INDENT, line)

    def _failed_test_run_error(self) -> str | None:
        test_run_finished = self.index.find_test_run_finished()
        if test_run_finished is None or test_run_finished.success:
            return None
        return exception_text(test_run_finished.exception)

    def _failed_test_run(self, line: LineBuilder) -> None:
        error = self._failed_test_run_error()
        if error is None:
            return
        self._title("Failed test run:", TestStepResultStatus.FAILED, line)
        format_error(error, TestStepResultStatus.FAILED, ITEM_INDENT, line)

    # Stats

    def _stats(self, line: LineBuilder) -> None:
        line.new_line()
        if self._failed_test_run_error() is not None:
            line.append("1 test run (")
            line.append("1 failed", Element.STEP, TestStepResultStatus.FAILED)
            line.append(")").new_line()

        hooks_finished = self.index.find_all_test_run_hook_finished()
        if hooks_finished:
            self._counts("hooks", [finished.result.status for finished in hooks_finished], line)

        test_cases_finished = self.index.find_all_test_case_finished()
        self._counts(
            "scenarios",
            [self.index.find_most_severe_status_by(finished) for finished in test_cases_finished],
            line,
        )
        self._counts(
            "steps",
            [
                step_finished.test_step_result.status
                for finished in test_cases_finished
                for step_finished in self.index.find_test_steps_finished_by(finished)
            ],
            line,
        )
        self._durations(line)

    def _counts(self, name: str, statuses: list[TestStepResultStatus], line: LineBuilder) -> None:
        line.append(f"{len(statuses)} {name}")
        counts = Counter(statuses)
        first = True
        for status in TestStepResultStatus:
            if not counts[status]:
                continue
            line.append(" (" if first else ", ")
            line.append(f"{counts[status]} {status.value.lower()}", Element.STEP, status)
            first = False
        if not first:
            line.append(")")
        line.new_line()

    def _durations(self, line: LineBuilder) -> None:
        run_duration = self.index.find_test_run_duration()
        if run_duration is None:
            return
        executing = sum(
            (finished.result.duration.to_timedelta() for finished in self.index.find_all_test_run_hook_finished()),
            timedelta(),
        )
        executing += sum(
            (finished.test_step_result.duration.to_timedelta() for finished in self.index.find_all_test_step_finished()),
            timedelta(),
        )
        line.append(f"{format_duration(run_duration)} ({format_duration(executing)} executing your code)").new_line()

    # Snippets

    def _snippets(self, line: LineBuilder) -> None:
        snippets: dict[str, Snippet] = {}
        for finished in self._test_cases_finished_in_canonical_order():
            test_case_started = self.index.find_test_case_started_by(finished)
            pickle = self.index.find_pickle_by(test_case_started) if test_case_started else None
            if pickle is None:
                continue
            for suggestion in self.index.find_suggestions_by(pickle):
                for snippet in suggestion.snippets:
                    snippets.setdefault(snippet.code, snippet)
        if not snippets:
            return
        line.new_line().append("You can implement missing steps with the snippets below:").new_line().new_line()
        for snippet in snippets.values():
            line.append(snippet.code).new_line().new_line()
