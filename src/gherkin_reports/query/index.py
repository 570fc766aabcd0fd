"""Incremental index over a stream of Cucumber messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from gherkin_reports.messages.models import (
    Attachment,
    Envelope,
    Event,
    Examples,
    Feature,
    GherkinDocument,
    Hook,
    Location,
    Pickle,
    PickleStep,
    Rule,
    Scenario,
    SourceReference,
    Step,
    StepDefinition,
    Suggestion,
    TableRow,
    TestCase,
    TestCaseFinished,
    TestCaseStarted,
    TestRunFinished,
    TestRunHookFinished,
    TestRunHookStarted,
    TestRunStarted,
    TestStep,
    TestStepFinished,
    TestStepResult,
    TestStepResultStatus,
    UndefinedParameterType,
    unwrap,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Lineage:
    """The Gherkin ancestry of a scenario or examples row."""

    gherkin_document: GherkinDocument
    feature: Feature | None = None
    rule: Rule | None = None
    scenario: Scenario | None = None
    examples: Examples | None = None
    example: TableRow | None = None


class EventIndex:
    """Materialized view of every message seen so far.

    Entries are created the first time their defining message is seen and
    never change afterwards, so ingesting the same message twice is harmless.
    Every ``find_*`` query returns None (or an empty list) when the data it
    needs has not been indexed; callers omit the decoration in that case.
    """

    def __init__(self) -> None:
        self._lineage_by_node_id: dict[str, Lineage] = {}
        self._step_by_id: dict[str, Step] = {}
        self._pickle_by_id: dict[str, Pickle] = {}
        self._pickle_step_by_id: dict[str, PickleStep] = {}
        self._step_definition_by_id: dict[str, StepDefinition] = {}
        self._hook_by_id: dict[str, Hook] = {}
        self._test_case_by_id: dict[str, TestCase] = {}
        self._test_step_by_id: dict[str, TestStep] = {}
        self._test_case_started_by_id: dict[str, TestCaseStarted] = {}
        self._test_case_finished_by_started_id: dict[str, TestCaseFinished] = {}
        self._test_step_finished_by_started_id: dict[str, dict[str, TestStepFinished]] = {}
        self._test_run_hook_started_by_id: dict[str, TestRunHookStarted] = {}
        self._test_run_hook_finished_by_started_id: dict[str, TestRunHookFinished] = {}
        self._attachments_by_step: dict[tuple[str, str], list[Attachment]] = {}
        self._suggestions_by_pickle_step_id: dict[str, dict[str, Suggestion]] = {}
        self._undefined_parameter_types: dict[tuple[str, str], UndefinedParameterType] = {}
        self._test_run_started: TestRunStarted | None = None
        self._test_run_finished: TestRunFinished | None = None

    def update(self, message: Envelope | Event) -> None:
        """Ingest one message."""
        event = unwrap(message)
        match event:
            case GherkinDocument():
                self._update_gherkin_document(event)
            case Pickle():
                self._update_pickle(event)
            case StepDefinition():
                self._step_definition_by_id.setdefault(event.id, event)
            case Hook():
                self._hook_by_id.setdefault(event.id, event)
            case TestCase():
                self._update_test_case(event)
            case TestRunStarted():
                if self._test_run_started is None:
                    self._test_run_started = event
            case TestCaseStarted():
                self._test_case_started_by_id.setdefault(event.id, event)
            case TestStepFinished():
                steps = self._test_step_finished_by_started_id.setdefault(event.test_case_started_id, {})
                steps.setdefault(event.test_step_id, event)
            case TestRunHookStarted():
                self._test_run_hook_started_by_id.setdefault(event.id, event)
            case TestRunHookFinished():
                self._test_run_hook_finished_by_started_id.setdefault(event.test_run_hook_started_id, event)
            case Attachment():
                self._update_attachment(event)
            case TestCaseFinished():
                self._test_case_finished_by_started_id.setdefault(event.test_case_started_id, event)
            case TestRunFinished():
                if self._test_run_finished is None:
                    self._test_run_finished = event
            case UndefinedParameterType():
                self._undefined_parameter_types.setdefault((event.name, event.expression), event)
            case Suggestion():
                suggestions = self._suggestions_by_pickle_step_id.setdefault(event.pickle_step_id, {})
                suggestions.setdefault(event.id, event)

    def _update_gherkin_document(self, document: GherkinDocument) -> None:
        feature = document.feature
        if feature is None:
            return
        for child in feature.children:
            if child.background:
                self._update_steps(child.background.steps)
            if child.scenario:
                self._update_scenario(Lineage(document, feature), child.scenario)
            if child.rule:
                for rule_child in child.rule.children:
                    if rule_child.background:
                        self._update_steps(rule_child.background.steps)
                    if rule_child.scenario:
                        self._update_scenario(Lineage(document, feature, child.rule), rule_child.scenario)

    def _update_scenario(self, parent: Lineage, scenario: Scenario) -> None:
        lineage = Lineage(parent.gherkin_document, parent.feature, parent.rule, scenario)
        self._lineage_by_node_id.setdefault(scenario.id, lineage)
        self._update_steps(scenario.steps)
        for examples in scenario.examples:
            for row in examples.table_body:
                self._lineage_by_node_id.setdefault(
                    row.id,
                    Lineage(parent.gherkin_document, parent.feature, parent.rule, scenario, examples, row),
                )

    def _update_steps(self, steps: list[Step]) -> None:
        for step in steps:
            self._step_by_id.setdefault(step.id, step)

    def _update_pickle(self, pickle: Pickle) -> None:
        if pickle.id in self._pickle_by_id:
            logger.debug("Ignoring duplicate pickle %s", pickle.id)
            return
        self._pickle_by_id[pickle.id] = pickle
        for pickle_step in pickle.steps:
            self._pickle_step_by_id.setdefault(pickle_step.id, pickle_step)

    def _update_test_case(self, test_case: TestCase) -> None:
        if test_case.id in self._test_case_by_id:
            logger.debug("Ignoring duplicate test case %s", test_case.id)
            return
        self._test_case_by_id[test_case.id] = test_case
        for test_step in test_case.test_steps:
            self._test_step_by_id.setdefault(test_step.id, test_step)

    def _update_attachment(self, attachment: Attachment) -> None:
        if attachment.test_case_started_id and attachment.test_step_id:
            key = (attachment.test_case_started_id, attachment.test_step_id)
        elif attachment.test_run_hook_started_id:
            key = ("", attachment.test_run_hook_started_id)
        else:
            return
        attachments = self._attachments_by_step.setdefault(key, [])
        if attachment not in attachments:
            attachments.append(attachment)

    # Point and lineage queries

    def find_pickle_by(self, test_case_started: TestCaseStarted) -> Pickle | None:
        test_case = self.find_test_case_by(test_case_started)
        if test_case is None:
            return None
        return self._pickle_by_id.get(test_case.pickle_id)

    def find_test_case_by(self, test_case_started: TestCaseStarted) -> TestCase | None:
        return self._test_case_by_id.get(test_case_started.test_case_id)

    def find_test_case_started_by(
        self, by: TestCaseFinished | TestStepFinished | Attachment | str | None
    ) -> TestCaseStarted | None:
        if by is None or isinstance(by, str):
            test_case_started_id = by
        else:
            test_case_started_id = by.test_case_started_id
        if test_case_started_id is None:
            return None
        return self._test_case_started_by_id.get(test_case_started_id)

    def find_lineage_by(self, pickle: Pickle) -> Lineage | None:
        if not pickle.ast_node_ids:
            return None
        # The last node is the examples row for outlines, the scenario otherwise.
        return self._lineage_by_node_id.get(pickle.ast_node_ids[-1])

    def find_location_of(self, pickle: Pickle) -> Location | None:
        lineage = self.find_lineage_by(pickle)
        if lineage is None:
            return None
        if lineage.example is not None:
            return lineage.example.location
        if lineage.scenario is not None:
            return lineage.scenario.location
        return None

    def find_step_by(self, pickle_step: PickleStep) -> Step | None:
        if not pickle_step.ast_node_ids:
            return None
        return self._step_by_id.get(pickle_step.ast_node_ids[0])

    def find_test_step_by(self, test_step_finished: TestStepFinished) -> TestStep | None:
        return self._test_step_by_id.get(test_step_finished.test_step_id)

    def find_pickle_step_by(self, test_step: TestStep) -> PickleStep | None:
        if test_step.pickle_step_id is None:
            return None
        return self._pickle_step_by_id.get(test_step.pickle_step_id)

    def find_step_definitions_by(self, test_step: TestStep) -> list[StepDefinition]:
        return [
            self._step_definition_by_id[step_definition_id]
            for step_definition_id in test_step.step_definition_ids or []
            if step_definition_id in self._step_definition_by_id
        ]

    def find_unambiguous_step_definition_by(self, test_step: TestStep) -> StepDefinition | None:
        step_definition_ids = test_step.step_definition_ids or []
        if len(step_definition_ids) != 1:
            return None
        return self._step_definition_by_id.get(step_definition_ids[0])

    def find_source_reference_by(self, test_step: TestStep) -> SourceReference | None:
        step_definition = self.find_unambiguous_step_definition_by(test_step)
        if step_definition is None:
            return None
        return step_definition.source_reference

    def find_hook_by(self, by: TestStep | TestRunHookFinished) -> Hook | None:
        if isinstance(by, TestRunHookFinished):
            started = self._test_run_hook_started_by_id.get(by.test_run_hook_started_id)
            hook_id = started.hook_id if started else None
        else:
            hook_id = by.hook_id
        if hook_id is None:
            return None
        return self._hook_by_id.get(hook_id)

    def find_attachments_by(self, by: TestStepFinished | TestRunHookFinished) -> list[Attachment]:
        if isinstance(by, TestRunHookFinished):
            key = ("", by.test_run_hook_started_id)
        else:
            key = (by.test_case_started_id, by.test_step_id)
        return list(self._attachments_by_step.get(key, []))

    def find_suggestions_by(self, pickle: Pickle) -> list[Suggestion]:
        suggestions: list[Suggestion] = []
        for pickle_step in pickle.steps:
            suggestions.extend(self._suggestions_by_pickle_step_id.get(pickle_step.id, {}).values())
        return suggestions

    # Results

    def find_test_steps_finished_by(self, by: TestCaseStarted | TestCaseFinished) -> list[TestStepFinished]:
        test_case_started_id = by.id if isinstance(by, TestCaseStarted) else by.test_case_started_id
        return list(self._test_step_finished_by_started_id.get(test_case_started_id, {}).values())

    def find_test_step_finished_and_test_step_by(
        self, test_case_started: TestCaseStarted
    ) -> list[tuple[TestStepFinished, TestStep]]:
        pairs = []
        for test_step_finished in self.find_test_steps_finished_by(test_case_started):
            test_step = self.find_test_step_by(test_step_finished)
            if test_step is not None:
                pairs.append((test_step_finished, test_step))
        return pairs

    def find_most_severe_test_step_result_by(
        self, by: TestCaseStarted | TestCaseFinished
    ) -> TestStepResult | None:
        results = [finished.test_step_result for finished in self.find_test_steps_finished_by(by)]
        return max(results, key=lambda result: result.status.severity, default=None)

    def find_most_severe_status_by(self, by: TestCaseStarted | TestCaseFinished) -> TestStepResultStatus:
        result = self.find_most_severe_test_step_result_by(by)
        # A test case without steps passes by definition
        return result.status if result else TestStepResultStatus.PASSED

    def find_all_test_case_started(self) -> list[TestCaseStarted]:
        return list(self._test_case_started_by_id.values())

    def find_all_test_case_finished(self) -> list[TestCaseFinished]:
        """Finished test cases in arrival order, excluding attempts that were retried."""
        return [
            finished
            for finished in self._test_case_finished_by_started_id.values()
            if not finished.will_be_retried
        ]

    def find_all_test_step_finished(self) -> list[TestStepFinished]:
        return [
            finished
            for steps in self._test_step_finished_by_started_id.values()
            for finished in steps.values()
        ]

    def find_all_test_run_hook_finished(self) -> list[TestRunHookFinished]:
        return list(self._test_run_hook_finished_by_started_id.values())

    def find_all_undefined_parameter_types(self) -> list[UndefinedParameterType]:
        return list(self._undefined_parameter_types.values())

    def find_test_run_finished(self) -> TestRunFinished | None:
        return self._test_run_finished

    def find_test_run_duration(self) -> timedelta | None:
        if self._test_run_started is None or self._test_run_finished is None:
            return None
        return self._test_run_finished.timestamp.to_timedelta() - self._test_run_started.timestamp.to_timedelta()
