from datetime import timedelta

from gherkin_reports.messages.models import (
    Envelope,
    Hook,
    HookType,
    TestCaseFinished,
    TestCaseStarted,
    TestRunHookFinished,
    TestRunHookStarted,
    TestStepResultStatus,
    most_severe,
)
from gherkin_reports.query.index import EventIndex

from conftest import calculator_run, result, step_finished, text_attachment


def _index(events=None) -> EventIndex:
    index = EventIndex()
    for event in events if events is not None else calculator_run():
        index.update(event)
    return index


def _started(index: EventIndex, test_case_started_id: str) -> TestCaseStarted:
    return index.find_test_case_started_by(test_case_started_id)


class TestSeverity:
    def test_statuses_are_declared_in_report_order(self):
        assert [status.value for status in TestStepResultStatus] == [
            "PASSED",
            "SKIPPED",
            "PENDING",
            "UNDEFINED",
            "AMBIGUOUS",
            "FAILED",
        ]

    def test_most_severe_of_nothing_is_passed(self):
        assert most_severe([]) == TestStepResultStatus.PASSED

    def test_skipped_steps_do_not_hide_a_pass(self):
        assert most_severe([TestStepResultStatus.PASSED, TestStepResultStatus.SKIPPED]) == TestStepResultStatus.PASSED
        assert most_severe([TestStepResultStatus.SKIPPED]) == TestStepResultStatus.SKIPPED

    def test_most_severe_picks_the_worst(self):
        statuses = [TestStepResultStatus.PASSED, TestStepResultStatus.FAILED, TestStepResultStatus.SKIPPED]

        assert most_severe(statuses) == TestStepResultStatus.FAILED
        assert most_severe(statuses + [TestStepResultStatus.UNDEFINED]) == TestStepResultStatus.FAILED
        assert (
            most_severe([TestStepResultStatus.PENDING, TestStepResultStatus.AMBIGUOUS]) == TestStepResultStatus.AMBIGUOUS
        )

    def test_status_title(self):
        assert TestStepResultStatus.AMBIGUOUS.title == "Ambiguous"


class TestLineage:
    def test_scenario_lineage(self):
        index = _index()
        pickle = index.find_pickle_by(_started(index, "started-add"))

        lineage = index.find_lineage_by(pickle)

        assert lineage.feature.name == "Calculator"
        assert lineage.rule is None
        assert lineage.scenario.name == "Add"
        assert index.find_location_of(pickle).line == 3

    def test_rule_lineage(self):
        index = _index()
        pickle = index.find_pickle_by(_started(index, "started-divide"))

        lineage = index.find_lineage_by(pickle)

        assert lineage.rule.name == "Division"
        assert index.find_location_of(pickle).line == 9

    def test_unknown_pickle_has_no_lineage(self):
        index = _index([])

        assert index.find_test_case_started_by("missing") is None
        assert index.find_test_run_duration() is None


class TestResults:
    def test_most_severe_status_by_test_case(self):
        index = _index()

        assert index.find_most_severe_status_by(_started(index, "started-add")) == TestStepResultStatus.FAILED
        assert index.find_most_severe_status_by(_started(index, "started-divide")) == TestStepResultStatus.PASSED

    def test_test_case_without_steps_passes(self):
        index = _index()
        index.update(TestCaseStarted(id="started-empty", test_case_id="case-divide"))

        assert index.find_most_severe_test_step_result_by(_started(index, "started-empty")) is None
        assert index.find_most_severe_status_by(_started(index, "started-empty")) == TestStepResultStatus.PASSED

    def test_passed_and_skipped_steps_pass(self):
        index = _index()
        index.update(TestCaseStarted(id="started-mixed", test_case_id="case-add"))
        index.update(step_finished("started-mixed", "test-step-cukes", result(TestStepResultStatus.PASSED)))
        index.update(step_finished("started-mixed", "test-step-fails", result(TestStepResultStatus.SKIPPED)))

        assert index.find_most_severe_status_by(_started(index, "started-mixed")) == TestStepResultStatus.PASSED

    def test_duplicate_events_do_not_change_aggregates(self):
        events = calculator_run()
        index = _index(events + events)

        assert len(index.find_all_test_case_finished()) == 2
        assert len(index.find_all_test_step_finished()) == 3
        assert len(index.find_test_steps_finished_by(_started(index, "started-add"))) == 2

    def test_envelopes_and_events_index_the_same(self):
        index = _index([Envelope.of(event) for event in calculator_run()])

        assert len(index.find_all_test_case_started()) == 2

    def test_retried_attempts_are_not_final(self):
        events = calculator_run()
        events.insert(-1, TestCaseStarted(id="started-retry", test_case_id="case-divide", attempt=1))
        events.insert(-1, TestCaseFinished(test_case_started_id="started-retry", will_be_retried=True))
        index = _index(events)

        finished = index.find_all_test_case_finished()

        assert [f.test_case_started_id for f in finished] == ["started-add", "started-divide"]

    def test_run_duration(self):
        index = _index()

        assert index.find_test_run_duration() == timedelta(seconds=1, milliseconds=500)


class TestGlue:
    def test_source_reference_needs_exactly_one_definition(self):
        index = _index()
        test_step = index.find_test_step_by(step_finished("started-add", "test-step-cukes", result(TestStepResultStatus.PASSED)))

        assert index.find_source_reference_by(test_step).location.line == 12
        ambiguous = test_step.model_copy(update={"step_definition_ids": ["def-cukes", "def-fails"]})
        assert index.find_source_reference_by(ambiguous) is None
        assert len(index.find_step_definitions_by(ambiguous)) == 2

    def test_step_and_pickle_step(self):
        index = _index()
        test_step = index.find_test_step_by(step_finished("started-add", "test-step-fails", result(TestStepResultStatus.FAILED)))

        pickle_step = index.find_pickle_step_by(test_step)

        assert pickle_step.text == "it fails"
        assert index.find_step_by(pickle_step).keyword == "Then "

    def test_run_hook_is_found_through_its_started_event(self):
        index = _index(
            [
                Hook(id="hook-1", name="database", type=HookType.BEFORE_TEST_RUN),
                TestRunHookStarted(id="hook-started-1", hook_id="hook-1"),
            ]
        )
        finished = TestRunHookFinished(test_run_hook_started_id="hook-started-1", result=result(TestStepResultStatus.PASSED))

        assert index.find_hook_by(finished).title == "BeforeAll(database)"

    def test_attachments_are_grouped_by_step_and_deduplicated(self):
        attachment = text_attachment("hello")
        index = _index(calculator_run() + [attachment, attachment])

        found = index.find_attachments_by(step_finished("started-add", "test-step-cukes", result(TestStepResultStatus.PASSED)))
        other = index.find_attachments_by(step_finished("started-add", "test-step-fails", result(TestStepResultStatus.PASSED)))

        assert found == [attachment]
        assert other == []
