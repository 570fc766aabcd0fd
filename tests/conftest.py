import io
import re

import pytest

from gherkin_reports.messages.models import (
    Attachment,
    AttachmentContentEncoding,
    Duration,
    Envelope,
    Feature,
    FeatureChild,
    GherkinDocument,
    Group,
    Location,
    Pickle,
    PickleStep,
    PickleTag,
    Rule,
    RuleChild,
    RunnerException,
    Scenario,
    SourceReference,
    Step,
    StepDefinition,
    StepDefinitionPattern,
    StepMatchArgument,
    StepMatchArgumentsList,
    TestCase,
    TestCaseFinished,
    TestCaseStarted,
    TestRunFinished,
    TestRunStarted,
    TestStep,
    TestStepFinished,
    TestStepResult,
    TestStepResultStatus,
    Timestamp,
)
from gherkin_reports.reports.theme import Theme


_ANSI = re.compile(r"\x1b\[[0-9;]*m")

FEATURE_URI = "features/calc.feature"


def strip_ansi(text: str) -> str:
    return _ANSI.sub("", text)


def result(status: TestStepResultStatus, *, stack_trace: str | None = None, message: str | None = None) -> TestStepResult:
    exception = None
    if stack_trace or message:
        exception = RunnerException(type="AssertionError", message=message, stack_trace=stack_trace)
    return TestStepResult(status=status, duration=Duration(nanos=1_000_000), exception=exception)


def step_finished(test_case_started_id: str, test_step_id: str, step_result: TestStepResult) -> TestStepFinished:
    return TestStepFinished(
        test_case_started_id=test_case_started_id,
        test_step_id=test_step_id,
        test_step_result=step_result,
    )


def gherkin_document() -> GherkinDocument:
    add = Scenario(
        id="scenario-add",
        keyword="Scenario",
        name="Add",
        location=Location(line=3),
        steps=[
            Step(id="step-cukes", keyword="Given ", text="I have 5 cukes", location=Location(line=4)),
            Step(id="step-fails", keyword="Then ", text="it fails", location=Location(line=5)),
        ],
    )
    divide = Scenario(
        id="scenario-divide",
        keyword="Scenario",
        name="Divide",
        location=Location(line=9),
        steps=[Step(id="step-divide", keyword="When ", text="I divide", location=Location(line=10))],
    )
    return GherkinDocument(
        uri=FEATURE_URI,
        feature=Feature(
            keyword="Feature",
            name="Calculator",
            location=Location(line=1),
            children=[
                FeatureChild(scenario=add),
                FeatureChild(
                    rule=Rule(
                        id="rule-division",
                        keyword="Rule",
                        name="Division",
                        location=Location(line=7),
                        children=[RuleChild(scenario=divide)],
                    )
                ),
            ],
        ),
    )


def glue() -> list:
    """Pickles, step definitions and test cases for :func:`gherkin_document`."""
    return [
        Pickle(
            id="pickle-add",
            uri=FEATURE_URI,
            name="Add",
            steps=[
                PickleStep(id="pickle-step-cukes", text="I have 5 cukes", ast_node_ids=["step-cukes"]),
                PickleStep(id="pickle-step-fails", text="it fails", ast_node_ids=["step-fails"]),
            ],
            tags=[PickleTag(name="@smoke")],
            ast_node_ids=["scenario-add"],
        ),
        Pickle(
            id="pickle-divide",
            uri=FEATURE_URI,
            name="Divide",
            steps=[PickleStep(id="pickle-step-divide", text="I divide", ast_node_ids=["step-divide"])],
            ast_node_ids=["scenario-divide"],
        ),
        StepDefinition(
            id="def-cukes",
            pattern=StepDefinitionPattern(source="I have {int} cukes"),
            source_reference=SourceReference(uri="steps/calc.py", location=Location(line=12)),
        ),
        StepDefinition(
            id="def-fails",
            pattern=StepDefinitionPattern(source="it fails"),
            source_reference=SourceReference(uri="steps/calc.py", location=Location(line=20)),
        ),
        StepDefinition(
            id="def-divide",
            pattern=StepDefinitionPattern(source="I divide"),
            source_reference=SourceReference(uri="steps/calc.py", location=Location(line=30)),
        ),
        TestCase(
            id="case-add",
            pickle_id="pickle-add",
            test_steps=[
                TestStep(
                    id="test-step-cukes",
                    pickle_step_id="pickle-step-cukes",
                    step_definition_ids=["def-cukes"],
                    step_match_arguments_lists=[
                        StepMatchArgumentsList(
                            step_match_arguments=[StepMatchArgument(group=Group(start=7, value="5"))]
                        )
                    ],
                ),
                TestStep(
                    id="test-step-fails",
                    pickle_step_id="pickle-step-fails",
                    step_definition_ids=["def-fails"],
                    step_match_arguments_lists=[StepMatchArgumentsList()],
                ),
            ],
        ),
        TestCase(
            id="case-divide",
            pickle_id="pickle-divide",
            test_steps=[
                TestStep(
                    id="test-step-divide",
                    pickle_step_id="pickle-step-divide",
                    step_definition_ids=["def-divide"],
                    step_match_arguments_lists=[StepMatchArgumentsList()],
                ),
            ],
        ),
    ]


def calculator_run() -> list:
    """A run where "Add" fails on its second step and "Divide" passes."""
    return [
        gherkin_document(),
        *glue(),
        TestRunStarted(timestamp=Timestamp(seconds=10)),
        TestCaseStarted(id="started-add", test_case_id="case-add"),
        step_finished("started-add", "test-step-cukes", result(TestStepResultStatus.PASSED)),
        step_finished(
            "started-add",
            "test-step-fails",
            result(TestStepResultStatus.FAILED, stack_trace="AssertionError: boom\n  at steps.py:21"),
        ),
        TestCaseFinished(test_case_started_id="started-add"),
        TestCaseStarted(id="started-divide", test_case_id="case-divide"),
        step_finished("started-divide", "test-step-divide", result(TestStepResultStatus.PASSED)),
        TestCaseFinished(test_case_started_id="started-divide"),
        TestRunFinished(success=False, timestamp=Timestamp(seconds=11, nanos=500_000_000)),
    ]


def text_attachment(body: str, test_case_started_id: str = "started-add", test_step_id: str = "test-step-cukes") -> Attachment:
    return Attachment(
        body=body,
        content_encoding=AttachmentContentEncoding.IDENTITY,
        media_type="text/plain",
        test_case_started_id=test_case_started_id,
        test_step_id=test_step_id,
    )


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def plain_theme() -> Theme:
    return Theme.plain()


@pytest.fixture
def run_events() -> list:
    return calculator_run()


@pytest.fixture
def run_envelopes() -> list[Envelope]:
    return [Envelope.of(event) for event in calculator_run()]
