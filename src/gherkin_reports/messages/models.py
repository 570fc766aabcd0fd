"""Cucumber message models consumed by the report writers.

Only the fields the writers read are modelled. Unknown fields and unknown
envelope members are ignored so newer protocol versions still decode.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Message(BaseModel):
    """Base for all protocol models: immutable, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class TestStepResultStatus(Enum):
    """Outcome of a test step, declared in the order reports list them."""

    __test__ = False  # Prevent pytest from collecting this as a test class

    PASSED = "PASSED"
    SKIPPED = "SKIPPED"
    PENDING = "PENDING"
    UNDEFINED = "UNDEFINED"
    AMBIGUOUS = "AMBIGUOUS"
    FAILED = "FAILED"

    @property
    def severity(self) -> int:
        """Position in the severity order; higher is worse."""
        return _SEVERITY[self]

    @property
    def title(self) -> str:
        """Status name with only the first letter capitalized."""
        return self.value.capitalize()

    @property
    def is_reportable(self) -> bool:
        """Whether the summary reports items with this status."""
        return self not in {TestStepResultStatus.PASSED, TestStepResultStatus.SKIPPED}


_SEVERITY = {
    status: index
    for index, status in enumerate(
        [
            TestStepResultStatus.SKIPPED,
            TestStepResultStatus.PASSED,
            TestStepResultStatus.PENDING,
            TestStepResultStatus.UNDEFINED,
            TestStepResultStatus.AMBIGUOUS,
            TestStepResultStatus.FAILED,
        ]
    )
}


def most_severe(statuses) -> TestStepResultStatus:
    """Reduce many step statuses to one; zero statuses count as passed."""
    return max(statuses, key=lambda status: status.severity, default=TestStepResultStatus.PASSED)


class AttachmentContentEncoding(Enum):
    IDENTITY = "IDENTITY"
    BASE64 = "BASE64"


class HookType(Enum):
    BEFORE_TEST_RUN = "BEFORE_TEST_RUN"
    AFTER_TEST_RUN = "AFTER_TEST_RUN"
    BEFORE_TEST_CASE = "BEFORE_TEST_CASE"
    AFTER_TEST_CASE = "AFTER_TEST_CASE"
    BEFORE_TEST_STEP = "BEFORE_TEST_STEP"
    AFTER_TEST_STEP = "AFTER_TEST_STEP"

    @property
    def keyword(self) -> str:
        return _HOOK_KEYWORDS[self]


_HOOK_KEYWORDS = {
    HookType.BEFORE_TEST_RUN: "BeforeAll",
    HookType.AFTER_TEST_RUN: "AfterAll",
    HookType.BEFORE_TEST_CASE: "Before",
    HookType.AFTER_TEST_CASE: "After",
    HookType.BEFORE_TEST_STEP: "BeforeStep",
    HookType.AFTER_TEST_STEP: "AfterStep",
}


class Timestamp(Message):
    seconds: int = 0
    nanos: int = 0

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds, microseconds=self.nanos / 1000)


class Duration(Message):
    seconds: int = 0
    nanos: int = 0

    def to_timedelta(self) -> timedelta:
        return timedelta(seconds=self.seconds, microseconds=self.nanos / 1000)


class Location(Message):
    line: int
    column: int | None = None


# Gherkin document


class Tag(Message):
    name: str
    id: str | None = None


class TableCell(Message):
    value: str = ""


class TableRow(Message):
    id: str
    location: Location
    cells: list[TableCell] = Field(default_factory=list)


class Step(Message):
    id: str
    keyword: str
    text: str
    location: Location | None = None


class Examples(Message):
    id: str
    keyword: str = "Examples"
    name: str = ""
    location: Location | None = None
    table_header: TableRow | None = None
    table_body: list[TableRow] = Field(default_factory=list)


class Scenario(Message):
    id: str
    keyword: str
    name: str = ""
    location: Location
    tags: list[Tag] = Field(default_factory=list)
    steps: list[Step] = Field(default_factory=list)
    examples: list[Examples] = Field(default_factory=list)


class Background(Message):
    id: str
    keyword: str = "Background"
    name: str = ""
    steps: list[Step] = Field(default_factory=list)


class RuleChild(Message):
    background: Background | None = None
    scenario: Scenario | None = None


class Rule(Message):
    id: str
    keyword: str
    name: str = ""
    location: Location | None = None
    children: list[RuleChild] = Field(default_factory=list)


class FeatureChild(Message):
    background: Background | None = None
    rule: Rule | None = None
    scenario: Scenario | None = None


class Feature(Message):
    keyword: str
    name: str = ""
    language: str = "en"
    location: Location | None = None
    tags: list[Tag] = Field(default_factory=list)
    children: list[FeatureChild] = Field(default_factory=list)


class GherkinDocument(Message):
    uri: str
    feature: Feature | None = None


# Pickles


class PickleTag(Message):
    name: str
    ast_node_id: str | None = None


class PickleTableCell(Message):
    value: str | None = None


class PickleTableRow(Message):
    cells: list[PickleTableCell] = Field(default_factory=list)


class PickleTable(Message):
    rows: list[PickleTableRow] = Field(default_factory=list)

    def to_grid(self) -> list[list[str | None]]:
        return [[cell.value for cell in row.cells] for row in self.rows]


class PickleDocString(Message):
    content: str
    media_type: str | None = None


class PickleStepArgument(Message):
    doc_string: PickleDocString | None = None
    data_table: PickleTable | None = None


class PickleStep(Message):
    id: str
    text: str
    ast_node_ids: list[str] = Field(default_factory=list)
    argument: PickleStepArgument | None = None


class Pickle(Message):
    id: str
    uri: str
    name: str = ""
    language: str = "en"
    steps: list[PickleStep] = Field(default_factory=list)
    tags: list[PickleTag] = Field(default_factory=list)
    ast_node_ids: list[str] = Field(default_factory=list)


# Glue


class SourceReference(Message):
    uri: str | None = None
    location: Location | None = None


class StepDefinitionPattern(Message):
    source: str
    type: str | None = None


class StepDefinition(Message):
    id: str
    pattern: StepDefinitionPattern
    source_reference: SourceReference = Field(default_factory=SourceReference)


class Hook(Message):
    id: str
    name: str | None = None
    type: HookType | None = None
    tag_expression: str | None = None
    source_reference: SourceReference = Field(default_factory=SourceReference)

    @property
    def title(self) -> str:
        keyword = self.type.keyword if self.type else "Unknown"
        return f"{keyword}({self.name})" if self.name else keyword


class Group(Message):
    start: int | None = None
    value: str | None = None
    children: list[Group] = Field(default_factory=list)


class StepMatchArgument(Message):
    group: Group
    parameter_type_name: str | None = None


class StepMatchArgumentsList(Message):
    step_match_arguments: list[StepMatchArgument] = Field(default_factory=list)


class TestStep(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    id: str
    pickle_step_id: str | None = None
    hook_id: str | None = None
    step_definition_ids: list[str] | None = None
    step_match_arguments_lists: list[StepMatchArgumentsList] | None = None


class TestCase(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    id: str
    pickle_id: str
    test_steps: list[TestStep] = Field(default_factory=list)


# Execution


class RunnerException(Message):
    """A failure reported by the test runner (``Exception`` on the wire)."""

    type: str
    message: str | None = None
    stack_trace: str | None = None


class TestStepResult(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    status: TestStepResultStatus
    duration: Duration = Field(default_factory=Duration)
    message: str | None = None
    exception: RunnerException | None = None


class TestRunStarted(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    timestamp: Timestamp = Field(default_factory=Timestamp)
    id: str | None = None


class TestCaseStarted(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    id: str
    test_case_id: str
    attempt: int = 0
    timestamp: Timestamp = Field(default_factory=Timestamp)
    worker_id: str | None = None


class TestStepFinished(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    test_case_started_id: str
    test_step_id: str
    test_step_result: TestStepResult
    timestamp: Timestamp = Field(default_factory=Timestamp)


class TestRunHookStarted(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    id: str
    hook_id: str
    test_run_started_id: str | None = None
    timestamp: Timestamp = Field(default_factory=Timestamp)


class TestRunHookFinished(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    test_run_hook_started_id: str
    result: TestStepResult
    timestamp: Timestamp = Field(default_factory=Timestamp)


class Attachment(Message):
    body: str
    content_encoding: AttachmentContentEncoding
    media_type: str
    file_name: str | None = None
    test_case_started_id: str | None = None
    test_step_id: str | None = None
    test_run_hook_started_id: str | None = None


class TestCaseFinished(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    test_case_started_id: str
    timestamp: Timestamp = Field(default_factory=Timestamp)
    will_be_retried: bool = False


class TestRunFinished(Message):
    __test__ = False  # Prevent pytest from collecting this as a test class

    success: bool = True
    timestamp: Timestamp = Field(default_factory=Timestamp)
    message: str | None = None
    exception: RunnerException | None = None


class UndefinedParameterType(Message):
    name: str
    expression: str


class Snippet(Message):
    code: str
    language: str | None = None


class Suggestion(Message):
    id: str
    pickle_step_id: str
    snippets: list[Snippet] = Field(default_factory=list)


Event = Union[
    GherkinDocument,
    Pickle,
    StepDefinition,
    Hook,
    TestCase,
    TestRunStarted,
    TestCaseStarted,
    TestStepFinished,
    TestRunHookStarted,
    TestRunHookFinished,
    Attachment,
    TestCaseFinished,
    TestRunFinished,
    UndefinedParameterType,
    Suggestion,
]


class Envelope(Message):
    """Wire wrapper holding exactly one event."""

    gherkin_document: GherkinDocument | None = None
    pickle: Pickle | None = None
    step_definition: StepDefinition | None = None
    hook: Hook | None = None
    test_case: TestCase | None = None
    test_run_started: TestRunStarted | None = None
    test_case_started: TestCaseStarted | None = None
    test_step_finished: TestStepFinished | None = None
    test_run_hook_started: TestRunHookStarted | None = None
    test_run_hook_finished: TestRunHookFinished | None = None
    attachment: Attachment | None = None
    test_case_finished: TestCaseFinished | None = None
    test_run_finished: TestRunFinished | None = None
    undefined_parameter_type: UndefinedParameterType | None = None
    suggestion: Suggestion | None = None

    @property
    def event(self) -> Event | None:
        """The wrapped event, or None for message kinds not modelled here."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is not None:
                return value
        return None

    @classmethod
    def of(cls, event: Event) -> Envelope:
        for name, field in cls.model_fields.items():
            if _accepts(field.annotation, type(event)):
                return cls(**{name: event})
        raise TypeError(f"Not an event: {type(event).__name__}")


def _accepts(annotation, event_type: type) -> bool:
    return event_type in getattr(annotation, "__args__", ())


def unwrap(message: Envelope | Event | None) -> Event | None:
    """Return the event carried by ``message``.

    Raises:
        TypeError: if ``message`` is None.
    """
    if message is None:
        raise TypeError("message may not be None")
    if isinstance(message, Envelope):
        return message.event
    return message
