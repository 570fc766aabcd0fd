import pytest

from gherkin_reports.messages.models import (
    Envelope,
    TestCaseStarted,
    TestStepFinished,
    TestStepResultStatus,
    unwrap,
)
from gherkin_reports.messages.ndjson import MessageDecodeError, parse_envelope, read_envelopes

from conftest import calculator_run


def test_parse_camel_case_envelope():
    envelope = parse_envelope(
        '{"testStepFinished": {"testCaseStartedId": "1", "testStepId": "2",'
        ' "testStepResult": {"status": "FAILED", "duration": {"seconds": 0, "nanos": 5},'
        ' "exception": {"type": "Error", "stackTrace": "trace"}},'
        ' "timestamp": {"seconds": 1, "nanos": 0}}}'
    )

    event = envelope.event
    assert isinstance(event, TestStepFinished)
    assert event.test_step_result.status == TestStepResultStatus.FAILED
    assert event.test_step_result.exception.stack_trace == "trace"


def test_unknown_fields_are_ignored():
    envelope = parse_envelope('{"testCaseStarted": {"id": "1", "testCaseId": "2", "attempt": 0, "futureField": true}}')

    assert envelope.event == TestCaseStarted(id="1", test_case_id="2")


def test_serialized_envelopes_read_back():
    lines = [Envelope.of(event).model_dump_json(by_alias=True, exclude_none=True) for event in calculator_run()]

    events = [envelope.event for envelope in read_envelopes(lines)]

    assert events == calculator_run()


def test_blank_lines_and_unsupported_envelopes_are_skipped():
    lines = [
        '{"meta": {"protocolVersion": "27.0.0"}}\n',
        "\n",
        '{"testCaseStarted": {"id": "1", "testCaseId": "2"}}\n',
    ]

    envelopes = list(read_envelopes(lines))

    assert [type(envelope.event) for envelope in envelopes] == [TestCaseStarted]


def test_malformed_line_reports_its_number():
    lines = ['{"testCaseStarted": {"id": "1", "testCaseId": "2"}}', "{not json"]

    with pytest.raises(MessageDecodeError) as excinfo:
        list(read_envelopes(lines))

    assert excinfo.value.line_number == 2
    assert isinstance(excinfo.value, ValueError)


def test_envelope_of_rejects_non_events():
    with pytest.raises(TypeError):
        Envelope.of("not an event")


def test_unwrap():
    event = TestCaseStarted(id="1", test_case_id="2")

    assert unwrap(Envelope.of(event)) is event
    assert unwrap(event) is event
    with pytest.raises(TypeError):
        unwrap(None)
