"""Cucumber message models and NDJSON decoding."""

from .models import (
    Attachment,
    AttachmentContentEncoding,
    Envelope,
    Event,
    GherkinDocument,
    Hook,
    HookType,
    Pickle,
    PickleStep,
    StepDefinition,
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
    most_severe,
    unwrap,
)
from .ndjson import MessageDecodeError, parse_envelope, read_envelopes


__all__ = [
    "Attachment",
    "AttachmentContentEncoding",
    "Envelope",
    "Event",
    "GherkinDocument",
    "Hook",
    "HookType",
    "MessageDecodeError",
    "Pickle",
    "PickleStep",
    "StepDefinition",
    "TestCase",
    "TestCaseFinished",
    "TestCaseStarted",
    "TestRunFinished",
    "TestRunHookFinished",
    "TestRunHookStarted",
    "TestRunStarted",
    "TestStep",
    "TestStepFinished",
    "TestStepResult",
    "TestStepResultStatus",
    "most_severe",
    "parse_envelope",
    "read_envelopes",
    "unwrap",
]
