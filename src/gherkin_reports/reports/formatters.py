"""Renderers for the parts shared by the pretty and summary reports."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from rich.cells import cell_len

from gherkin_reports.messages.models import (
    Attachment,
    AttachmentContentEncoding,
    Group,
    PickleDocString,
    PickleStep,
    PickleStepArgument,
    PickleTable,
    RunnerException,
    SourceReference,
    StepDefinition,
    TestStep,
    TestStepResult,
    TestStepResultStatus,
)
from gherkin_reports.reports.line import LineBuilder
from gherkin_reports.reports.theme import Element


UriFormatter = Callable[[str], str]

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def remove_uri_prefix(prefix: str | None) -> UriFormatter:
    """Return a URI formatter that strips a leading ``prefix``, e.g. the working directory."""
    if not prefix:
        return _identity

    def formatter(uri: str) -> str:
        return uri[len(prefix):] if uri.startswith(prefix) else uri

    return formatter


def _identity(uri: str) -> str:
    return uri


def split_lines(text: str) -> list[str]:
    """Split on \\n, \\r and \\r\\n only; a trailing line break adds no empty line."""
    lines = _LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


def format_source_reference(source_reference: SourceReference | None, uri_formatter: UriFormatter) -> str | None:
    """``uri[:line]`` for a step definition or hook, None when it has no URI."""
    if source_reference is None or not source_reference.uri:
        return None
    formatted = uri_formatter(source_reference.uri)
    if source_reference.location is not None:
        formatted = f"{formatted}:{source_reference.location.line}"
    return formatted


# Step text


def split_step_text(text: str, groups: Sequence[Group]) -> list[tuple[str, bool]]:
    """Split ``text`` into ``(span, highlighted)`` pairs around matched arguments.

    Groups without a value or start offset are skipped, as are groups that
    start before the end of the previous match.
    """
    spans: list[tuple[str, bool]] = []
    cursor = 0
    for group in groups:
        if group.value is None or group.start is None:
            continue
        if group.start < cursor:
            continue
        end = group.start + len(group.value)
        if group.start > cursor:
            spans.append((text[cursor:group.start], False))
        spans.append((text[group.start:end], True))
        cursor = end
    if cursor < len(text):
        spans.append((text[cursor:], False))
    return spans


def step_argument_groups(test_step: TestStep | None) -> list[Group]:
    """Top level match groups, only when the step matched exactly one definition."""
    if test_step is None:
        return []
    lists = test_step.step_match_arguments_lists or []
    if len(lists) != 1:
        return []
    return [argument.group for argument in lists[0].step_match_arguments]


def format_step_text(test_step: TestStep | None, pickle_step: PickleStep, builder: LineBuilder) -> None:
    for span, highlighted in split_step_text(pickle_step.text, step_argument_groups(test_step)):
        builder.append(span, Element.STEP_ARGUMENT if highlighted else Element.STEP_TEXT)


# Step arguments


def format_table(table: PickleTable, indentation: int, builder: LineBuilder) -> None:
    grid = [[value or "" for value in row] for row in table.to_grid()]
    widths: list[int] = []
    for row in grid:
        for column, value in enumerate(row):
            width = cell_len(value)
            if column == len(widths):
                widths.append(width)
            else:
                widths[column] = max(widths[column], width)

    for row in grid:
        builder.indent(indentation).begin(Element.DATA_TABLE).append("|", Element.DATA_TABLE_BORDER)
        for column, value in enumerate(row):
            padding = " " * (widths[column] - cell_len(value))
            builder.append(" ").append(value, Element.DATA_TABLE_CONTENT).append(padding + " ")
            builder.append("|", Element.DATA_TABLE_BORDER)
        builder.end(Element.DATA_TABLE).new_line()


def format_doc_string(doc_string: PickleDocString, indentation: int, builder: LineBuilder) -> None:
    builder.indent(indentation).begin(Element.DOC_STRING).append('"""', Element.DOC_STRING_DELIMITER)
    if doc_string.media_type:
        builder.append(doc_string.media_type, Element.DOC_STRING_MEDIA_TYPE)
    builder.end(Element.DOC_STRING).new_line()
    for line in doc_string.content.split("\n"):
        builder.indent(indentation).begin(Element.DOC_STRING)
        builder.append(line, Element.DOC_STRING_CONTENT)
        builder.end(Element.DOC_STRING).new_line()
    builder.indent(indentation).begin(Element.DOC_STRING)
    builder.append('"""', Element.DOC_STRING_DELIMITER)
    builder.end(Element.DOC_STRING).new_line()


def format_step_argument(argument: PickleStepArgument | None, indentation: int, builder: LineBuilder) -> None:
    if argument is None:
        return
    if argument.data_table is not None:
        format_table(argument.data_table, indentation, builder)
    if argument.doc_string is not None:
        format_doc_string(argument.doc_string, indentation, builder)


# Attachments


def estimated_decoded_size(body: str) -> int:
    """Byte size of a base64 body, without decoding it."""
    return len(body) // 4 * 3


def format_attachment(attachment: Attachment, indentation: int, builder: LineBuilder) -> None:
    match attachment.content_encoding:
        case AttachmentContentEncoding.BASE64:
            size = estimated_decoded_size(attachment.body)
            if attachment.file_name:
                line = f"Embedding {attachment.file_name} [{attachment.media_type} {size} bytes]"
            else:
                line = f"Embedding [{attachment.media_type} {size} bytes]"
            builder.indent(indentation).append(line, Element.ATTACHMENT).new_line()
        case AttachmentContentEncoding.IDENTITY:
            for line in split_lines(attachment.body):
                builder.indent(indentation).append(line, Element.ATTACHMENT).new_line()


# Errors


def error_text(result: TestStepResult) -> str | None:
    """The text shown under a non-passing step.

    Failures show the stack trace, falling back to the exception or result
    message. Pending and skipped steps show only a message.
    """
    exception = result.exception
    match result.status:
        case TestStepResultStatus.FAILED:
            if exception is not None and exception.stack_trace:
                return exception.stack_trace
            if exception is not None and exception.message:
                return exception.message
            return result.message
        case TestStepResultStatus.PENDING | TestStepResultStatus.SKIPPED:
            if exception is not None and exception.message:
                return exception.message
            return result.message
    return None


def exception_text(exception: RunnerException | None) -> str | None:
    if exception is None:
        return None
    return exception.stack_trace or exception.message


def format_error(text: str | None, status: TestStepResultStatus, indentation: int, builder: LineBuilder) -> None:
    if not text:
        return
    for line in split_lines(text):
        builder.indent(indentation).append(line, Element.STEP, status).new_line()


def format_ambiguous_step_definitions(
    step_definitions: Sequence[StepDefinition],
    indentation: int,
    uri_formatter: UriFormatter,
    builder: LineBuilder,
) -> None:
    builder.indent(indentation).append("Multiple matching step definitions found:").new_line()
    for step_definition in step_definitions:
        builder.indent(indentation).append(f"  {builder.theme.bullet_point_icon} ").append(step_definition.pattern.source)
        location = format_source_reference(step_definition.source_reference, uri_formatter)
        if location:
            builder.append(" ").append(f"# {location}", Element.LOCATION)
        builder.new_line()
