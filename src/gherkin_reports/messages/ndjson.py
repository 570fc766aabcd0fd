"""Read Cucumber message envelopes from newline-delimited JSON."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from pydantic import ValidationError

from gherkin_reports.messages.models import Envelope


logger = logging.getLogger(__name__)


class MessageDecodeError(ValueError):
    """A line of NDJSON input could not be decoded into an envelope."""

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}")


def parse_envelope(line: str) -> Envelope:
    """Decode a single JSON object into an envelope."""
    return Envelope.model_validate_json(line)


def read_envelopes(lines: Iterable[str]) -> Iterator[Envelope]:
    """Yield one envelope per non-blank line.

    Envelopes carrying message kinds the reports do not use (``meta``,
    ``source``, ``parameterType``...) are skipped.

    Raises:
        MessageDecodeError: when a line is not a valid envelope.
    """
    for line_number, line in enumerate(lines, 1):
        if not line.strip():
            continue
        try:
            envelope = parse_envelope(line)
        except ValidationError as e:
            raise MessageDecodeError(line_number, str(e)) from e
        if envelope.event is None:
            logger.debug("Skipping unsupported envelope on line %d", line_number)
            continue
        yield envelope
