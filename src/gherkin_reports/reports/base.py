"""Base class for report writers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TextIO

from gherkin_reports.messages.models import Envelope, Event, unwrap
from gherkin_reports.query.index import EventIndex
from gherkin_reports.reports.theme import Theme


logger = logging.getLogger(__name__)


class StreamClosedError(ValueError):
    """A message was written to a closed report writer."""


class ReportWriter(ABC):
    """Writes a report for a stream of messages to a text sink.

    Writers move from open to closed exactly once. While open, each message
    is indexed and then handed to :meth:`_handle`; anything it renders is
    written as a single ``write`` and flushed. :meth:`close` runs
    :meth:`_finish` once and flushes, but leaves closing the sink to its
    owner.
    """

    def __init__(self, out: TextIO, theme: Theme | None = None) -> None:
        if out is None:
            raise TypeError("out may not be None")
        self.out = out
        self.theme = theme or Theme.cucumber()
        self.index = EventIndex()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, message: Envelope | Event) -> None:
        """Consume one envelope or event.

        Raises:
            StreamClosedError: if the writer was closed.
            TypeError: if ``message`` is None.
        """
        if self._closed:
            raise StreamClosedError(f"{type(self).__name__} is closed")
        event = unwrap(message)
        if event is None:
            logger.debug("Skipping envelope without a known message")
            return
        self.index.update(event)
        self._emit(self._handle(event))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._emit(self._finish())
        self.out.flush()

    def __enter__(self) -> ReportWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @abstractmethod
    def _handle(self, event: Event) -> str:
        """Render the output for ``event``; empty when it prints nothing."""

    def _finish(self) -> str:
        return ""

    def _emit(self, text: str) -> None:
        if not text:
            return
        self.out.write(text)
        self.out.flush()
