from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config import ReportSettings, create_writer
from .messages.ndjson import MessageDecodeError, read_envelopes


logger = logging.getLogger(__name__)


class CLIApplication:
    """Top-level command router."""

    def __init__(self, console: Console | None = None, out: TextIO | None = None) -> None:
        self.console = console or Console(stderr=True)
        self.out = out
        self.parser = argparse.ArgumentParser(
            prog="gherkin-reports",
            description="Render Cucumber messages (NDJSON) as a human readable report.",
        )
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
        subparsers = self.parser.add_subparsers(dest="command", required=True)
        for name, help_text in (
            ("pretty", "Print every scenario and step as it runs."),
            ("progress", "Print one character per step."),
            ("summary", "Print failures, counts and durations at the end of the run."),
        ):
            command = subparsers.add_parser(name, help=help_text)
            command.add_argument(
                "input",
                nargs="?",
                default="-",
                help="NDJSON file with one message envelope per line (default: stdin).",
            )
            command.add_argument(
                "--theme",
                choices=["auto", "cucumber", "plain", "none"],
                help="GHERKIN_REPORTS_THEME override (default: auto).",
            )
            command.add_argument(
                "--remove-uri-prefix",
                dest="remove_uri_prefix",
                help="Strip this prefix from printed feature and glue URIs.",
            )
            command.add_argument(
                "--no-attachments",
                dest="include_attachments",
                action="store_false",
                default=None,
                help="Do not print attachments.",
            )
            if name == "pretty":
                command.add_argument(
                    "--no-feature-line",
                    dest="include_feature_line",
                    action="store_false",
                    default=None,
                    help="Do not print Feature: lines.",
                )
                command.add_argument(
                    "--no-rule-line",
                    dest="include_rule_line",
                    action="store_false",
                    default=None,
                    help="Do not print Rule: lines.",
                )
                command.add_argument(
                    "--no-status-icon",
                    dest="use_status_icon",
                    action="store_false",
                    default=None,
                    help="Do not prefix steps with a status icon.",
                )
            if name == "progress":
                command.add_argument(
                    "--max-width",
                    dest="progress_max_width",
                    type=int,
                    help="Icons per line (default: 80).",
                )

    def run(self, argv: Sequence[str] | None = None) -> int:
        load_dotenv(Path.cwd() / ".env")
        args = self.parser.parse_args(argv)
        if args.verbose:
            logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
        try:
            command = ReportCommand(self.console, args, self.out or sys.stdout)
        except ValidationError as e:
            self.console.print(f"[red]Invalid settings:[/red] {escape(str(e))}", highlight=False)
            return 2
        return command.run()


class ReportCommand:
    """Reads envelopes and feeds them to one report writer."""

    _SETTING_NAMES = (
        "theme",
        "remove_uri_prefix",
        "include_attachments",
        "include_feature_line",
        "include_rule_line",
        "use_status_icon",
        "progress_max_width",
    )

    def __init__(self, console: Console, args: argparse.Namespace, out: TextIO) -> None:
        self.console = console
        self.kind = args.command
        self.input = args.input
        self.out = out
        overrides = {
            name: getattr(args, name)
            for name in self._SETTING_NAMES
            if getattr(args, name, None) is not None
        }
        self.settings = ReportSettings(**overrides)

    def run(self) -> int:
        try:
            with create_writer(self.kind, self.out, self.settings) as writer:
                if self.input == "-":
                    self._feed(writer, sys.stdin)
                else:
                    with Path(self.input).expanduser().open(encoding="utf-8") as lines:
                        self._feed(writer, lines)
        except (MessageDecodeError, UnicodeDecodeError) as e:
            self.console.print(f"[red]Could not read {escape(self.input)}:[/red] {escape(str(e))}", highlight=False)
            return 1
        except OSError as e:
            self.console.print(f"[red]{escape(str(e))}[/red]", highlight=False)
            return 1
        return 0

    def _feed(self, writer, lines) -> None:
        count = 0
        for envelope in read_envelopes(lines):
            writer.write(envelope)
            count += 1
        logger.debug("Rendered %d messages as %s", count, self.kind)


def main() -> None:
    sys.exit(CLIApplication().run())
