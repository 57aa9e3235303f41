"""Console output formatting utilities for jobsworth."""

from __future__ import annotations

import sys
from typing import Any, Optional, Sequence, TextIO


class Console:
    """
    Centralized console output formatting.

    Everything goes to stderr by default: in dry-run mode stdout carries the
    generated pipeline YAML and nothing else.
    """

    def __init__(self, debug: bool = False, stream: Optional[TextIO] = None):
        self.debug = debug
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _print(self, *lines: str) -> None:
        for line in lines:
            print(line, file=self.stream)

    def print_run_started(
        self,
        pipeline_file: str,
        branch: str,
        build_number: int,
        dry_run: bool = False,
    ) -> None:
        """Print the banner for a planning run."""
        self._print(
            "",
            "JOBSWORTH" + (" (dry run)" if dry_run else ""),
            f"Pipeline: {pipeline_file}",
            f"Branch: {branch or '(none)'}",
            f"Build: #{build_number}",
            "",
        )

    def print_directive(self, kind: str, build_number: Optional[str], environment: Optional[str]) -> None:
        """Print what the build message asked for, if anything."""
        if kind == "none":
            return
        parts = []
        if build_number:
            parts.append(f"reusing artifacts from build #{build_number}")
        if environment:
            parts.append(f"deploying only to {environment}")
        self._print(f"DIRECTIVE: {kind} ({', '.join(parts)})")

    def print_code_version(self, code_version: str, source_commit_id: str) -> None:
        self._print(f"Code version: {code_version}", f"Source commit: {source_commit_id}")

    def print_plan(self, steps: Sequence[Any]) -> None:
        """Print a one-line-per-step summary of the generated plan."""
        self._print("", "PLAN")
        if not steps:
            self._print("  (no steps)")
        for step in steps:
            if isinstance(step, str):
                self._print(f"  --- {step} ---")
                continue
            label = step.get("name") or step.get("label") or ""
            agents = step.get("agents")
            if isinstance(agents, dict):
                self._print(f"  {label} [{agents.get('queue')} @ {agents.get('environment') or '-'}]")
            else:
                self._print(f"  {label}")
        self._print("")

    def print_retry(self, what: str, attempt: int, maximum: int, error: Exception) -> None:
        """Print a transient failure that is about to be retried."""
        self._print(f"RETRY: {what} failed (attempt {attempt}/{maximum}): {error}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print a failure as a title line, the message, optional indented
        detail lines and an optional hint on how to fix it.
        """
        self._print(f"\nERROR: {title}", f"{message}")
        if details:
            for detail in details:
                self._print(f"  {detail}")
        if suggestion:
            self._print(f"\n{suggestion}")

    def print_exception(self, exc: Exception) -> None:
        """Traceback in debug mode, one line otherwise."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__, file=self.stream)
        else:
            self._print(f"Error: {exc}")

    def print_info(self, message: str) -> None:
        self._print(message)

    def print_debug(self, message: str) -> None:
        """Shown only with --debug."""
        if self.debug:
            self._print(f"[DEBUG] {message}")


# Replaced by the CLI once --debug is known
_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console
