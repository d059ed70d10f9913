"""Observer pattern for validation events."""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .models import ValidationResult


def summarize(message: str, width: int = 72) -> str:
    """First line of a commit message, shortened for log output."""
    stripped = message.strip()
    first_line = stripped.split("\n", 1)[0] if stripped else "<empty message>"
    if len(first_line) > width:
        return first_line[: width - 3] + "..."
    return first_line


class ValidationObserver(ABC):
    """Abstract base class for validation observers."""

    @abstractmethod
    def on_validated(self, message: str, result: ValidationResult) -> None:
        """Called after a message has been validated (including ignored ones)."""
        pass

    @abstractmethod
    def on_ignored(self, message: str, pattern: str) -> None:
        """Called when a message matched an ignore pattern."""
        pass

    @abstractmethod
    def on_timeout(self, message: str, result: ValidationResult) -> None:
        """Called when validation hit its deadline before all rules ran."""
        pass


class ConsoleLogObserver(ValidationObserver):
    """Observer that logs validation events to the console.

    Timeouts are always reported; per-message outcomes and skipped messages
    only in verbose mode.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console(stderr=True)
        self.verbose = verbose

    def on_validated(self, message: str, result: ValidationResult) -> None:
        if not self.verbose or result.ignored:
            return
        summary = escape(summarize(message))
        if result.valid:
            self.console.print(f"[dim]valid: {summary}[/dim]")
        else:
            self.console.print(
                f"[dim]invalid ({len(result.violations)} violation(s)): {summary}[/dim]"
            )

    def on_ignored(self, message: str, pattern: str) -> None:
        if self.verbose:
            self.console.print(
                f"[dim]Skipped '{escape(summarize(message))}' (matched ignore pattern "
                f"'{escape(pattern)}')[/dim]"
            )

    def on_timeout(self, message: str, result: ValidationResult) -> None:
        self.console.print(
            f"[yellow]Validation of '{escape(summarize(message))}' timed out; "
            f"result is inconclusive[/yellow]"
        )


class FileLogObserver(ValidationObserver):
    """Observer that logs validation events to a file."""

    def __init__(self, log_file: str):
        self.log_file = Path(log_file)
        # Ensure the parent directory exists
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def _log(self, message: str) -> None:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        with self._lock, self.log_file.open("a", encoding="utf-8") as f:
            f.write(f"{timestamp} - {message}\n")

    def on_validated(self, message: str, result: ValidationResult) -> None:
        if result.ignored:
            return
        status = "VALID" if result.valid else "INVALID"
        self._log(f"{status} {summarize(message)}")
        for violation in result.violations:
            self._log(f"  {violation}")

    def on_ignored(self, message: str, pattern: str) -> None:
        self._log(f"SKIPPED {summarize(message)} (ignore pattern '{pattern}')")

    def on_timeout(self, message: str, result: ValidationResult) -> None:
        self._log(f"TIMEOUT {summarize(message)}")
