"""Commit message validation."""
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import timedelta
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from ..config import Config
from ..errors import ParseError
from ..models import ParsedCommit, ValidationResult, Violation
from ..observers import ValidationObserver
from .cache import ResultCache
from .parser import parse
from .rules import RuleKind
from .ruleset import RuleSet, build_rule_set

Deadline = Union[float, timedelta, None]

SCISSORS_MARKER = ">8"


def _to_seconds(deadline: Deadline) -> Optional[float]:
    if deadline is None:
        return None
    if isinstance(deadline, timedelta):
        return deadline.total_seconds()
    return float(deadline)


def strip_comments(content: str, comment_char: str = "#") -> str:
    """Remove git's commented lines from a commit message file.

    Everything from a scissors line (``# ---- >8 ----``, written by
    ``git commit -v``) down is dropped, as are lines starting with
    ``comment_char``.
    """
    lines = []
    for line in content.replace("\r\n", "\n").split("\n"):
        stripped = line.lstrip()
        if stripped.startswith(comment_char):
            if SCISSORS_MARKER in stripped and "---" in stripped:
                break
            continue
        lines.append(line)
    return "\n".join(lines).strip()


class CommitMessageValidator:
    """Validates commit messages against a compiled :class:`RuleSet`.

    Every rule is evaluated for every message (no fail-fast), so the caller
    sees all problems at once. Rules can run on a thread pool; violations are
    always returned in rule priority order, whichever rule finishes first.

    Attributes:
        rule_set (RuleSet): The immutable policy to validate against
        max_workers (int): Threads used per message; 1 evaluates sequentially
        cache (Optional[ResultCache]): Memo of results keyed by raw message
        default_deadline: Deadline applied when ``validate`` gets none
        observers (List[ValidationObserver]): Observers to notify
    """

    def __init__(
        self,
        rule_set: RuleSet,
        max_workers: int = 1,
        cache: Optional[ResultCache] = None,
        default_deadline: Deadline = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.rule_set = rule_set
        self.max_workers = max_workers
        self.cache = cache
        self.default_deadline = default_deadline
        self.observers: List[ValidationObserver] = []
        self._rules = rule_set.ordered_rules()
        self._executor = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fastcc-rule")
            if max_workers > 1
            else None
        )

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "CommitMessageValidator":
        """Build the rule set for ``config`` and wrap it in a validator.

        Raises:
            ConfigError: If the configuration is invalid
        """
        return cls(build_rule_set(config), **kwargs)

    def add_observer(self, observer: ValidationObserver) -> None:
        self.observers.append(observer)

    def remove_observer(self, observer: ValidationObserver) -> None:
        self.observers.remove(observer)

    def close(self) -> None:
        """Shut down the rule evaluation pool, if any."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "CommitMessageValidator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def validate(self, message: str, deadline: Deadline = None) -> ValidationResult:
        """Validate a commit message.

        Args:
            message: The raw commit message
            deadline: Time budget in seconds (or a timedelta). When it runs
                out before every rule has been evaluated, the result is
                invalid, marked ``timed_out`` and carries a ``timeout``
                violation next to those found so far.

        Returns:
            ValidationResult: Never raises for bad messages; parse failures
            are reported as a ``format`` violation
        """
        seconds = _to_seconds(deadline if deadline is not None else self.default_deadline)
        start = time.monotonic()

        if self.cache is not None:
            try:
                result = self.cache.get_or_compute(
                    message,
                    lambda: self._validate(message, seconds, start),
                    cacheable=lambda value: not value.timed_out,
                    timeout=seconds,
                )
            except TimeoutError:
                # Another caller is still validating the same message.
                result = ValidationResult.failed(
                    [self._timeout_violation(seconds, 0)], timed_out=True
                )
        else:
            result = self._validate(message, seconds, start)

        self._notify(message, result)
        return result

    def _validate(self, message: str, seconds: Optional[float], start: float) -> ValidationResult:
        if self.rule_set.should_ignore(message) is not None:
            return ValidationResult.passed(ignored=True)

        try:
            commit = parse(message)
        except ParseError as e:
            return ValidationResult.failed([Violation(rule=RuleKind.FORMAT.value, message=str(e))])

        expires = None if seconds is None else start + seconds
        if self._executor is None:
            collected, completed = self._evaluate_sequential(commit, message, expires)
        else:
            collected, completed = self._evaluate_concurrent(commit, message, expires)

        collected.sort(key=lambda item: item[0])
        violations = [violation for _, violation in collected]

        if completed < len(self._rules):
            violations.append(self._timeout_violation(seconds, completed))
            return ValidationResult.failed(violations, timed_out=True)
        if violations:
            return ValidationResult.failed(violations)
        return ValidationResult.passed()

    def _evaluate_sequential(
        self, commit: ParsedCommit, message: str, expires: Optional[float]
    ) -> Tuple[List[Tuple[Tuple[int, int], Violation]], int]:
        collected = []
        completed = 0
        for key, rule in self._rules:
            if expires is not None and time.monotonic() >= expires:
                break
            violation = rule.check(commit, message)
            if violation is not None:
                collected.append((key, violation))
            completed += 1
        return collected, completed

    def _evaluate_concurrent(
        self, commit: ParsedCommit, message: str, expires: Optional[float]
    ) -> Tuple[List[Tuple[Tuple[int, int], Violation]], int]:
        futures = {
            self._executor.submit(rule.check, commit, message): key
            for key, rule in self._rules
        }
        timeout = None if expires is None else max(0.0, expires - time.monotonic())
        done, not_done = wait(futures, timeout=timeout)
        for future in not_done:
            future.cancel()

        collected = []
        for future in done:
            violation = future.result()
            if violation is not None:
                collected.append((futures[future], violation))
        return collected, len(done)

    def _timeout_violation(self, seconds: Optional[float], completed: int) -> Violation:
        budget = (seconds or 0.0) * 1000
        return Violation(
            rule=RuleKind.TIMEOUT.value,
            message=(
                f"validation exceeded its {budget:.0f} ms deadline after {completed} of "
                f"{len(self._rules)} rules; the result is inconclusive, re-run with a "
                f"longer deadline"
            ),
        )

    def _notify(self, message: str, result: ValidationResult) -> None:
        if not self.observers:
            return
        pattern = self.rule_set.should_ignore(message) if result.ignored else None
        for observer in self.observers:
            if pattern is not None:
                observer.on_ignored(message, pattern.pattern)
            if result.timed_out:
                observer.on_timeout(message, result)
            observer.on_validated(message, result)

    def validate_file(self, path: Union[str, Path], deadline: Deadline = None) -> ValidationResult:
        """Validate a commit message file such as ``.git/COMMIT_EDITMSG``.

        Git comment lines are stripped first. Bytes that are not valid UTF-8
        are replaced rather than rejected.

        Raises:
            OSError: If the file cannot be read
        """
        content = Path(path).read_text(encoding="utf-8", errors="replace")
        return self.validate(strip_comments(content), deadline)

    def validate_many(self, messages: Iterable[str], max_workers: int = 4) -> List[ValidationResult]:
        """Validate a batch of messages, returning results in input order."""
        messages = list(messages)
        if max_workers <= 1 or len(messages) <= 1:
            return [self.validate(message) for message in messages]
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="fastcc-batch") as pool:
            return list(pool.map(self.validate, messages))

    async def validate_async(self, message: str, deadline: Deadline = None) -> ValidationResult:
        return await asyncio.to_thread(self.validate, message, deadline)

    async def validate_batch(
        self, messages: Iterable[str], max_concurrency: int = 4
    ) -> List[ValidationResult]:
        """Validate a batch of messages with at most ``max_concurrency`` in flight.

        One failing message never stops the batch; results keep input order.
        """
        semaphore = asyncio.Semaphore(max(1, max_concurrency))

        async def run(message: str) -> ValidationResult:
            async with semaphore:
                return await self.validate_async(message)

        return list(await asyncio.gather(*(run(message) for message in messages)))


def validate_message(message: str, config: Optional[Config] = None) -> ValidationResult:
    """Validate one message against ``config`` (defaults when omitted)."""
    validator = CommitMessageValidator.from_config(config or Config())
    return validator.validate(message)
