"""Batch validation of git history."""
import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .commit_message import CommitMessageValidator
from .models import ValidationResult


@dataclass(frozen=True)
class CommitRecord:
    sha: str
    message: str
    summary: str

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass(frozen=True)
class CommitCheck:
    record: CommitRecord
    result: ValidationResult


@dataclass
class RangeReport:
    """Aggregated outcome of validating a revision range."""

    rev_range: str
    checks: List[CommitCheck] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.checks)

    @property
    def passed(self) -> int:
        return sum(1 for check in self.checks if check.result.valid and not check.result.ignored)

    @property
    def skipped(self) -> int:
        return sum(1 for check in self.checks if check.result.ignored)

    @property
    def failed(self) -> int:
        return sum(
            1 for check in self.checks if not check.result.valid and not check.result.timed_out
        )

    @property
    def inconclusive(self) -> int:
        return sum(1 for check in self.checks if check.result.inconclusive)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.inconclusive == 0

    def failures(self) -> List[CommitCheck]:
        return [check for check in self.checks if not check.result.valid]


class CommitHistory:
    """Reads commit messages from a git repository."""

    def __init__(self, repo_path: Union[str, Path] = "."):
        try:
            self.repo = Repo(repo_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise ValueError(f"Not a git repository: {repo_path}") from e
        self.repo_path = repo_path

    def collect(
        self,
        rev_range: str = "HEAD",
        max_count: Optional[int] = None,
        no_merges: bool = False,
    ) -> List[CommitRecord]:
        """Collect the commits of ``rev_range``, newest first.

        Args:
            rev_range: Anything ``git rev-list`` accepts, e.g. ``main..HEAD``
            max_count: Stop after this many commits
            no_merges: Leave out merge commits

        Raises:
            ValueError: If the revision range cannot be resolved
        """
        options = {}
        if max_count is not None:
            options["max_count"] = max_count
        if no_merges:
            options["no_merges"] = True

        try:
            commits = list(self.repo.iter_commits(rev_range, **options))
        except GitCommandError as e:
            raise ValueError(f"Invalid revision range '{rev_range}': {e.stderr.strip() or e}") from e
        except ValueError as e:
            # Raised by GitPython for a repository without any commits
            raise ValueError(f"Invalid revision range '{rev_range}': {e}") from e

        records = []
        for commit in commits:
            message = commit.message
            if isinstance(message, bytes):
                message = message.decode("utf-8", errors="replace")
            records.append(CommitRecord(sha=commit.hexsha, message=message, summary=commit.summary))
        return records


class RangeChecker:
    """Validates every commit of a revision range."""

    def __init__(self, history: CommitHistory, validator: CommitMessageValidator):
        self.history = history
        self.validator = validator

    async def check(
        self,
        rev_range: str = "HEAD",
        max_count: Optional[int] = None,
        no_merges: bool = False,
        max_concurrency: int = 4,
    ) -> RangeReport:
        """Validate the range; a failing commit never stops the scan.

        Raises:
            ValueError: If the revision range cannot be resolved
        """
        records = await asyncio.to_thread(self.history.collect, rev_range, max_count, no_merges)
        results = await self.validator.validate_batch(
            [record.message for record in records], max_concurrency=max_concurrency
        )
        return RangeReport(
            rev_range=rev_range,
            checks=[CommitCheck(record, result) for record, result in zip(records, results)],
        )
