from pathlib import Path

import pytest
from git import Repo

from fastcc.commit_message import CommitMessageValidator
from fastcc.config import Config
from fastcc.core import CommitHistory, RangeChecker


def test_collect_history(conventional_repo):
    records = CommitHistory(conventional_repo).collect()

    assert [record.summary for record in records] == [
        "docs: update readme",
        "fix stuff",
        "feat(api): add endpoint",
        "chore: initial commit",
    ]
    assert records[2].message.startswith("feat(api): add endpoint\n\nRefs: ABC-1")
    assert len(records[0].sha) == 40
    assert records[0].short_sha == records[0].sha[:8]


def test_collect_max_count(conventional_repo):
    records = CommitHistory(conventional_repo).collect(max_count=2)
    assert len(records) == 2


def test_collect_range(conventional_repo):
    repo = Repo(conventional_repo)
    base = repo.head.commit.parents[0].parents[0].hexsha

    records = CommitHistory(conventional_repo).collect(f"{base}..HEAD")
    assert [record.summary for record in records] == ["docs: update readme", "fix stuff"]


def test_collect_from_subdirectory(conventional_repo):
    nested = Path(conventional_repo) / "nested" / "deeper"
    nested.mkdir(parents=True)

    assert len(CommitHistory(nested).collect()) == 4


def test_invalid_revision(conventional_repo):
    with pytest.raises(ValueError, match="Invalid revision range"):
        CommitHistory(conventional_repo).collect("no-such-branch..HEAD")


def test_not_a_repository(tmp_path):
    plain = tmp_path / "plain"
    plain.mkdir()
    with pytest.raises(ValueError, match="Not a git repository"):
        CommitHistory(plain)


@pytest.mark.asyncio
async def test_range_checker_report(conventional_repo):
    validator = CommitMessageValidator.from_config(Config())
    checker = RangeChecker(CommitHistory(conventional_repo), validator)

    report = await checker.check("HEAD", max_concurrency=2)

    assert report.total == 4
    assert report.passed == 3
    assert report.failed == 1
    assert report.inconclusive == 0
    assert report.skipped == 0
    assert not report.ok
    assert [check.record.summary for check in report.failures()] == ["fix stuff"]
    assert report.failures()[0].result.rule_names == ["format"]


@pytest.mark.asyncio
async def test_range_checker_with_ignore_pattern(conventional_repo):
    validator = CommitMessageValidator.from_config(Config(ignore_patterns=["^fix stuff"]))
    report = await RangeChecker(CommitHistory(conventional_repo), validator).check()

    assert report.ok
    assert report.skipped == 1
    assert report.passed == 3
