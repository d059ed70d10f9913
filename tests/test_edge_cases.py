"""Edge case tests for parsing and validation."""
import pytest

from fastcc.commit_message import CommitMessageValidator, parse
from fastcc.config import Config
from fastcc.errors import ParseError


@pytest.fixture
def validator():
    return CommitMessageValidator.from_config(Config())


def test_subject_exactly_at_limit(validator):
    assert validator.validate("feat: " + "x" * 72).valid
    assert not validator.validate("feat: " + "x" * 73).valid


def test_unicode_subject_counts_characters(validator):
    assert validator.validate("feat: " + "é" * 72).valid
    result = validator.validate("feat: " + "字" * 73)
    assert result.rule_names == ["subject-length"]


def test_emoji_in_subject(validator):
    assert validator.validate("feat: ship it 🚀").valid


def test_windows_line_endings(validator):
    assert validator.validate("fix: handle CRLF\r\n\r\nBody.\r\n").valid


def test_trailing_newlines(validator):
    assert validator.validate("docs: tidy\n\n\n").valid


def test_whitespace_only_message(validator):
    result = validator.validate(" \n\t\n")
    assert result.rule_names == ["format"]
    assert "empty" in result.violations[0].message


def test_header_missing_blank_line(validator):
    result = validator.validate("feat: add x\nno blank line")
    assert result.rule_names == ["format"]
    assert "(line 2)" in result.violations[0].message


def test_footers_only_after_blank_line(validator):
    commit = parse("chore: release\n\nRelease-As: 2.0.0\nRefs #7")
    assert commit.body is None
    assert commit.footer_values("release-as") == ["2.0.0"]
    assert validator.validate("chore: release\n\nRelease-As: 2.0.0\nRefs #7").valid


def test_scope_with_special_characters():
    commit = parse("fix(api/v2-beta): handle paging")
    assert commit.scope == "api/v2-beta"


def test_uppercase_type_is_rejected():
    with pytest.raises(ParseError):
        parse("FEAT: shouting")


def test_unknown_type_is_type_violation_not_format(validator):
    result = validator.validate("feature: add x")
    assert result.rule_names == ["type"]


def test_colon_inside_subject():
    commit = parse("docs: explain key: value pairs")
    assert commit.subject == "explain key: value pairs"


def test_empty_scope_list_accepts_any_scope(validator):
    assert validator.validate("feat(anything-goes): add x").valid


def test_revert_message(validator):
    message = 'revert: feat(api): add endpoint\n\nThis reverts commit 1234567890abcdef.'
    assert validator.validate(message).valid
