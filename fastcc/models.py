"""Shared models for fast-cc-hooks."""
from typing import List, Optional, Tuple
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator

BREAKING_CHANGE_KEY = "BREAKING CHANGE"


class CommitType(str, Enum):
    FEAT = "feat"
    FIX = "fix"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    TEST = "test"
    CHORE = "chore"
    PERF = "perf"
    CI = "ci"
    BUILD = "build"
    REVERT = "revert"


DEFAULT_TYPES: List[str] = [t.value for t in CommitType]


class TicketKind(str, Enum):
    JIRA = "JIRA"
    GITHUB = "GITHUB"
    GENERIC = "GENERIC"


def normalize_footer_key(key: str) -> str:
    """Normalize a footer token for comparison.

    Footer keys are case-insensitive; the two spellings of the breaking
    change token collapse to ``BREAKING CHANGE``.
    """
    upper = key.strip().upper()
    if upper in ("BREAKING CHANGE", "BREAKING-CHANGE"):
        return BREAKING_CHANGE_KEY
    return key.strip().lower()


class Footer(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    separator: str = ": "

    @property
    def normalized_key(self) -> str:
        return normalize_footer_key(self.key)

    @property
    def is_breaking(self) -> bool:
        return self.normalized_key == BREAKING_CHANGE_KEY

    def format(self) -> str:
        return f"{self.key}{self.separator}{self.value}"


class TicketRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TicketKind
    id: str = Field(description="Ticket identifier, e.g. ABC-123 or 456")
    raw: str = Field(description="Reference as it appeared in the message")

    @property
    def project(self) -> Optional[str]:
        """Project key of a JIRA-style id (``ABC`` for ``ABC-123``)."""
        if self.kind == TicketKind.GITHUB or "-" not in self.id:
            return None
        return self.id.rsplit("-", 1)[0]


class ParsedCommit(BaseModel):
    """Immutable result of parsing one commit message."""

    model_config = ConfigDict(frozen=True)

    type: str
    scope: Optional[str] = None
    breaking: bool = False
    breaking_marker: bool = Field(
        default=False, description="Whether '!' preceded the header colon"
    )
    subject: str
    body: Optional[str] = None
    footers: Tuple[Footer, ...] = ()
    malformed_footers: Tuple[str, ...] = ()
    ticket_refs: Tuple[TicketRef, ...] = ()

    def header(self) -> str:
        """Re-serialize the header line: ``type(scope)!: subject``."""
        header = self.type
        if self.scope is not None:
            header += f"({self.scope})"
        if self.breaking_marker:
            header += "!"
        return f"{header}: {self.subject}"

    def format(self) -> str:
        parts = [self.header()]
        if self.body:
            parts.append(self.body)
        if self.footers:
            parts.append("\n".join(footer.format() for footer in self.footers))
        return "\n\n".join(parts)

    def footer_values(self, key: str) -> List[str]:
        """All values of footers whose key normalizes to ``key``."""
        wanted = normalize_footer_key(key)
        return [f.value for f in self.footers if f.normalized_key == wanted]

    @property
    def has_ticket_refs(self) -> bool:
        return len(self.ticket_refs) > 0

    def jira_tickets(self) -> List[TicketRef]:
        return [ref for ref in self.ticket_refs if ref.kind == TicketKind.JIRA]


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule: str = Field(description="Name of the rule that failed")
    message: str = Field(description="Why the rule failed and how to fix it")

    def __str__(self) -> str:
        return f"{self.rule}: {self.message}"


class ValidationResult(BaseModel):
    """Outcome of validating one commit message.

    ``valid`` is true exactly when ``violations`` is empty. A timed-out result
    carries ``timed_out=True`` and is always invalid: callers must treat it as
    inconclusive, never as a pass.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    violations: Tuple[Violation, ...] = ()
    ignored: bool = Field(
        default=False, description="Message matched an ignore pattern"
    )
    timed_out: bool = False

    @model_validator(mode="after")
    def _check_consistency(self) -> "ValidationResult":
        if self.valid and self.violations:
            raise ValueError("a valid result cannot carry violations")
        if not self.valid and not self.violations:
            raise ValueError("an invalid result needs at least one violation")
        return self

    @classmethod
    def passed(cls, ignored: bool = False) -> "ValidationResult":
        return cls(valid=True, ignored=ignored)

    @classmethod
    def failed(cls, violations: List[Violation], timed_out: bool = False) -> "ValidationResult":
        return cls(valid=False, violations=tuple(violations), timed_out=timed_out)

    @property
    def inconclusive(self) -> bool:
        return self.timed_out

    @property
    def rule_names(self) -> List[str]:
        return [v.rule for v in self.violations]

    def format_report(self) -> str:
        """Plain-text report for hooks and log files."""
        if self.valid:
            if self.ignored:
                return "Commit message skipped (matched an ignore pattern)"
            return "Commit message is valid"

        header = "Commit message validation failed:"
        if self.timed_out:
            header = "Commit message validation was inconclusive:"
        lines = [header]
        lines.extend(f"  - {violation}" for violation in self.violations)
        return "\n".join(lines)
