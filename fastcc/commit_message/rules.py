"""Validation rules for parsed commit messages.

Each rule is an independent predicate over a :class:`ParsedCommit` (and the
raw message text) that contributes at most one :class:`Violation`. Rules never
look at each other's results and hold only read-only state, so a rule set can
be evaluated in any order or concurrently.

The set of rule kinds is closed: :class:`RuleKind` lists them in reporting
priority order, and violations are always sorted by that order.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import FrozenSet, Optional, Pattern, Sequence, Tuple

from ..models import ParsedCommit, TicketKind, Violation


class RuleKind(str, Enum):
    FORMAT = "format"
    TYPE = "type"
    SCOPE_REQUIRED = "scope-required"
    SCOPE = "scope"
    SUBJECT_LENGTH = "subject-length"
    BREAKING_NOT_ALLOWED = "breaking-not-allowed"
    FOOTER_FORMAT = "footer-format"
    JIRA_TICKET = "jira-ticket"
    TICKET_REF = "ticket-ref"
    CUSTOM = "custom"
    TIMEOUT = "timeout"


def _join(values: Sequence[str]) -> str:
    return ", ".join(values)


class Rule(ABC):
    """Abstract base class for validation rules.

    Attributes:
        kind: The rule kind, which also fixes its reporting priority
        name: Name reported in violations; defaults to the kind's value
    """

    kind: RuleKind

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.kind.value

    def violation(self, message: str) -> Violation:
        return Violation(rule=self.name, message=message)

    @abstractmethod
    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        """Return a violation if ``commit`` breaks this rule, else None."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class TypeRule(Rule):
    """The commit type must be one of the allowed types."""

    kind = RuleKind.TYPE

    def __init__(self, allowed: FrozenSet[str], display: Tuple[str, ...]):
        super().__init__()
        self.allowed = allowed
        self.display = display

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if commit.type in self.allowed:
            return None
        return self.violation(
            f"type '{commit.type}' not in allowed types: {_join(self.display)}"
        )


class ScopeRequiredRule(Rule):
    kind = RuleKind.SCOPE_REQUIRED

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if commit.scope is not None:
            return None
        return self.violation(
            f"a scope is required, e.g. '{commit.type}(api): {commit.subject}'"
        )


class ScopeRule(Rule):
    """The scope, when present, must be one of the allowed scopes.

    Only built when the allowed set is non-empty; an empty set means any
    scope is accepted.
    """

    kind = RuleKind.SCOPE

    def __init__(self, allowed: FrozenSet[str], display: Tuple[str, ...]):
        super().__init__()
        self.allowed = allowed
        self.display = display

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if commit.scope is None or commit.scope in self.allowed:
            return None
        return self.violation(
            f"scope '{commit.scope}' not in allowed scopes: {_join(self.display)}"
        )


class SubjectLengthRule(Rule):
    """The subject must not exceed ``max_length`` code points."""

    kind = RuleKind.SUBJECT_LENGTH

    def __init__(self, max_length: int):
        super().__init__()
        self.max_length = max_length

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        length = len(commit.subject)
        if length <= self.max_length:
            return None
        return self.violation(
            f"subject is {length} characters long, maximum is {self.max_length}; "
            f"move details to the body"
        )


class BreakingChangeRule(Rule):
    kind = RuleKind.BREAKING_NOT_ALLOWED

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if not commit.breaking:
            return None
        marker = "'!' in the header" if commit.breaking_marker else "a BREAKING CHANGE footer"
        return self.violation(
            f"breaking changes are not allowed, but the message declares one via {marker}"
        )


class FooterFormatRule(Rule):
    """Footer-looking lines must follow ``Token: value`` or ``Token #123``."""

    kind = RuleKind.FOOTER_FORMAT

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if not commit.malformed_footers:
            return None
        lines = _join(f"'{line}'" for line in commit.malformed_footers)
        return self.violation(
            f"malformed footer line(s) {lines}; expected 'Token: value' or 'Token #123'"
        )


class JiraTicketRule(Rule):
    """JIRA ticket policy.

    When ``required`` is set, at least one JIRA-style reference must match
    ``pattern`` (if any) and belong to a project in ``projects`` (if any).
    Otherwise every JIRA-style reference that is present must satisfy the
    pattern and the project whitelist.
    """

    kind = RuleKind.JIRA_TICKET

    def __init__(
        self,
        required: bool,
        pattern: Optional[Pattern] = None,
        projects: Tuple[str, ...] = (),
    ):
        super().__init__()
        self.required = required
        self.pattern = pattern
        self.projects = projects

    def _accepts(self, ticket_id: str, project: Optional[str]) -> bool:
        if self.pattern is not None and not self.pattern.search(ticket_id):
            return False
        return not self.projects or project in self.projects

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        candidates = [
            ref for ref in commit.ticket_refs
            if ref.kind in (TicketKind.JIRA, TicketKind.GENERIC)
        ]
        rejected = [ref for ref in candidates if not self._accepts(ref.id, ref.project)]

        if self.required:
            if len(rejected) < len(candidates):
                return None
            requirement = "a JIRA ticket reference is required (e.g. ABC-123)"
            if self.projects:
                requirement += f" from projects: {_join(self.projects)}"
            if rejected:
                requirement += f"; found {_join([ref.id for ref in rejected])}"
            return self.violation(requirement)

        if not rejected:
            return None
        details = []
        for ref in rejected:
            if self.pattern is not None and not self.pattern.search(ref.id):
                details.append(
                    f"JIRA ticket '{ref.id}' does not match pattern '{self.pattern.pattern}'"
                )
            else:
                details.append(
                    f"JIRA project '{ref.project}' not in allowed projects: {_join(self.projects)}"
                )
        return self.violation("; ".join(details))


class TicketRefRule(Rule):
    kind = RuleKind.TICKET_REF

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if commit.has_ticket_refs:
            return None
        return self.violation(
            "a ticket reference is required (e.g. ABC-123, [ABC-123], #123 or GH-456)"
        )


class PatternRule(Rule):
    """A custom rule: the raw message must contain a match for ``pattern``."""

    kind = RuleKind.CUSTOM

    def __init__(self, name: str, pattern: Pattern, message: str = ""):
        super().__init__(name)
        self.pattern = pattern
        self.message = message

    def check(self, commit: ParsedCommit, message: str) -> Optional[Violation]:
        if self.pattern.search(message):
            return None
        return self.violation(
            self.message
            or f"message does not match required pattern '{self.pattern.pattern}'"
        )
