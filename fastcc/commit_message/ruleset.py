"""Compiled, immutable validation policy.

A :class:`RuleSet` is built once from a :class:`~fastcc.config.Config` and is
then shared read-only by every validation, including concurrent ones. All
regular expressions are compiled here so that a bad pattern is reported at
startup rather than in the middle of validating a message.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Pattern, Tuple

from ..config import Config
from ..errors import ConfigError, ConfigErrorKind
from .rules import (
    BreakingChangeRule,
    FooterFormatRule,
    JiraTicketRule,
    PatternRule,
    Rule,
    RuleKind,
    ScopeRequiredRule,
    ScopeRule,
    SubjectLengthRule,
    TicketRefRule,
    TypeRule,
)

RULE_PRIORITY: Dict[RuleKind, int] = {kind: index for index, kind in enumerate(RuleKind)}


@dataclass(frozen=True)
class RuleSet:
    """Read-only validation policy with its rules in reporting order."""

    allowed_types: FrozenSet[str]
    allowed_scopes: FrozenSet[str]
    scope_required: bool
    max_subject_length: int
    allow_breaking_changes: bool
    require_jira_ticket: bool = False
    require_ticket_ref: bool = False
    jira_ticket_pattern: Optional[Pattern] = None
    jira_projects: Tuple[str, ...] = ()
    ignore_patterns: Tuple[Pattern, ...] = ()
    rules: Tuple[Rule, ...] = field(default=(), repr=False)

    @property
    def scopes_unrestricted(self) -> bool:
        return not self.allowed_scopes

    def should_ignore(self, message: str) -> Optional[Pattern]:
        """Return the first ignore pattern matching ``message``, if any."""
        for pattern in self.ignore_patterns:
            if pattern.search(message):
                return pattern
        return None

    def ordered_rules(self) -> Tuple[Tuple[Tuple[int, int], Rule], ...]:
        """Rules paired with the sort key that fixes their report order."""
        return tuple(
            ((RULE_PRIORITY[rule.kind], index), rule) for index, rule in enumerate(self.rules)
        )

    @classmethod
    def from_config(cls, config: Config) -> 'RuleSet':
        return build_rule_set(config)


def _dedupe(values: Iterable[str]) -> Tuple[str, ...]:
    seen = {}
    for value in values:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


def _compile(pattern: str, rule_name: str) -> Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(
            ConfigErrorKind.INVALID_PATTERN,
            f"invalid regular expression '{pattern}': {e}",
            rule_name=rule_name,
        ) from e


def build_rule_set(config: Config) -> RuleSet:
    """Validate ``config`` and compile it into a :class:`RuleSet`.

    Raises:
        ConfigError: For an empty type list, a non-positive subject length,
            an incomplete custom rule or any pattern that does not compile
    """
    types = _dedupe(config.types)
    if not types:
        raise ConfigError(ConfigErrorKind.INVALID_VALUE, "at least one commit type must be defined")

    if config.max_subject_length <= 0:
        raise ConfigError(
            ConfigErrorKind.INVALID_VALUE,
            f"max_subject_length must be positive, got {config.max_subject_length}",
        )

    scopes = _dedupe(config.scopes)
    projects = _dedupe(config.jira_projects)

    jira_pattern = None
    if config.jira_ticket_pattern:
        jira_pattern = _compile(config.jira_ticket_pattern, "jira_ticket_pattern")

    ignore_patterns = tuple(
        _compile(pattern, f"ignore_patterns[{index}]")
        for index, pattern in enumerate(config.ignore_patterns)
    )

    custom_rules = []
    for index, custom in enumerate(config.custom_rules):
        if not custom.name:
            raise ConfigError(ConfigErrorKind.INVALID_VALUE, f"custom rule {index}: name is required")
        if not custom.pattern:
            raise ConfigError(
                ConfigErrorKind.INVALID_VALUE, "custom rule pattern is required", rule_name=custom.name
            )
        custom_rules.append(PatternRule(custom.name, _compile(custom.pattern, custom.name), custom.message))

    rules = [TypeRule(frozenset(types), types)]
    if config.scope_required:
        rules.append(ScopeRequiredRule())
    if scopes:
        rules.append(ScopeRule(frozenset(scopes), scopes))
    rules.append(SubjectLengthRule(config.max_subject_length))
    if not config.allow_breaking_changes:
        rules.append(BreakingChangeRule())
    rules.append(FooterFormatRule())
    if config.require_jira_ticket or projects or jira_pattern is not None:
        rules.append(JiraTicketRule(config.require_jira_ticket, jira_pattern, projects))
    if config.require_ticket_ref:
        rules.append(TicketRefRule())
    rules.extend(custom_rules)

    return RuleSet(
        allowed_types=frozenset(types),
        allowed_scopes=frozenset(scopes),
        scope_required=config.scope_required,
        max_subject_length=config.max_subject_length,
        allow_breaking_changes=config.allow_breaking_changes,
        require_jira_ticket=config.require_jira_ticket,
        require_ticket_ref=config.require_ticket_ref,
        jira_ticket_pattern=jira_pattern,
        jira_projects=projects,
        ignore_patterns=ignore_patterns,
        rules=tuple(rules),
    )
