"""Commit message parsing and validation package."""

from .parser import parse, extract_ticket_refs
from .rules import (
    Rule,
    RuleKind,
    TypeRule,
    ScopeRequiredRule,
    ScopeRule,
    SubjectLengthRule,
    BreakingChangeRule,
    FooterFormatRule,
    JiraTicketRule,
    TicketRefRule,
    PatternRule,
)
from .ruleset import RuleSet, build_rule_set
from .cache import ResultCache
from .validator import CommitMessageValidator, strip_comments, validate_message

__all__ = [
    'parse',
    'extract_ticket_refs',
    'Rule',
    'RuleKind',
    'TypeRule',
    'ScopeRequiredRule',
    'ScopeRule',
    'SubjectLengthRule',
    'BreakingChangeRule',
    'FooterFormatRule',
    'JiraTicketRule',
    'TicketRefRule',
    'PatternRule',
    'RuleSet',
    'build_rule_set',
    'ResultCache',
    'CommitMessageValidator',
    'strip_comments',
    'validate_message',
]
