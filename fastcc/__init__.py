"""fast-cc-hooks: Conventional Commits validation for git commit messages."""

__version__ = "1.2.0"

from .commit_message import (
    CommitMessageValidator,
    RuleSet,
    build_rule_set,
    parse,
    validate_message,
)
from .config import Config, CustomRule
from .errors import ConfigError, ParseError
from .models import ParsedCommit, ValidationResult, Violation

__all__ = [
    "__version__",
    "CommitMessageValidator",
    "Config",
    "ConfigError",
    "CustomRule",
    "ParseError",
    "ParsedCommit",
    "RuleSet",
    "ValidationResult",
    "Violation",
    "build_rule_set",
    "parse",
    "validate_message",
]
