"""Exception types for fast-cc-hooks.

Two failure families exist:

* :class:`ConfigError` is raised while loading configuration or building a
  rule set. It is fatal and surfaces once, before any message is validated.
* :class:`ParseError` is raised by the parser when a message does not follow
  the header grammar. The validator converts it into a ``format`` violation,
  so callers never see it escape from ``validate``.
"""

from enum import Enum
from typing import Optional


class FastCCError(Exception):
    """Base class for all fast-cc-hooks errors."""


class ParseErrorKind(str, Enum):
    EMPTY_MESSAGE = "empty-message"
    MALFORMED_HEADER = "malformed-header"
    MISSING_BODY_SEPARATOR = "missing-body-separator"


class ParseError(FastCCError):
    """A commit message that cannot be tokenized into a conventional commit.

    Attributes:
        kind: Which part of the grammar was violated
        description: Human readable explanation, suitable for end users
        line: 1-based line number the problem was found on, if any
    """

    def __init__(self, kind: ParseErrorKind, description: str, line: Optional[int] = None):
        self.kind = kind
        self.description = description
        self.line = line
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.description} (line {self.line})"
        return self.description


class ConfigErrorKind(str, Enum):
    INVALID_FILE = "invalid-file"
    INVALID_VALUE = "invalid-value"
    INVALID_PATTERN = "invalid-pattern"


class ConfigError(FastCCError):
    """Malformed or self-contradictory configuration.

    Attributes:
        kind: Category of the configuration problem
        description: What is wrong and how to fix it
        rule_name: The custom rule or pattern the error belongs to, if any
    """

    def __init__(
        self,
        kind: ConfigErrorKind,
        description: str,
        rule_name: Optional[str] = None,
    ):
        self.kind = kind
        self.description = description
        self.rule_name = rule_name
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.rule_name:
            return f"{self.description} [{self.rule_name}]"
        return self.description
