"""Tokenizer and parser for conventional commit messages.

The grammar is line oriented::

    type(scope)!: subject        <- header, required
    <blank line>                 <- required when anything follows
    body ...                     <- optional free text
    Token: value                 <- optional trailing footer block
    Token #123

A message that does not match the header grammar raises :class:`ParseError`.
Problems that do not block tokenizing the header, such as a footer line with
a missing space, are recorded on the :class:`ParsedCommit` and reported later
by the rule engine.
"""

import re
from typing import List, Optional, Tuple

from ..errors import ParseError, ParseErrorKind
from ..models import Footer, ParsedCommit, TicketKind, TicketRef

HEADER_RE = re.compile(
    r"^(?P<type>[a-z]+)(?:\((?P<scope>[^)]+)\))?(?P<bang>!)?:\s(?P<subject>.+)$"
)

FOOTER_RE = re.compile(r"^(?P<key>BREAKING CHANGE|[A-Za-z-]+)(?P<sep>: )(?P<value>.+)$")
FOOTER_REF_RE = re.compile(r"^(?P<key>[A-Za-z-]+)(?P<sep> #)(?P<value>\d+)$")

# Lines that open like a footer token but break its grammar.
MALFORMED_FOOTER_RES = (
    re.compile(r"^[A-Za-z][A-Za-z-]*:(?!//)(?! \S)(?=\s*\S)"),
    re.compile(r"^[A-Za-z][A-Za-z-]* #(?!\d+$)"),
    re.compile(r"^(?:BREAKING[ _-]?CHANGE\b|(?i:breaking[ _-]?change)\s*:)"),
)

# A bare "Token:" is a footer attempt only as the last line; above other
# lines it is a heading in body prose.
BARE_FOOTER_RE = re.compile(r"^[A-Za-z][A-Za-z-]*:\s*$")

GITHUB_REF_RE = re.compile(r"(?:(?<![\w&])#(\d+)|\bGH-(\d+))\b")
GENERIC_REF_RE = re.compile(r"\[([A-Z]{2}[A-Z0-9]{0,8}-\d+)\]")
JIRA_REF_RE = re.compile(r"\b([A-Z]{2}[A-Z0-9]{0,8}-\d+)\b")


def _match_footer(line: str) -> Optional[Footer]:
    match = FOOTER_RE.match(line) or FOOTER_REF_RE.match(line)
    if not match or not match.group("value").strip():
        return None
    return Footer(key=match.group("key"), separator=match.group("sep"), value=match.group("value"))


def _is_malformed_footer(line: str, last: bool) -> bool:
    if last and BARE_FOOTER_RE.match(line):
        return True
    return any(pattern.match(line) for pattern in MALFORMED_FOOTER_RES)


def _trim_blank(lines: List[str]) -> List[str]:
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def _split_trailing_footers(lines: List[str]) -> Tuple[List[str], List[Footer]]:
    """Split ``lines`` into body lines and the contiguous trailing footer block."""
    footers: List[Footer] = []
    index = len(lines)
    while index > 0:
        footer = _match_footer(lines[index - 1])
        if footer is None:
            break
        footers.append(footer)
        index -= 1
    footers.reverse()
    return lines[:index], footers


def _last_paragraph(lines: List[str]) -> List[str]:
    for index in range(len(lines) - 1, -1, -1):
        if not lines[index].strip():
            return lines[index + 1:]
    return lines


def extract_ticket_refs(message: str) -> Tuple[TicketRef, ...]:
    """Find ticket references anywhere in ``message``.

    GitHub references are collected first, then bracketed ``[ABC-123]``
    references, then bare JIRA keys that were not already seen.
    """
    refs: List[TicketRef] = []
    seen = set()

    def add(kind: TicketKind, ticket_id: str, raw: str) -> None:
        if (kind, ticket_id) not in seen:
            seen.add((kind, ticket_id))
            refs.append(TicketRef(kind=kind, id=ticket_id, raw=raw))

    for match in GITHUB_REF_RE.finditer(message):
        add(TicketKind.GITHUB, match.group(1) or match.group(2), match.group(0))

    for match in GENERIC_REF_RE.finditer(message):
        add(TicketKind.GENERIC, match.group(1), match.group(0))

    for match in JIRA_REF_RE.finditer(message):
        ticket_id = match.group(1)
        if ticket_id.startswith("GH-") or (TicketKind.GENERIC, ticket_id) in seen:
            continue
        add(TicketKind.JIRA, ticket_id, match.group(0))

    return tuple(refs)


def parse(raw: str) -> ParsedCommit:
    """Parse a raw commit message.

    Args:
        raw: The full commit message, as git would store it

    Returns:
        ParsedCommit: The tokenized commit

    Raises:
        ParseError: If the message is empty, the header does not follow
            ``type(scope)!: subject``, or the header is not followed by a
            blank line
    """
    lines = _trim_blank(raw.replace("\r\n", "\n").split("\n"))
    if not lines:
        raise ParseError(ParseErrorKind.EMPTY_MESSAGE, "commit message is empty")

    header = lines[0]
    match = HEADER_RE.match(header)
    if not match or not match.group("subject").strip():
        raise ParseError(
            ParseErrorKind.MALFORMED_HEADER,
            f"header must follow 'type(scope): subject' "
            f"(lowercase type, optional scope, colon and space), got '{header}'",
            line=1,
        )

    body_lines: List[str] = []
    footers: List[Footer] = []

    if len(lines) > 1:
        if lines[1].strip():
            # Footers may follow the header directly when nothing else does.
            candidates = [_match_footer(line) for line in lines[1:]]
            if any(footer is None for footer in candidates):
                raise ParseError(
                    ParseErrorKind.MISSING_BODY_SEPARATOR,
                    "the header must be followed by a blank line before the body",
                    line=2,
                )
            footers = [footer for footer in candidates if footer is not None]
        else:
            body_lines, footers = _split_trailing_footers(lines[2:])
            body_lines = _trim_blank(body_lines)

    paragraph = _last_paragraph(body_lines)
    malformed = tuple(
        line for index, line in enumerate(paragraph)
        if _is_malformed_footer(line, last=index == len(paragraph) - 1)
    )
    bang = match.group("bang") is not None

    return ParsedCommit(
        type=match.group("type"),
        scope=match.group("scope"),
        breaking=bang or any(footer.is_breaking for footer in footers),
        breaking_marker=bang,
        subject=match.group("subject"),
        body="\n".join(body_lines) if body_lines else None,
        footers=tuple(footers),
        malformed_footers=malformed,
        ticket_refs=extract_ticket_refs(raw),
    )
