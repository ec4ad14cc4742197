"""Parser for merge-bot commit log lines.

Input is one line of ``git log --pretty=format:%H::::%s::::%an`` output::

    f77bfb7336f21bfe6a5fb5f7358d4406e2597289::::Auto merge of #108620 - Dylan-DPC:rollup-o5c4evy, r=Dylan-DPC::::bors
    02e4eefd88a55776cbb163c1ba025f0736e52026::::Rollup merge of #108605 - JohnTitor:issue-105821, r=compiler-errors::::Dylan DPC

Parsing is purely string based so a whole history can be processed in a single
linear pass without touching git objects.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from mergelens_core.models import MergeCommit

DEFAULT_BOT_NAME = "bors"

FIELD_DELIMITER = "::::"
_ROLLUP_PREFIX = "Rollup merge of "
_AUTO_PREFIX = "Auto merge of "
_PR_RE = re.compile(r"#([0-9]+)")
_MAX_PR = 2**32 - 1


class ParseFailure(enum.Enum):
    """Why a line that looked like a bot merge could not be parsed."""

    NO_PR = "no pull request number"
    NO_DASH = "no '-' separator after the pull request number"
    NO_AUTHOR_AND_BRANCH = "no author:branch token"
    NO_R = "no r= reviewer token"
    INVALID_AUTHOR_AND_BRANCH = "author:branch token has no ':'"
    INVALID_PR_NUMBER = "pull request number is not an integer in 1..2**32-1"
    NO_DELIMITERS = "line does not have exactly three '::::' separated fields"


class ParseError(ValueError):
    """A structurally malformed merge commit line."""

    def __init__(self, kind: ParseFailure, line: str = ""):
        self.kind = kind
        self.line = line
        super().__init__(f"{kind.value}: {line!r}")


@dataclass
class _Subject:
    """Minimally split subject of a bot merge commit."""

    pr: str  # "#12345"
    author_and_branch: str  # "author:branch,"
    r: str  # "r=reviewer1,reviewer2"
    is_rollup: bool


def _parse_subject(subject: str, line: str) -> _Subject | None:
    if subject.startswith(_ROLLUP_PREFIX):
        rest = subject[len(_ROLLUP_PREFIX) :]
        is_rollup = True
    elif subject.startswith(_AUTO_PREFIX):
        rest = subject[len(_AUTO_PREFIX) :]
        is_rollup = False
    else:
        return None

    if not rest:
        raise ParseError(ParseFailure.NO_PR, line)

    tokens = rest.split(" ")
    if len(tokens) < 2 or tokens[1] != "-":
        raise ParseError(ParseFailure.NO_DASH, line)
    if len(tokens) < 3:
        raise ParseError(ParseFailure.NO_AUTHOR_AND_BRANCH, line)
    if len(tokens) < 4:
        raise ParseError(ParseFailure.NO_R, line)

    return _Subject(pr=tokens[0], author_and_branch=tokens[2], r=tokens[3], is_rollup=is_rollup)


def parse_merge_commit(line: str, bot_name: str = DEFAULT_BOT_NAME) -> MergeCommit | None:
    """Parse one log line into a MergeCommit.

    Returns None when the line is not a bot merge: the subject has neither
    merge prefix, or it is an "Auto merge of" commit not authored by
    ``bot_name``. Raises ParseError when the line is a bot merge but is
    malformed.
    """
    line = line.rstrip("\r\n")
    fields = line.split(FIELD_DELIMITER)
    if len(fields) != 3:
        raise ParseError(ParseFailure.NO_DELIMITERS, line)
    commit_hash, subject, commit_author = fields

    parsed = _parse_subject(subject, line)
    if parsed is None:
        return None

    if parsed.is_rollup:
        rollup_by: str | None = commit_author
    elif commit_author == bot_name:
        rollup_by = None
    else:
        return None

    author, sep, branch = parsed.author_and_branch.rstrip(",").partition(":")
    if not sep:
        raise ParseError(ParseFailure.INVALID_AUTHOR_AND_BRANCH, line)

    match = _PR_RE.fullmatch(parsed.pr)
    if match is None or not 0 < int(match.group(1)) <= _MAX_PR:
        raise ParseError(ParseFailure.INVALID_PR_NUMBER, line)

    if not parsed.r.startswith("r="):
        raise ParseError(ParseFailure.NO_R, line)
    reviewers = tuple(parsed.r[len("r=") :].split(","))

    return MergeCommit(
        hash=commit_hash,
        author=author,
        branch=branch,
        approved_by=reviewers,
        pr=int(match.group(1)),
        rollup_by=rollup_by,
    )
