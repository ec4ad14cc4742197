"""Turn a repository's commit log into queryable author/approver indices."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from mergelens_core.models import MergeCommit
from mergelens_core.parse import DEFAULT_BOT_NAME, ParseError, ParseFailure, parse_merge_commit

logger = logging.getLogger(__name__)

Grouped = dict[str, list[MergeCommit]]


@dataclass(frozen=True)
class RepoAnalysis:
    """Immutable snapshot of every bot merge found in one analysis pass.

    ``merges`` is the arena; the two indices map a username to positions in
    it, in discovery order. Nothing here is mutated after ``analyze`` returns,
    so one instance is shared by every reader of the cache.
    """

    merges: tuple[MergeCommit, ...] = ()
    authored_index: Mapping[str, tuple[int, ...]] = field(default_factory=lambda: MappingProxyType({}))
    approved_index: Mapping[str, tuple[int, ...]] = field(default_factory=lambda: MappingProxyType({}))
    skipped: Mapping[ParseFailure, int] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def merge_count(self) -> int:
        return len(self.merges)

    def authored_by(self, user: str) -> list[MergeCommit]:
        return [self.merges[idx] for idx in self.authored_index.get(user, ())]

    def approved_by(self, user: str) -> list[MergeCommit]:
        return [self.merges[idx] for idx in self.approved_index.get(user, ())]

    def approvers_for_author(self, user: str) -> Grouped:
        """Group the PRs authored by ``user`` by each of their approvers."""
        grouped: Grouped = {}
        for merge in self.authored_by(user):
            for approver in merge.approved_by:
                grouped.setdefault(approver, []).append(merge)
        return grouped

    def authors_for_approver(self, user: str) -> Grouped:
        """Group the PRs approved by ``user`` by their author."""
        grouped: Grouped = {}
        for merge in self.approved_by(user):
            grouped.setdefault(merge.author, []).append(merge)
        return grouped

    def report_authored_by(self, user: str) -> str | None:
        """Who approved ``user``'s pull requests, most frequent first."""
        return format_ranking(self.approvers_for_author(user), "r")

    def report_approved_by(self, user: str) -> str | None:
        """Whose pull requests ``user`` approved, most frequent first."""
        return format_ranking(self.authors_for_approver(user), "a")


def format_ranking(grouped: Mapping[str, list[MergeCommit]], mode: str) -> str | None:
    """Render one ``"<count> <mode>=<user>"`` line per counterpart.

    Sorted by descending count, then by username so equal counts always come
    out in the same order. Counts are right-aligned to the widest one.
    Returns None for an empty grouping.
    """
    if not grouped:
        return None

    ranked = sorted(grouped.items(), key=lambda item: (-len(item[1]), item[0]))
    width = len(str(len(ranked[0][1])))

    return "".join(f"{len(merges):>{width}} {mode}={user}\n" for user, merges in ranked)


def analyze(lines: Iterable[str], bot_name: str = DEFAULT_BOT_NAME) -> RepoAnalysis:
    """Parse every log line and build the author and approver indices.

    Lines that are not bot merges or fail to parse are skipped; a single bad
    commit never invalidates the rest of the history.
    """
    merges: list[MergeCommit] = []
    authored: dict[str, list[int]] = {}
    approved: dict[str, list[int]] = {}
    skipped: Counter[ParseFailure] = Counter()

    for line in lines:
        try:
            merge = parse_merge_commit(line, bot_name=bot_name)
        except ParseError as e:
            logger.debug("Skipping malformed merge commit (%s): %r", e.kind.name, e.line)
            skipped[e.kind] += 1
            continue
        if merge is None:
            continue

        idx = len(merges)
        merges.append(merge)
        authored.setdefault(merge.author, []).append(idx)
        # Duplicate approvers in one subject produce duplicate index entries.
        for approver in merge.approved_by:
            approved.setdefault(approver, []).append(idx)

    if skipped:
        breakdown = ", ".join(f"{kind.name}={count}" for kind, count in skipped.items())
        logger.info("Skipped %d malformed merge commit(s): %s", sum(skipped.values()), breakdown)

    return RepoAnalysis(
        merges=tuple(merges),
        authored_index=MappingProxyType({user: tuple(ids) for user, ids in authored.items()}),
        approved_index=MappingProxyType({user: tuple(ids) for user, ids in approved.items()}),
        skipped=MappingProxyType(dict(skipped)),
    )
