"""Comment thread builder.

Turns the flat comment list of one post into a sorted forest.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Sequence

import logfire

from crux.domain.model import Comment
from crux.domain.value import CommentId, SortOrder

from .sort_policy import sort_entries


@dataclass(frozen=True, eq=False)
class ThreadNode:
    """Node in a comment thread.

    ``reply_count`` is the number of direct replies, i.e. ``len(children)``.
    Nodes are compared by identity: the builder reuses a node from the
    previous build when neither its comment nor its subtree changed.
    """

    comment: Comment
    children: tuple["ThreadNode", ...] = field(default_factory=tuple)
    reply_count: int = 0

    @property
    def id(self) -> CommentId:
        return self.comment.id

    @property
    def avg_rating(self) -> float | None:
        return self.comment.avg_rating

    @property
    def rating_count(self) -> int:
        return self.comment.rating_count

    @property
    def time(self) -> datetime | None:
        return self.comment.time

    def walk(self) -> Iterable["ThreadNode"]:
        """Depth-first traversal in display order."""
        yield self
        for child in self.children:
            yield from child.walk()


class ThreadBuilder:
    """Builds comment forests.

    Holds the previous build so unchanged nodes keep their identity across
    rebuilds. Use one builder per comment view.
    """

    def __init__(self) -> None:
        self._previous: dict[CommentId, ThreadNode] = {}

    def build(self, comments: Sequence[Comment], order: SortOrder) -> list[ThreadNode]:
        """Build the sorted forest of a post's comments.

        Algorithm:
        1. Index comments by id
        2. Link each comment under its parent when the parent is in the set;
           missing or self-referencing parents make it a root
        3. Break parent cycles: one member of each cycle becomes a root, so
           every comment still appears exactly once
        4. Recursively sort children (and roots) with the sort policy; each
           node's reply_count is its direct children count after sorting

        Args:
            comments: Flat comment list (any order)
            order: Ordering applied at every level

        Returns:
            Root nodes, sorted
        """
        with logfire.span("thread_builder.build", comments=len(comments), order=str(order)):
            # Index pass (later duplicates of an id replace earlier ones)
            index: dict[CommentId, Comment] = {c.id: c for c in comments}

            # Link pass
            adjacency: dict[CommentId, list[CommentId]] = defaultdict(list)
            parent_of: dict[CommentId, CommentId] = {}
            roots: list[CommentId] = []
            for comment_id, comment in index.items():
                parent_id = comment.parent_id
                if parent_id is not None and parent_id != comment_id and parent_id in index:
                    adjacency[parent_id].append(comment_id)
                    parent_of[comment_id] = parent_id
                else:
                    roots.append(comment_id)

            reached = self._reachable(roots, adjacency)
            for comment_id in index:
                if comment_id in reached:
                    continue
                # Walk up to the cycle this comment hangs from
                trail: list[CommentId] = []
                current = comment_id
                while current not in trail:
                    trail.append(current)
                    current = parent_of[current]
                adjacency[parent_of[current]].remove(current)
                roots.append(current)
                reached |= self._reachable([current], adjacency)
                logfire.warn("Comment parent cycle broken", comment_id=str(current))

            built: dict[CommentId, ThreadNode] = {}

            def build_subtree(comment_id: CommentId) -> ThreadNode:
                """Build a node after its children, sorted."""
                children = sort_entries(
                    (build_subtree(child_id) for child_id in adjacency.get(comment_id, [])),
                    order,
                )
                node = self._reuse(index[comment_id], tuple(children))
                built[comment_id] = node
                return node

            forest = sort_entries((build_subtree(root_id) for root_id in roots), order)
            self._previous = built

            logfire.debug(
                "Thread built", roots=len(forest), comments=len(index)
            )
            return forest

    def _reuse(self, comment: Comment, children: tuple[ThreadNode, ...]) -> ThreadNode:
        previous = self._previous.get(comment.id)
        if (
            previous is not None
            and previous.comment == comment
            and len(previous.children) == len(children)
            and all(a is b for a, b in zip(previous.children, children))
        ):
            return previous
        return ThreadNode(comment=comment, children=children, reply_count=len(children))

    @staticmethod
    def _reachable(
        starts: Iterable[CommentId], adjacency: dict[CommentId, list[CommentId]]
    ) -> set[CommentId]:
        seen: set[CommentId] = set()
        stack = list(starts)
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(adjacency.get(current, []))
        return seen
