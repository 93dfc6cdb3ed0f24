"""Unit tests for ThreadBuilder."""

from crux.domain.service import ThreadBuilder
from crux.domain.value import RatingAggregate, SortOrder
from tests.conftest import make_comment


def _ids(nodes):
    return [node.id for node in nodes]


class TestBuild:
    """Tests for building comment forests."""

    def test_replies_nest_under_parents(self):
        comments = [
            make_comment("c1", minutes_ago=10),
            make_comment("r1", parent_id="c1", minutes_ago=5),
            make_comment("r2", parent_id="r1", minutes_ago=1),
        ]

        forest = ThreadBuilder().build(comments, SortOrder.RECENCY)

        assert _ids(forest) == ["c1"]
        assert _ids(forest[0].children) == ["r1"]
        assert _ids(forest[0].children[0].children) == ["r2"]

    def test_reply_count_equals_children_length(self):
        comments = [
            make_comment("c1"),
            make_comment("r1", parent_id="c1"),
            make_comment("r2", parent_id="c1"),
            make_comment("r3", parent_id="r1"),
        ]

        forest = ThreadBuilder().build(comments, SortOrder.RECENCY)

        for root in forest:
            for node in root.walk():
                assert node.reply_count == len(node.children)
        assert forest[0].reply_count == 2

    def test_missing_parent_becomes_root(self):
        comments = [make_comment("orphan", parent_id="deleted"), make_comment("c1", minutes_ago=5)]

        forest = ThreadBuilder().build(comments, SortOrder.RECENCY)

        assert set(_ids(forest)) == {"orphan", "c1"}

    def test_self_parent_becomes_root(self):
        forest = ThreadBuilder().build([make_comment("c1", parent_id="c1")], SortOrder.RECENCY)

        assert _ids(forest) == ["c1"]
        assert forest[0].children == ()

    def test_cycle_is_broken_and_every_comment_appears_once(self):
        comments = [
            make_comment("a", parent_id="b"),
            make_comment("b", parent_id="a"),
            make_comment("c", parent_id="a"),
        ]

        forest = ThreadBuilder().build(comments, SortOrder.RECENCY)

        seen = [node.id for root in forest for node in root.walk()]
        assert sorted(seen) == ["a", "b", "c"]
        assert len(forest) == 1

    def test_children_sorted_at_every_level(self):
        comments = [
            make_comment("c1", minutes_ago=30),
            make_comment("low", parent_id="c1", ratings=[2]),
            make_comment("high", parent_id="c1", ratings=[10]),
            make_comment("unrated", parent_id="c1"),
        ]

        forest = ThreadBuilder().build(comments, SortOrder.TOP_RATED)

        assert _ids(forest[0].children) == ["high", "low", "unrated"]

    def test_empty_list(self):
        assert ThreadBuilder().build([], SortOrder.TOP_RATED) == []


class TestNodeReuse:
    """Unchanged subtrees keep their node identity across rebuilds."""

    def test_unchanged_nodes_are_reused(self):
        builder = ThreadBuilder()
        comments = [
            make_comment("c1", minutes_ago=10),
            make_comment("c2", minutes_ago=5),
            make_comment("r1", parent_id="c1"),
        ]
        first = {node.id: node for root in builder.build(comments, SortOrder.RECENCY) for node in root.walk()}

        rated = comments[1].with_rating(RatingAggregate(average=7.0, count=1, total=7))
        second = {
            node.id: node
            for root in builder.build([comments[0], rated, comments[2]], SortOrder.RECENCY)
            for node in root.walk()
        }

        assert second["c1"] is first["c1"]
        assert second["r1"] is first["r1"]
        assert second["c2"] is not first["c2"]
        assert second["c2"].avg_rating == 7.0

    def test_parent_rebuilt_when_child_changes(self):
        builder = ThreadBuilder()
        comments = [make_comment("c1"), make_comment("r1", parent_id="c1")]
        first = builder.build(comments, SortOrder.RECENCY)

        rated = comments[1].with_rating(RatingAggregate(average=3.0, count=1, total=3))
        second = builder.build([comments[0], rated], SortOrder.RECENCY)

        assert second[0] is not first[0]
