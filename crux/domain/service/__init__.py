"""Domain services."""

from .aggregation import AggregationEngine, aggregate
from .auth_service import AuthService, IdentityProvider
from .comment_service import CommentService
from .draft_reconciler import DraftOutcome, DraftReconciler
from .live_feed import LiveFeedSubscription
from .post_service import PostService
from .posting_gate import PostingGate
from .sort_policy import sort_entries, sort_tags
from .tag_indexer import TagIndexer
from .thread_builder import ThreadBuilder, ThreadNode
from .user_service import UserService

__all__ = [
    "AggregationEngine",
    "AuthService",
    "CommentService",
    "DraftOutcome",
    "DraftReconciler",
    "IdentityProvider",
    "LiveFeedSubscription",
    "PostService",
    "PostingGate",
    "TagIndexer",
    "ThreadBuilder",
    "ThreadNode",
    "UserService",
    "aggregate",
    "sort_entries",
    "sort_tags",
]
