"""Reactive views exposed to the UI."""

from crux.application.view.base import View, ViewState
from crux.application.view.drafts import DraftsState, DraftsView
from crux.application.view.feed import FeedState, FeedView, TagFeedState, TagFeedView
from crux.application.view.post_detail import PostDetailState, PostDetailView
from crux.application.view.profile import ProfileState, ProfileView
from crux.application.view.tags import TagsState, TagsView

__all__ = [
    "View",
    "ViewState",
    "DraftsState",
    "DraftsView",
    "FeedState",
    "FeedView",
    "TagFeedState",
    "TagFeedView",
    "PostDetailState",
    "PostDetailView",
    "ProfileState",
    "ProfileView",
    "TagsState",
    "TagsView",
]
