"""Strongly typed identifiers for CRUX domain entities.

Document ids are opaque strings allocated by the store (or by the client
for local-only drafts). NewType keeps the different kinds apart.
"""

from typing import NewType

# Core domain entity identifiers
UserId = NewType("UserId", str)
PostId = NewType("PostId", str)
CommentId = NewType("CommentId", str)
DraftId = NewType("DraftId", str)
