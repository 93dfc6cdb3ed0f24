"""Post domain service."""

from typing import Callable

import logfire

from crux.config import ContentSettings
from crux.domain.error import NotAuthorizedError, NotFoundError, SyncError, ValidationError
from crux.domain.model import Identity, Post
from crux.domain.repository import (
    SERVER_TIMESTAMP,
    DocumentSnapshot,
    DocumentStore,
    StoreError,
    Unsubscribe,
    WriteOp,
    paths,
)
from crux.domain.repository.mappers import doc_to_post, post_to_doc
from crux.domain.value import PostId, parse_tags

from .posting_gate import PostingGate


class PostService:
    """Domain service for post operations."""

    def __init__(
        self,
        store: DocumentStore,
        posting_gate: PostingGate,
        content_settings: ContentSettings,
    ) -> None:
        """Initialize post service.

        Args:
            store: Document store
            posting_gate: Posting cooldown gate
            content_settings: Length limits
        """
        self.store = store
        self.posting_gate = posting_gate
        self.content_settings = content_settings

    def validate(
        self, title: str, content: str, tags_text: str
    ) -> tuple[str, str, tuple[str, ...]]:
        """Normalize and check post fields.

        Returns:
            Trimmed title, trimmed content and parsed tags

        Raises:
            ValidationError: If content is blank or a field is too long
        """
        title = title.strip()
        content = content.strip()
        if not content:
            raise ValidationError("Write something before posting")
        if len(content) > self.content_settings.content_max_length:
            raise ValidationError(
                f"Content is limited to {self.content_settings.content_max_length} characters"
            )
        if len(title) > self.content_settings.title_max_length:
            raise ValidationError(
                f"Title is limited to {self.content_settings.title_max_length} characters"
            )
        return title, content, parse_tags(tags_text)

    async def create_post(
        self, author: Identity, title: str, content: str, tags_text: str = ""
    ) -> PostId:
        """Create a post through the posting gate.

        Args:
            author: Signed-in identity
            title: Optional title
            content: Post content
            tags_text: Comma-separated tags

        Returns:
            Id of the created post

        Raises:
            ValidationError: If fields are invalid
            CooldownActiveError: If the author posted too recently
            SyncError: If the write fails
        """
        with logfire.span("post_service.create_post", author_id=str(author.id)):
            title, content, tags = self.validate(title, content, tags_text)
            self.posting_gate.check()

            post_id = PostId(self.store.allocate_id())
            doc = post_to_doc(title, content, tags, author.id, author.author_name)
            await self.posting_gate.submit(author.id, [WriteOp.set(paths.post(post_id), doc)])

            logfire.info(
                "Post created",
                post_id=str(post_id),
                author_id=str(author.id),
                tags=len(tags),
                content_length=len(content),
            )
            return post_id

    async def get_post(self, post_id: PostId) -> Post | None:
        """Read a post.

        Raises:
            SyncError: If the read fails
        """
        with logfire.span("post_service.get_post", post_id=str(post_id)):
            path = paths.post(post_id)
            try:
                doc = await self.store.get(path)
            except StoreError as e:
                raise SyncError("read", path, str(e)) from e
            post = doc_to_post(doc)
            if post is None:
                logfire.warn("Post not found", post_id=str(post_id))
            return post

    async def _owned_post(self, editor: Identity, post_id: PostId, action: str) -> Post:
        post = await self.get_post(post_id)
        if post is None:
            raise NotFoundError("Post", post_id)
        if post.author_id != editor.id:
            logfire.warn(
                "Post action by non-author",
                action=action,
                post_id=str(post_id),
                editor_id=str(editor.id),
            )
            raise NotAuthorizedError(action, "post", post_id)
        return post

    async def update_post(
        self,
        editor: Identity,
        post_id: PostId,
        title: str,
        content: str,
        tags_text: str = "",
    ) -> None:
        """Edit a post owned by ``editor``.

        Raises:
            ValidationError: If fields are invalid
            NotFoundError: If the post does not exist
            NotAuthorizedError: If editor is not the author
            SyncError: If the write fails
        """
        with logfire.span("post_service.update_post", post_id=str(post_id)):
            title, content, tags = self.validate(title, content, tags_text)
            await self._owned_post(editor, post_id, "edit")
            path = paths.post(post_id)
            try:
                await self.store.set(
                    path,
                    {
                        "title": title,
                        "content": content,
                        "tags": list(tags),
                        "updatedAt": SERVER_TIMESTAMP,
                    },
                    merge=True,
                )
            except StoreError as e:
                logfire.error("Post update failed", path=path, error=str(e))
                raise SyncError("update", path, str(e)) from e
            logfire.info("Post updated", post_id=str(post_id))

    async def delete_post(self, editor: Identity, post_id: PostId) -> None:
        """Delete a post owned by ``editor``.

        Raises:
            NotFoundError: If the post does not exist
            NotAuthorizedError: If editor is not the author
            SyncError: If the delete fails
        """
        with logfire.span("post_service.delete_post", post_id=str(post_id)):
            await self._owned_post(editor, post_id, "delete")
            path = paths.post(post_id)
            try:
                await self.store.delete(path)
            except StoreError as e:
                logfire.error("Post delete failed", path=path, error=str(e))
                raise SyncError("delete", path, str(e)) from e
            logfire.info("Post deleted", post_id=str(post_id))

    def watch_post(
        self,
        post_id: PostId,
        on_next: Callable[[Post | None], None],
        on_error: Callable[[StoreError], None] | None = None,
    ) -> Unsubscribe:
        """Live view of one post (None once it is deleted)."""

        def handle(doc: DocumentSnapshot) -> None:
            on_next(doc_to_post(doc))

        return self.store.watch_document(paths.post(post_id), handle, on_error)
