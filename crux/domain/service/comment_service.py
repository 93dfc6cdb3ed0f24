"""Comment domain service."""

import logfire

from crux.config import ContentSettings
from crux.domain.error import NotAuthorizedError, NotFoundError, SyncError, ValidationError
from crux.domain.model import Comment, Identity
from crux.domain.repository import SERVER_TIMESTAMP, DocumentStore, StoreError, paths
from crux.domain.repository.mappers import comment_to_doc, doc_to_comment
from crux.domain.value import CommentId, PostId


class CommentService:
    """Domain service for comment operations."""

    def __init__(self, store: DocumentStore, content_settings: ContentSettings) -> None:
        """Initialize comment service.

        Args:
            store: Document store
            content_settings: Length limits
        """
        self.store = store
        self.content_settings = content_settings

    def validate(self, content: str) -> str:
        """Trim and check comment content.

        Raises:
            ValidationError: If content is blank or too long
        """
        content = content.strip()
        if not content:
            raise ValidationError("Write something before commenting")
        if len(content) > self.content_settings.comment_max_length:
            raise ValidationError(
                f"Comments are limited to {self.content_settings.comment_max_length} characters"
            )
        return content

    async def _read(self, path: str):
        try:
            return await self.store.get(path)
        except StoreError as e:
            raise SyncError("read", path, str(e)) from e

    async def create_comment(
        self,
        post_id: PostId,
        author: Identity,
        content: str,
        parent_id: CommentId | None = None,
    ) -> CommentId:
        """Create a comment on a post or reply to another comment.

        Args:
            post_id: Post ID
            author: Signed-in identity
            content: Comment text
            parent_id: Parent comment ID for replies (None for top-level)

        Returns:
            Id of the created comment

        Raises:
            ValidationError: If content is invalid
            NotFoundError: If the post or the parent comment does not exist
            SyncError: If the store cannot be reached
        """
        with logfire.span(
            "comment_service.create_comment",
            post_id=str(post_id),
            author_id=str(author.id),
            parent_id=str(parent_id) if parent_id else None,
        ):
            content = self.validate(content)

            post_doc = await self._read(paths.post(post_id))
            if not post_doc.exists:
                logfire.error("Comment on missing post", post_id=str(post_id))
                raise NotFoundError("Post", post_id)

            if parent_id is not None:
                parent_doc = await self._read(paths.comment(post_id, parent_id))
                if not parent_doc.exists:
                    logfire.error(
                        "Parent comment not found",
                        parent_id=str(parent_id),
                        post_id=str(post_id),
                    )
                    raise NotFoundError("Comment", parent_id)

            comment_id = CommentId(self.store.allocate_id())
            path = paths.comment(post_id, comment_id)
            try:
                await self.store.set(
                    path, comment_to_doc(content, author.id, author.author_name, parent_id)
                )
            except StoreError as e:
                logfire.error("Comment write failed", path=path, error=str(e))
                raise SyncError("create", path, str(e)) from e

            logfire.info(
                "Comment created",
                comment_id=str(comment_id),
                post_id=str(post_id),
                is_reply=parent_id is not None,
            )
            return comment_id

    async def _owned_comment(
        self, editor: Identity, post_id: PostId, comment_id: CommentId, action: str
    ) -> Comment:
        comment = doc_to_comment(await self._read(paths.comment(post_id, comment_id)), post_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        if comment.author_id != editor.id:
            logfire.warn(
                "Comment action by non-author",
                action=action,
                comment_id=str(comment_id),
                editor_id=str(editor.id),
            )
            raise NotAuthorizedError(action, "comment", comment_id)
        return comment

    async def update_comment(
        self, editor: Identity, post_id: PostId, comment_id: CommentId, content: str
    ) -> None:
        """Edit the text of a comment owned by ``editor``.

        Raises:
            ValidationError: If content is invalid
            NotFoundError: If the comment does not exist
            NotAuthorizedError: If editor is not the author
            SyncError: If the write fails
        """
        with logfire.span(
            "comment_service.update_comment",
            comment_id=str(comment_id),
            text_length=len(content),
        ):
            content = self.validate(content)
            await self._owned_comment(editor, post_id, comment_id, "edit")
            path = paths.comment(post_id, comment_id)
            try:
                await self.store.set(
                    path, {"content": content, "updatedAt": SERVER_TIMESTAMP}, merge=True
                )
            except StoreError as e:
                logfire.error("Comment update failed", path=path, error=str(e))
                raise SyncError("update", path, str(e)) from e
            logfire.info("Comment updated", comment_id=str(comment_id), post_id=str(post_id))

    async def delete_comment(
        self, editor: Identity, post_id: PostId, comment_id: CommentId
    ) -> None:
        """Delete a comment owned by ``editor``.

        Replies are left in place; they are shown at the top level once their
        parent is gone.

        Raises:
            NotFoundError: If the comment does not exist
            NotAuthorizedError: If editor is not the author
            SyncError: If the delete fails
        """
        with logfire.span("comment_service.delete_comment", comment_id=str(comment_id)):
            await self._owned_comment(editor, post_id, comment_id, "delete")
            path = paths.comment(post_id, comment_id)
            try:
                await self.store.delete(path)
            except StoreError as e:
                logfire.error("Comment delete failed", path=path, error=str(e))
                raise SyncError("delete", path, str(e)) from e
            logfire.info("Comment deleted", comment_id=str(comment_id), post_id=str(post_id))
