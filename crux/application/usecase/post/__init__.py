"""Post use cases."""

from crux.application.usecase.post.create_post import (
    CreatePostRequest,
    CreatePostResponse,
    CreatePostUseCase,
)
from crux.application.usecase.post.delete_post import DeletePostRequest, DeletePostUseCase
from crux.application.usecase.post.update_post import UpdatePostRequest, UpdatePostUseCase

__all__ = [
    "CreatePostRequest",
    "CreatePostResponse",
    "CreatePostUseCase",
    "DeletePostRequest",
    "DeletePostUseCase",
    "UpdatePostRequest",
    "UpdatePostUseCase",
]
