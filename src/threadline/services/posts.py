"""Read-only access to the post store for shared-post snapshots."""
from __future__ import annotations

from sqlalchemy.orm import Session, joinedload

from threadline.models import Post
from threadline.schemas.post import PostSnapshot
from threadline.services.errors import NotFoundError


def get_post(db: Session, post_id: int) -> Post:
    """Return a post together with its author.

    Raises:
        NotFoundError: If no post has ``post_id``.
    """
    post = (
        db.query(Post)
        .options(joinedload(Post.user))
        .filter(Post.id == post_id)
        .first()
    )
    if post is None:
        raise NotFoundError("Post not found")
    return post


def to_snapshot(post: Post) -> PostSnapshot:
    """Capture the fields of ``post`` that a chat bubble needs to render it."""
    return PostSnapshot(
        id=post.id,
        user_name=post.user.name,
        user_avatar=post.user.avatar,
        content=post.content,
        images=list(post.images or []),
        videos=list(post.videos or []),
        created_at=post.created_at,
        likes_count=post.likes_count,
        comments_count=post.replies_count,
    )


def snapshot_post(db: Session, post_id: int) -> PostSnapshot:
    """Look up ``post_id`` and return its snapshot as of now."""
    return to_snapshot(get_post(db, post_id))
