from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from clinic.application.exceptions import NotFoundError, PersistenceError
from clinic.application.ports.blog_repository import BlogRepositoryPort
from clinic.application.use_cases.session_manager import SessionManager
from clinic.application.utils.slug import generate_slug
from clinic.domain.entities.blog_post import BlogPost, BlogStatus


class BlogManager:
    """
    Blog posts. Admin operations require a signed-in operator; the public
    read operations only ever expose published posts.
    """

    def __init__(self, repository: BlogRepositoryPort, session: SessionManager) -> None:
        self._repository = repository
        self._session = session
        self._logger = logging.getLogger(__name__)

    async def list_posts(self, query: str = "") -> list[BlogPost]:
        self._session.require_authenticated()
        posts = await self._load_all()
        needle = (query or "").strip().casefold()
        if needle:
            posts = [p for p in posts if needle in p.title.casefold()]
        return posts

    async def create_post(
        self,
        title: str,
        content: str,
        status: BlogStatus | str = BlogStatus.draft,
        author: str = "",
    ) -> BlogPost:
        self._session.require_authenticated()
        row = {
            "title": title,
            "slug": generate_slug(title),
            "content": content,
            "status": BlogStatus(status).value,
            "author": author,
        }
        stored = await self._call("insert", self._repository.insert(row))
        post = BlogPost.from_row(stored)
        self._logger.info("Blog post created", extra={"post_id": post.id, "slug": post.slug})
        return post

    async def update_post(
        self,
        post_id: str,
        title: str | None = None,
        content: str | None = None,
        status: BlogStatus | str | None = None,
        author: str | None = None,
    ) -> BlogPost:
        self._session.require_authenticated()
        changes: dict[str, Any] = {}
        if title is not None:
            changes["title"] = title
            changes["slug"] = generate_slug(title)
        if content is not None:
            changes["content"] = content
        if status is not None:
            changes["status"] = BlogStatus(status).value
        if author is not None:
            changes["author"] = author
        changes["updated_at"] = datetime.now(timezone.utc).isoformat()

        stored = await self._call("update", self._repository.update(post_id, changes))
        if stored is None:
            raise NotFoundError(f"Blog post {post_id} not found")
        post = BlogPost.from_row(stored)
        self._logger.info("Blog post updated", extra={"post_id": post.id, "slug": post.slug})
        return post

    async def delete_post(self, post_id: str) -> None:
        self._session.require_authenticated()
        deleted = await self._call("delete", self._repository.delete(post_id))
        if not deleted:
            raise NotFoundError(f"Blog post {post_id} not found")
        self._logger.info("Blog post deleted", extra={"post_id": post_id})

    async def list_published(self) -> list[BlogPost]:
        return [p for p in await self._load_all() if p.status is BlogStatus.published]

    async def get_published(self, post_id: str) -> BlogPost:
        row = await self._call("get", self._repository.get(post_id))
        if row is None:
            raise NotFoundError(f"Blog post {post_id} not found")
        post = BlogPost.from_row(row)
        if post.status is not BlogStatus.published:
            raise NotFoundError(f"Blog post {post_id} not found")
        return post

    async def _load_all(self) -> list[BlogPost]:
        rows = await self._call("list", self._repository.list_all())
        posts = [BlogPost.from_row(row) for row in rows or []]
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    async def _call(self, operation: str, awaitable):
        try:
            return await awaitable
        except PersistenceError as e:
            self._logger.error("Blog %s failed", operation, extra={"error": str(e)})
            raise
