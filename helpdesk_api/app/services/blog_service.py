"""
Business logic for blog posts.

Blogs are stored in the ``blogs`` table.  Categories are lowercased on
write.  Tags are kept as one comma-joined string; list input is
normalised item by item, string input is only trimmed.
"""

import logging
import sqlite3
from typing import Any, Optional

from ..core.db import escape_like, get_connection
from ..core.exceptions import InvalidInputError, NotFoundError
from ..core.timeutils import new_id, now_iso
from ..schemas.blog import BlogCreate, BlogList, BlogPagination, BlogRead, BlogUpdate
from ..schemas.common import pagination_fields

logger = logging.getLogger(__name__)

_BLOG_COLUMNS = "id, title, excerpt, content, category, tags, author_name, image_url, created_at, updated_at"


def normalize_tags(tags: Any) -> str:
    """Collapse ``tags`` into a comma-joined string.

    Lists are stringified per item, trimmed, emptied entries dropped.
    Strings are trimmed.  Anything else becomes an empty string.
    """
    if isinstance(tags, list):
        return ",".join(item for item in (str(tag).strip() for tag in tags) if item)
    if isinstance(tags, str):
        return tags.strip()
    return ""


def _row_to_blog(row: sqlite3.Row) -> BlogRead:
    return BlogRead(
        id=row["id"],
        title=row["title"],
        excerpt=row["excerpt"],
        content=row["content"],
        category=row["category"],
        tags=row["tags"],
        authorName=row["author_name"],
        imageUrl=row["image_url"],
        createdAt=row["created_at"],
        updatedAt=row["updated_at"],
    )


def _require_fields(data: BlogCreate) -> None:
    required = (data.title, data.excerpt, data.content, data.category)
    if any(value is None or not value.strip() for value in required):
        raise InvalidInputError("Title, excerpt, content, and category are required")


class BlogService:
    """Service for creating, searching and editing blog posts."""

    @classmethod
    async def create_blog(cls, data: BlogCreate) -> BlogRead:
        _require_fields(data)
        blog_id = new_id()
        now = now_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO blogs ({_BLOG_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    blog_id,
                    data.title.strip(),
                    data.excerpt.strip(),
                    data.content,
                    data.category.strip().lower(),
                    normalize_tags(data.tags),
                    data.authorName,
                    data.imageUrl or "",
                    now,
                    now,
                ),
            )
            conn.commit()
            row = cursor.execute(f"SELECT {_BLOG_COLUMNS} FROM blogs WHERE id = ?", (blog_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Created blog %s in category %s", blog_id, row["category"])
        return _row_to_blog(row)

    @classmethod
    async def get_blog(cls, blog_id: str) -> BlogRead:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_BLOG_COLUMNS} FROM blogs WHERE id = ?", (blog_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Blog not found")
        return _row_to_blog(row)

    @classmethod
    async def list_blogs(
        cls,
        category: Optional[str] = None,
        title: Optional[str] = None,
        tags: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> BlogList:
        """List blogs, newest first.

        ``category`` and ``title`` match case-insensitively anywhere in
        the field.  ``tags`` is a comma-separated list; a blog matches
        when any of the given tags occurs in its tag string.
        """
        where_clauses: list[str] = []
        params: list = []
        if category:
            where_clauses.append("category LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(category)}%")
        if title:
            where_clauses.append("title LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(title)}%")
        wanted = [tag.strip() for tag in (tags or "").split(",") if tag.strip()]
        if wanted:
            where_clauses.append("(" + " OR ".join("tags LIKE ? ESCAPE '\\'" for _ in wanted) + ")")
            params.extend(f"%{escape_like(tag)}%" for tag in wanted)
        where = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        conn = get_connection()
        try:
            cursor = conn.cursor()
            total = cursor.execute(f"SELECT COUNT(*) AS count FROM blogs{where}", tuple(params)).fetchone()["count"]
            rows = cursor.execute(
                f"SELECT {_BLOG_COLUMNS} FROM blogs{where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                tuple(params + [limit, (page - 1) * limit]),
            ).fetchall()
        finally:
            conn.close()
        return BlogList(
            blogs=[_row_to_blog(row) for row in rows],
            pagination=BlogPagination(totalBlogs=total, **pagination_fields(page, limit, total)),
        )

    @classmethod
    async def update_blog(cls, blog_id: str, data: BlogUpdate) -> BlogRead:
        """Replace a blog's text fields.

        Title, excerpt, content and category are required.  Tags, image
        URL and author name change only when present in the body.
        """
        _require_fields(data)
        provided = data.model_fields_set
        assignments = ["title = ?", "excerpt = ?", "content = ?", "category = ?"]
        values: list = [data.title.strip(), data.excerpt.strip(), data.content, data.category.strip().lower()]
        if "tags" in provided:
            assignments.append("tags = ?")
            values.append(normalize_tags(data.tags))
        if "imageUrl" in provided and data.imageUrl is not None:
            assignments.append("image_url = ?")
            values.append(data.imageUrl)
        if "authorName" in provided:
            assignments.append("author_name = ?")
            values.append(data.authorName)
        assignments.append("updated_at = ?")
        values.extend([now_iso(), blog_id])

        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"UPDATE blogs SET {', '.join(assignments)} WHERE id = ?", tuple(values))
            if cursor.rowcount == 0:
                raise NotFoundError("Blog not found")
            conn.commit()
            row = cursor.execute(f"SELECT {_BLOG_COLUMNS} FROM blogs WHERE id = ?", (blog_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Updated blog %s", blog_id)
        return _row_to_blog(row)

    @classmethod
    async def delete_blog(cls, blog_id: str) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM blogs WHERE id = ?", (blog_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Blog not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted blog %s", blog_id)
