"""
Pydantic schemas for blog posts.

``tags`` is accepted either as a list or as a string and is stored as
one comma-joined string.
"""

from typing import Any, List, Optional

from pydantic import BaseModel

from .common import Pagination


class BlogCreate(BaseModel):
    title: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    tags: Any = None
    imageUrl: Optional[str] = None
    authorName: Optional[str] = None


class BlogUpdate(BlogCreate):
    """Same fields as creation; title, excerpt, content and category stay required."""


class BlogRead(BaseModel):
    id: str
    title: str
    excerpt: str
    content: str
    category: str
    tags: str = ""
    authorName: Optional[str] = None
    imageUrl: str = ""
    createdAt: str
    updatedAt: str


class BlogEnvelope(BaseModel):
    blog: BlogRead


class BlogSaved(BaseModel):
    message: str
    blog: BlogRead


class BlogPagination(Pagination):
    totalBlogs: int


class BlogList(BaseModel):
    blogs: List[BlogRead]
    pagination: BlogPagination
