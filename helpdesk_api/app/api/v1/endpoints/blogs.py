"""
API endpoints for blog posts.

Blogs are public content: anyone can create, search, edit and delete
them.  Listing supports filtering by category, title and tags.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from helpdesk_api.app.core.exceptions import ServiceError
from helpdesk_api.app.schemas.blog import BlogCreate, BlogEnvelope, BlogList, BlogSaved, BlogUpdate
from helpdesk_api.app.schemas.common import StatusMessage
from helpdesk_api.app.services.blog_service import BlogService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/blogs", response_model=BlogSaved, status_code=status.HTTP_201_CREATED, summary="Create a blog")
async def create_blog(data: BlogCreate) -> BlogSaved:
    try:
        blog = await BlogService.create_blog(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to create blog")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return BlogSaved(message="Blog created successfully", blog=blog)


@router.get("/blogs", response_model=BlogList, summary="List blogs")
async def list_blogs(
    category: Optional[str] = Query(None),
    title: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="Comma-separated; matches blogs having any of them"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> BlogList:
    try:
        return await BlogService.list_blogs(category=category, title=title, tags=tags, page=page, limit=limit)
    except Exception:
        logger.exception("Failed to list blogs")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get("/blogs/{blog_id}", response_model=BlogEnvelope, summary="Get a blog")
async def get_blog(blog_id: str) -> BlogEnvelope:
    try:
        return BlogEnvelope(blog=await BlogService.get_blog(blog_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load blog %s", blog_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.put("/blogs/{blog_id}", response_model=BlogSaved, summary="Edit a blog")
async def update_blog(blog_id: str, data: BlogUpdate) -> BlogSaved:
    try:
        blog = await BlogService.update_blog(blog_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to update blog %s", blog_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return BlogSaved(message="Blog updated successfully", blog=blog)


@router.delete("/blogs/{blog_id}", response_model=StatusMessage, summary="Delete a blog")
async def delete_blog(blog_id: str) -> StatusMessage:
    try:
        await BlogService.delete_blog(blog_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to delete blog %s", blog_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return StatusMessage(message="Blog deleted successfully")
